"""HTTP client for a running storyframe server."""
from __future__ import annotations

import base64
import logging
import zipfile
from pathlib import Path
from typing import Callable

import requests

from .ndjson import MEDIA_TYPE
from .pipeline import SceneOutcome
from .progress import SceneProgress, SceneSlot

log = logging.getLogger(__name__)


class ClientError(Exception):
    def __init__(self, status: int, message: str):
        self.status = status
        super().__init__(message)


def _error_from(response: requests.Response) -> ClientError:
    try:
        message = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        message = response.text or response.reason
    return ClientError(response.status_code, message)


class SceneClient:
    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 600.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def generate_image(self, prompt: str, size: str | None = None, model: str | None = None) -> str:
        """Generate a single image and return its URL (or data: URL)."""
        payload = {"prompt": prompt}
        if size:
            payload["size"] = size
        if model:
            payload["model"] = model

        response = requests.post(f"{self.base_url}/api/generate", json=payload, timeout=self.timeout)
        if not response.ok:
            raise _error_from(response)

        data = response.json()
        if data.get("error"):
            raise ClientError(response.status_code, data["error"].get("message", "Unknown error occurred."))
        if not data.get("data"):
            raise ClientError(response.status_code, "No image data returned from API.")
        return data["data"][0]["url"]

    def generate_scenes(
        self,
        prompt: str,
        scene_count: int,
        model: str | None = None,
        on_update: Callable[[SceneSlot, SceneProgress], None] | None = None,
    ) -> SceneProgress:
        """Stream a multi-scene run, updating a SceneProgress as lines arrive.

        ``scene_count`` must already be normalised; slots are created for it
        before the request is sent.
        """
        progress = SceneProgress(scene_count, on_update=on_update)
        payload = {"prompt": prompt, "sceneCount": scene_count}
        if model:
            payload["model"] = model

        with requests.post(
            f"{self.base_url}/api/generate-scenes",
            json=payload,
            stream=True,
            timeout=self.timeout,
        ) as response:
            if not response.ok:
                raise _error_from(response)
            content_type = response.headers.get("content-type", "")
            if not content_type.startswith(MEDIA_TYPE):
                log.warning("Unexpected content type for scene stream: %s", content_type)
            for chunk in response.iter_content(chunk_size=None):
                if chunk:
                    progress.feed(chunk)

        progress.finish()
        return progress


def _image_bytes(url: str, timeout: float = 60.0) -> bytes:
    if url.startswith("data:"):
        _, _, payload = url.partition(",")
        return base64.b64decode(payload)
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.content


def write_zip(results: list[SceneOutcome], output_path: Path) -> Path:
    """Package successful scenes into a ZIP, named by scene number."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(output_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for outcome in sorted(results, key=lambda o: o.index):
            zf.writestr(f"scene-{outcome.index + 1:02d}.png", _image_bytes(outcome.url))
            log.info("Added scene %d to %s", outcome.index + 1, output_path)
    return output_path
