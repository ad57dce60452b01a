"""OpenAI-compatible image generation client."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import requests

from .config import DEFAULT_SIZE, Config

log = logging.getLogger(__name__)

CHAT_PREFIX = "Generate an image: "

# ![alt](url) with an http(s) or inline data:image target
MARKDOWN_IMAGE = re.compile(r"!\[[^\]]*\]\(\s*((?:https?://|data:image/)[^)\s]+)\s*\)")

SNIPPET_LEN = 200


class GenerationError(Exception):
    """Base class for everything that can go wrong generating one image."""


class NotConfigured(GenerationError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "Server is not configured. OPENAI_BASE_URL and OPENAI_API_KEY "
            "environment variables are required."
        )


class UpstreamError(GenerationError):
    """The upstream API answered with a non-2xx status."""

    def __init__(self, status: int, body: Any) -> None:
        self.status = status
        self.body = body
        super().__init__(f"Upstream API error ({status}): {_error_message(body)}")


class UpstreamConnectionError(GenerationError):
    """The upstream API could not be reached at all."""

    def __init__(self, message: str = "Failed to connect to the image generation API.") -> None:
        super().__init__(message)


class NoImageProduced(GenerationError):
    def __init__(self, message: str, snippet: str = "") -> None:
        self.snippet = snippet
        super().__init__(message)


@dataclass
class ImageRef:
    url: str
    revised_prompt: str | None = None

    def to_dict(self) -> dict:
        data = {"url": self.url}
        if self.revised_prompt:
            data["revised_prompt"] = self.revised_prompt
        return data


def _error_message(body: Any) -> str:
    """Pull a readable message out of an upstream error body."""
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
        if body.get("message"):
            return str(body["message"])
    text = body if isinstance(body, str) else repr(body)
    return text[:SNIPPET_LEN] or "no response body"


def _message_text(content: Any) -> str:
    """Flatten chat message content, which may be a list of typed parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [
            part.get("text", "") if isinstance(part, dict) else part
            for part in content
        ]
        return "\n".join(p for p in parts if isinstance(p, str) and p)
    return ""


def images_endpoint(base_url: str) -> str:
    """Build the images URL, tolerating a base that already ends in /v1."""
    base = base_url.rstrip("/")
    if base.endswith("/v1"):
        base = base[: -len("/v1")]
    return base + "/v1/images/generations"


def chat_endpoint(base_url: str) -> str:
    return base_url.rstrip("/") + "/chat/completions"


def extract_markdown_image(text: str) -> str:
    """Return the first markdown image URL in a chat reply."""
    match = MARKDOWN_IMAGE.search(text or "")
    if match is None:
        snippet = (text or "")[:SNIPPET_LEN]
        raise NoImageProduced(f"No image found in model response: {snippet}", snippet=snippet)
    return match.group(1)


class UpstreamClient:
    """Issues one generation call per prompt against the configured API."""

    def __init__(self, config: Config):
        self.config = config

    def _post(self, url: str, payload: dict) -> Any:
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(url, json=payload, headers=headers, timeout=self.config.timeout)
        except requests.RequestException as e:
            log.error("Upstream connection failed (%s): %s", url, e)
            raise UpstreamConnectionError() from e

        try:
            body: Any = response.json()
        except ValueError:
            body = response.text

        if not response.ok:
            log.warning("Upstream returned %d for %s", response.status_code, url)
            raise UpstreamError(response.status_code, body)
        return body

    def generate_image(
        self,
        prompt: str,
        model: str | None = None,
        size: str | None = None,
    ) -> ImageRef:
        if not self.config.configured:
            raise NotConfigured()

        model = model or self.config.default_model
        if self.config.api_mode == "chat":
            return self._generate_chat(prompt, model)
        return self._generate_images(prompt, model, size or DEFAULT_SIZE)

    def _generate_images(self, prompt: str, model: str, size: str) -> ImageRef:
        log.info("Generating image with %s (%s)", model, size)
        body = self._post(
            images_endpoint(self.config.base_url),
            {"model": model, "prompt": prompt, "n": 1, "size": size},
        )
        items = body.get("data") if isinstance(body, dict) else None
        if not items:
            raise NoImageProduced("No image data returned from API.")

        first = items[0] if isinstance(items[0], dict) else {}
        revised = first.get("revised_prompt")
        if first.get("url"):
            return ImageRef(url=first["url"], revised_prompt=revised)
        if first.get("b64_json"):
            return ImageRef(url="data:image/png;base64," + first["b64_json"], revised_prompt=revised)
        raise NoImageProduced("Unexpected response format.")

    def _generate_chat(self, prompt: str, model: str) -> ImageRef:
        log.info("Generating image via chat completion with %s", model)
        body = self._post(
            chat_endpoint(self.config.base_url),
            {"model": model, "messages": [{"role": "user", "content": CHAT_PREFIX + prompt}]},
        )
        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        return ImageRef(url=extract_markdown_image(_message_text(content)))
