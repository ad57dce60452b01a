"""Orchestrates multi-scene image generation."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterator, Literal

from .beats import plan_scenes
from .upstream import GenerationError, UpstreamClient

log = logging.getLogger(__name__)


class PipelineCancelled(Exception):
    pass


@dataclass
class SceneOutcome:
    index: int
    total: int
    status: Literal["ok", "error"]
    url: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict:
        data: dict = {"index": self.index, "total": self.total, "status": self.status}
        if self.ok:
            data["url"] = self.url
        else:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SceneOutcome":
        """Build an outcome from one decoded stream line.

        Raises ValueError when the record does not describe a scene.
        """
        index = data.get("index")
        total = data.get("total")
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise ValueError(f"bad scene index: {index!r}")
        if isinstance(total, bool) or not isinstance(total, int):
            raise ValueError(f"bad scene total: {total!r}")
        if data.get("status") == "ok" and isinstance(data.get("url"), str):
            return cls(index=index, total=total, status="ok", url=data["url"])
        return cls(
            index=index,
            total=total,
            status="error",
            error=str(data.get("error") or "Generation failed."),
        )


class ScenePipeline:
    """Sequential scene generation with cancellation support.

    One upstream call per scene, in index order. A failed scene is reported
    and the pipeline moves on to the next one.
    """

    def __init__(
        self,
        client: UpstreamClient,
        progress_cb: Callable[[str], None] | None = None,
    ):
        self.client = client
        self.progress_cb = progress_cb or (lambda msg: None)
        self._cancelled = threading.Event()
        self.completed = 0

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _check_cancel(self) -> None:
        if self._cancelled.is_set():
            raise PipelineCancelled("Pipeline cancelled.")

    def run(self, prompt: str, count: int, model: str | None = None) -> Iterator[SceneOutcome]:
        """Yield one SceneOutcome per scene as soon as its call resolves.

        Stops early if cancelled or if the consumer closes the generator.
        """
        tasks = plan_scenes(prompt, count)
        self.progress_cb(f"🎨 Generating {count} scenes...")
        try:
            for task in tasks:
                self._check_cancel()
                self.progress_cb(f"  Generating scene {task.index + 1}/{task.total}...")
                try:
                    image = self.client.generate_image(task.prompt, model=model)
                    outcome = SceneOutcome(
                        index=task.index, total=task.total, status="ok", url=image.url
                    )
                    self.progress_cb(f"  ✓ Scene {task.index + 1}")
                except GenerationError as e:
                    log.error("Image gen failed for scene %d: %s", task.index, e)
                    self.progress_cb(f"  ✗ Scene {task.index + 1} failed: {e}")
                    outcome = SceneOutcome(
                        index=task.index, total=task.total, status="error", error=str(e)
                    )
                except Exception as e:
                    log.exception("Unexpected failure on scene %d", task.index)
                    self.progress_cb(f"  ✗ Scene {task.index + 1} failed: {e}")
                    outcome = SceneOutcome(
                        index=task.index, total=task.total, status="error", error="Image generation failed."
                    )
                self.completed += 1
                yield outcome
        except PipelineCancelled:
            log.info("Scene pipeline cancelled after %d/%d scenes", self.completed, count)
        except GeneratorExit:
            if self.completed < count:
                log.info("Stream closed after %d/%d scenes, skipping the rest", self.completed, count)
            raise
