"""Narrative beats for multi-scene stories."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from .config import DEFAULT_SCENES, MAX_SCENES, MIN_SCENES

# Story arc, sampled proportionally for any scene count.
BEATS: tuple[str, ...] = (
    "establishing shot, introducing the setting and main character",
    "the journey begins, sense of curiosity and anticipation",
    "rising action, a discovery or first obstacle appears",
    "tension builds, the challenge grows more serious",
    "the climax, dramatic peak of the story, intense moment",
    "turning point, the character finds a way forward",
    "resolution begins, calm after the storm",
    "final scene, satisfying conclusion, peaceful closing shot",
)


@dataclass(frozen=True)
class SceneTask:
    index: int
    total: int
    prompt: str


def beat_index(index: int, count: int) -> int:
    return math.floor(index / count * len(BEATS))


def beat_for(index: int, count: int) -> str:
    return BEATS[beat_index(index, count)]


def compose_prompt(base_prompt: str, index: int, count: int) -> str:
    """Build the prompt for scene ``index`` of ``count``.

    ``count`` is expected to be clamped already (see normalize_scene_count).
    """
    return f"Scene {index + 1} of {count}: {base_prompt} — {beat_for(index, count)}"


def normalize_scene_count(value: Any) -> int:
    """Coerce a user supplied scene count into [MIN_SCENES, MAX_SCENES].

    Missing, non-numeric, zero or negative values fall back to DEFAULT_SCENES.
    Fractions are truncated.
    """
    count = 0
    if isinstance(value, bool):
        count = 0
    elif isinstance(value, (int, float)):
        count = int(value) if math.isfinite(value) else 0
    elif isinstance(value, str):
        try:
            count = int(float(value.strip()))
        except (ValueError, OverflowError):
            count = 0

    if count <= 0:
        count = DEFAULT_SCENES
    return max(MIN_SCENES, min(MAX_SCENES, count))


def plan_scenes(base_prompt: str, count: int) -> list[SceneTask]:
    """Ordered task list for the scene pipeline, one entry per index."""
    return [
        SceneTask(index=i, total=count, prompt=compose_prompt(base_prompt, i, count))
        for i in range(count)
    ]
