"""Pydantic request/response models for the storyframe Web API."""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ImageSize = Literal["256x256", "512x512", "1024x1024", "1024x1792", "1792x1024"]


class RequestValidationError(Exception):
    """Request body is well-formed JSON but unusable (e.g. blank prompt)."""


class GenerationRequest(BaseModel):
    prompt: str = ""
    size: ImageSize | None = None
    model: str | None = None


class SceneRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str = ""
    # Normalised by storyframe.beats.normalize_scene_count, so anything goes here
    scene_count: Any = Field(default=None, alias="sceneCount")
    model: str | None = None


class ConfigView(BaseModel):
    configured: bool
    base_url: str = ""
    api_key: str = ""           # masked
    api_mode: str = "images"
    default_model: str = ""
    sizes: list[str] = Field(default_factory=list)
    min_scenes: int = 2
    max_scenes: int = 8


def require_prompt(prompt: str) -> str:
    prompt = (prompt or "").strip()
    if not prompt:
        raise RequestValidationError("Prompt is required.")
    return prompt
