"""Settings and API key management."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

CONFIG_DIR = Path.home() / ".storyframe"
CONFIG_FILE = CONFIG_DIR / "config.json"

# Upstream protocols
# "images": OpenAI-compatible /v1/images/generations
# "chat":   chat completions, image pulled out of the markdown reply
API_MODES = ("images", "chat")
DEFAULT_API_MODE = "images"

DEFAULT_MODEL = "nano-banana-pro"
DEFAULT_SIZE = "1024x1024"
IMAGE_SIZES = ("256x256", "512x512", "1024x1024", "1024x1792", "1792x1024")

# Seconds per upstream call. Generation is slow, but never unbounded.
DEFAULT_TIMEOUT = 120.0

# Multi-scene generation
MIN_SCENES = 2
MAX_SCENES = 8
DEFAULT_SCENES = 5


@dataclass
class Config:
    base_url: str = ""
    api_key: str = ""
    api_mode: str = DEFAULT_API_MODE
    default_model: str = DEFAULT_MODEL
    timeout: float = DEFAULT_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    @classmethod
    def load(cls) -> "Config":
        """Load config from env vars then config file."""
        cfg = cls()

        # Env var takes priority
        base_url = os.environ.get("OPENAI_BASE_URL", "")
        api_key = os.environ.get("OPENAI_API_KEY", "")

        # Fall back to config file
        if CONFIG_FILE.exists():
            try:
                data = json.loads(CONFIG_FILE.read_text(encoding="utf-8-sig"))
                if not base_url:
                    base_url = data.get("base_url", "")
                if not api_key:
                    api_key = data.get("api_key", "")
                if mode := data.get("api_mode"):
                    cfg.api_mode = mode
                if model := data.get("default_model"):
                    cfg.default_model = model
                if data.get("timeout") is not None:
                    cfg.timeout = float(data["timeout"])
            except (json.JSONDecodeError, OSError, TypeError, ValueError):
                pass

        if mode := os.environ.get("STORYFRAME_API_MODE"):
            cfg.api_mode = mode
        if model := os.environ.get("STORYFRAME_DEFAULT_MODEL"):
            cfg.default_model = model
        if timeout := os.environ.get("STORYFRAME_TIMEOUT"):
            try:
                cfg.timeout = float(timeout)
            except ValueError:
                pass

        cfg.api_mode = cfg.api_mode.strip().lower()
        if cfg.api_mode not in API_MODES:
            raise ValueError(f"Unknown API mode {cfg.api_mode!r}, expected one of {API_MODES}")

        cfg.base_url = base_url.strip()
        cfg.api_key = api_key.strip()
        return cfg

    def save(self) -> None:
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        data = {
            "base_url": self.base_url,
            "api_key": self.api_key,
            "api_mode": self.api_mode,
            "default_model": self.default_model,
            "timeout": self.timeout,
        }
        CONFIG_FILE.write_text(json.dumps(data, indent=2))


def mask(value: str) -> str:
    if not value:
        return ""
    return value[:4] + "…" + value[-4:] if len(value) > 8 else "…"
