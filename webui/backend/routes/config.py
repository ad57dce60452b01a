"""Read-only view of the server configuration."""
from __future__ import annotations

from litestar import get

from storyframe.config import IMAGE_SIZES, MAX_SCENES, MIN_SCENES, Config, mask
from webui.backend.models import ConfigView


@get("/api/config")
async def get_config() -> ConfigView:
    cfg = Config.load()
    return ConfigView(
        configured=cfg.configured,
        base_url=cfg.base_url,
        # Mask secret keys — show only first/last 4 chars
        api_key=mask(cfg.api_key),
        api_mode=cfg.api_mode,
        default_model=cfg.default_model,
        sizes=list(IMAGE_SIZES),
        min_scenes=MIN_SCENES,
        max_scenes=MAX_SCENES,
    )
