"""Single image generation route."""
from __future__ import annotations

import logging
import time

from litestar import post

from storyframe.config import Config
from storyframe.upstream import NoImageProduced, NotConfigured, UpstreamClient
from webui.backend.models import GenerationRequest, require_prompt

log = logging.getLogger(__name__)


@post("/api/generate", status_code=200, sync_to_thread=True)
def generate_image(data: GenerationRequest) -> dict:
    config = Config.load()
    if not config.configured:
        raise NotConfigured()
    prompt = require_prompt(data.prompt)
    client = UpstreamClient(config)

    try:
        image = client.generate_image(prompt, model=data.model or None, size=data.size)
    except NoImageProduced as e:
        log.warning("Upstream produced no image: %s", e)
        return {"created": int(time.time()), "data": [], "error": {"message": str(e)}}

    return {"created": int(time.time()), "data": [image.to_dict()]}
