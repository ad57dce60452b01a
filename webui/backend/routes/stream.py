"""NDJSON streaming route for multi-scene generation."""
from __future__ import annotations

import logging

from litestar import post
from litestar.response import Stream

from storyframe.beats import normalize_scene_count
from storyframe.config import Config
from storyframe.ndjson import MEDIA_TYPE, encode_line
from storyframe.pipeline import ScenePipeline
from storyframe.upstream import NotConfigured, UpstreamClient
from webui.backend.models import SceneRequest, require_prompt

log = logging.getLogger(__name__)


@post("/api/generate-scenes", status_code=200)
async def generate_scenes(data: SceneRequest) -> Stream:
    # Everything that can fail the whole request is checked before streaming.
    config = Config.load()
    if not config.configured:
        raise NotConfigured()
    prompt = require_prompt(data.prompt)

    count = normalize_scene_count(data.scene_count)
    pipeline = ScenePipeline(UpstreamClient(config), progress_cb=log.debug)
    log.info("Starting %d-scene run", count)

    def _lines():
        for outcome in pipeline.run(prompt, count, model=data.model or None):
            yield encode_line(outcome.to_dict())

    return Stream(
        _lines(),
        media_type=MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
