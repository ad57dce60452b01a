"""Litestar ASGI application — storyframe Web API."""
from __future__ import annotations

import logging

from litestar import Litestar, Request, Response
from litestar.config.cors import CORSConfig
from litestar.exceptions import ClientException
from litestar.logging import LoggingConfig

from storyframe.upstream import (
    GenerationError,
    NotConfigured,
    UpstreamConnectionError,
    UpstreamError,
)
from webui.backend.models import RequestValidationError
from webui.backend.routes.config import get_config
from webui.backend.routes.generate import generate_image
from webui.backend.routes.site import health, index, spa
from webui.backend.routes.stream import generate_scenes

log = logging.getLogger(__name__)


def _error(message: str, status_code: int) -> Response:
    return Response(content={"error": {"message": message}}, status_code=status_code)


def _on_client_error(request: Request, exc: ClientException) -> Response:
    return _error(exc.detail, exc.status_code)


def _on_validation_error(request: Request, exc: RequestValidationError) -> Response:
    return _error(str(exc), 400)


def _on_generation_error(request: Request, exc: GenerationError) -> Response:
    if isinstance(exc, UpstreamError):
        log.warning("Upstream failure on %s: %s", request.url.path, exc)
        status = exc.status if exc.status >= 400 else 502
        body = exc.body
        # Relay the upstream body when it already has the usual error shape
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            return Response(content=body, status_code=status)
        return _error(str(exc), status)
    if isinstance(exc, NotConfigured):
        log.error("Request to %s rejected: %s", request.url.path, exc)
        return _error(str(exc), 500)
    if isinstance(exc, UpstreamConnectionError):
        return _error(str(exc), 500)
    log.error("Image generation error: %s", exc)
    return _error(str(exc), 502)


def create_app() -> Litestar:
    return Litestar(
        route_handlers=[
            generate_image,
            generate_scenes,
            get_config,
            health,
            index,
            spa,
        ],
        cors_config=CORSConfig(
            allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type"],
        ),
        exception_handlers={
            ClientException: _on_client_error,
            RequestValidationError: _on_validation_error,
            GenerationError: _on_generation_error,
        },
        logging_config=LoggingConfig(
            loggers={
                "storyframe": {"level": "INFO", "handlers": ["queue_listener"]},
                "webui": {"level": "INFO", "handlers": ["queue_listener"]},
            }
        ),
    )


app = create_app()
