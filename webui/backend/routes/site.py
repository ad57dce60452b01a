"""Health check and single-page app fallback."""
from __future__ import annotations

from pathlib import Path

from litestar import get
from litestar.response import File

FRONTEND_DIR = Path(__file__).resolve().parent.parent.parent / "frontend"


def _app_shell() -> File:
    return File(path=FRONTEND_DIR / "index.html", media_type="text/html", content_disposition_type="inline")


@get("/api/health")
async def health() -> dict:
    return {"status": "ok"}


@get("/", include_in_schema=False)
async def index() -> File:
    return _app_shell()


@get("/{asset:path}", include_in_schema=False)
async def spa(asset: Path) -> File:
    """Serve a static asset if it exists, otherwise the app shell."""
    root = FRONTEND_DIR.resolve()
    target = (root / str(asset).lstrip("/")).resolve()
    if target.is_file() and root in target.parents:
        return File(path=target, content_disposition_type="inline")
    return _app_shell()
