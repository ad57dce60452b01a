"""Entry point for storyframe: run the web server or talk to one headless."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import CONFIG_DIR, IMAGE_SIZES, Config

BACKEND_PORT = 8000


def _setup_logging() -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(CONFIG_DIR / "storyframe.log"),
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_server(host: str, port: int, reload: bool = False) -> None:
    import uvicorn

    cfg = Config.load()
    if not cfg.configured:
        print("⚠  OPENAI_BASE_URL / OPENAI_API_KEY not set — generation requests will fail.")
    print(f"► Starting server on http://localhost:{port} …")
    uvicorn.run("webui.backend.app:app", host=host, port=port, reload=reload, log_level="info")


def run_scenes(server: str, prompt: str, scenes: int, model: str | None, zip_path: Path | None) -> int:
    """Run a multi-scene story against a server, printing progress to stdout."""
    from .beats import normalize_scene_count
    from .client import ClientError, SceneClient, write_zip

    count = normalize_scene_count(scenes)

    def on_update(slot, progress) -> None:
        if slot.state == "ok":
            print(f"[{progress.percent:3d}%] ✓ Scene {slot.index + 1}/{progress.total}: {slot.url[:100]}")
        else:
            print(f"[{progress.percent:3d}%] ✗ Scene {slot.index + 1}/{progress.total}: {slot.error}")

    client = SceneClient(server)
    print(f"🎨 Generating {count} scenes for: {prompt}")
    try:
        progress = client.generate_scenes(prompt, count, model=model, on_update=on_update)
    except ClientError as e:
        print(f"Error: {e}")
        return 1
    except OSError as e:
        print(f"Error: failed to connect to {server}: {e}")
        return 1

    results = progress.finish()
    print(f"\n✅ {len(results)}/{count} scenes generated")
    if zip_path is not None:
        if not progress.has_results:
            print("No successful scenes — nothing to package.")
        else:
            write_zip(results, zip_path)
            print(f"Saved {zip_path}")
    return 0


def run_image(server: str, prompt: str, size: str | None, model: str | None) -> int:
    from .client import ClientError, SceneClient

    try:
        url = SceneClient(server).generate_image(prompt, size=size, model=model)
    except ClientError as e:
        print(f"Error: {e}")
        return 1
    except OSError as e:
        print(f"Error: failed to connect to {server}: {e}")
        return 1
    print(url)
    return 0


def run_configure(base_url: str | None, api_key: str | None, api_mode: str | None) -> int:
    """Persist upstream settings to the config file."""
    from .config import API_MODES, mask

    cfg = Config.load()
    if base_url is not None:
        cfg.base_url = base_url
    if api_key is not None:
        cfg.api_key = api_key
    if api_mode is not None:
        if api_mode not in API_MODES:
            print(f"Error: api mode must be one of {', '.join(API_MODES)}")
            return 1
        cfg.api_mode = api_mode
    cfg.save()
    print(f"base_url={cfg.base_url} api_key={mask(cfg.api_key)} api_mode={cfg.api_mode}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storyframe", description="Image generation proxy and story generator")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the web server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=BACKEND_PORT)
    serve.add_argument("--dev", action="store_true", help="Auto-reload on code changes")

    scenes = sub.add_parser("scenes", help="Generate a multi-scene story")
    scenes.add_argument("prompt")
    scenes.add_argument("--scenes", type=int, default=5, help="Number of scenes (2-8)")
    scenes.add_argument("--model", default=None)
    scenes.add_argument("--zip", type=Path, default=None, help="Write successful scenes to this ZIP file")
    scenes.add_argument("--server", default=f"http://localhost:{BACKEND_PORT}")

    image = sub.add_parser("image", help="Generate a single image")
    image.add_argument("prompt")
    image.add_argument("--size", choices=IMAGE_SIZES, default=None)
    image.add_argument("--model", default=None)
    image.add_argument("--server", default=f"http://localhost:{BACKEND_PORT}")

    configure = sub.add_parser("configure", help="Save upstream settings to ~/.storyframe/config.json")
    configure.add_argument("--base-url", default=None)
    configure.add_argument("--api-key", default=None)
    configure.add_argument("--api-mode", default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    _setup_logging()
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        run_server(args.host, args.port, reload=args.dev)
        return 0
    if args.command == "scenes":
        return run_scenes(args.server, args.prompt, args.scenes, args.model, args.zip)
    if args.command == "image":
        return run_image(args.server, args.prompt, args.size, args.model)
    return run_configure(args.base_url, args.api_key, args.api_mode)


if __name__ == "__main__":
    sys.exit(main())
