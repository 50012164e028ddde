"""
Entry point for the isotiler application.

``python run.py serve`` starts the FastAPI server.  ``python run.py
render LIBRARY CONFIG OUTPUT`` renders one scene from a tile library
and a TOML scene configuration without starting the server.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parent / "backend"
    if str(backend_dir) not in sys.path:
        sys.path.append(str(backend_dir))


def serve(host: str, port: int) -> None:
    """Run the Uvicorn server hosting the isotiler API."""
    _ensure_backend_on_path()
    from isotiler.main import app  # type: ignore

    uvicorn.run(app, host=host, port=port)


def render(library: str, config: str, output: str) -> None:
    _ensure_backend_on_path()
    from isotiler.services.scene import render_scene_files  # type: ignore

    render_scene_files(library, config, output)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Isometric tile compositor")
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="start the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)

    render_parser = subparsers.add_parser("render", help="render a scene to an SVG file")
    render_parser.add_argument("library", help="tile library SVG")
    render_parser.add_argument("config", help="scene configuration TOML")
    render_parser.add_argument("output", help="path of the SVG to write")

    args = parser.parse_args(argv)
    if args.command == "render":
        render(args.library, args.config, args.output)
    else:
        serve(getattr(args, "host", "0.0.0.0"), getattr(args, "port", 8000))


if __name__ == "__main__":
    main()
