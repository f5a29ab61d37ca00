# Path: scripts/wall_cli.py
# Purpose: Command line interface for inspecting and editing the stored picture wall.
# Layer: scripts.
# Details: Operates on the same SQLite slots as the desktop app and can launch the API server or the GUI.

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Ensure project root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import AppSettings, configure_logging
from core.models.domain import WALL_TEXTURES, WINDOW_STYLES
from gui.view_models import BoardViewModel, open_board

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the picture wall board")
    parser.add_argument("--storage", type=Path, default=None, help="Override the board storage path")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="Print every picture and window on the wall")

    generate = subparsers.add_parser("generate", help="Generate an image from a prompt and hang it")
    generate.add_argument("--prompt", type=str, required=True, help="Text prompt for the image provider")

    upload = subparsers.add_parser("upload", help="Hang a local image file")
    upload.add_argument("--file", type=Path, required=True, help="Image file (10MB max)")

    window = subparsers.add_parser("add-window", help="Add a decorative window")
    window.add_argument("--style", choices=WINDOW_STYLES, default=WINDOW_STYLES[0])

    remove = subparsers.add_parser("remove", help="Remove a picture or window by id")
    remove.add_argument("--id", dest="entity_id", type=str, required=True)

    clear = subparsers.add_parser("clear", help="Remove every picture and window")
    clear.add_argument("--yes", action="store_true", help="Confirm clearing the wall")

    settings = subparsers.add_parser("settings", help="Show or change the wall appearance")
    settings.add_argument("--color", type=str, default=None, help="Background colour, e.g. #FEF3C7")
    settings.add_argument("--texture", choices=WALL_TEXTURES, default=None)

    serve = subparsers.add_parser("serve", help="Run the image generation HTTP API")
    serve.add_argument("--host", type=str, default=None)
    serve.add_argument("--port", type=int, default=None)

    chat = subparsers.add_parser("chat", help="Send one message to the configured LLM")
    chat.add_argument("--message", type=str, required=True)

    subparsers.add_parser("gui", help="Open the desktop picture wall")
    return parser


def print_board(view_model: BoardViewModel) -> None:
    store = view_model.store
    settings = store.settings
    print(f"wall background={settings.background_color} texture={settings.texture}")
    for picture in store.pictures:
        print(
            f"picture id={picture.id} pos=({picture.x:.0f},{picture.y:.0f}) "
            f"size={picture.width:.0f}x{picture.height:.0f} prompt={picture.prompt!r}"
        )
    for window in store.windows:
        print(
            f"window id={window.id} pos=({window.x:.0f},{window.y:.0f}) "
            f"size={window.width:.0f}x{window.height:.0f} style={window.style}"
        )


def run_command(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute one parsed subcommand and return the process exit code."""

    if args.command == "serve":
        import uvicorn

        from api.app import create_app

        uvicorn.run(
            create_app(settings=settings),
            host=args.host or settings.api_host,
            port=args.port or settings.api_port,
        )
        return 0
    if args.command == "chat":
        from core.llm import LLMError, create_chat_provider

        try:
            reply = asyncio.run(create_chat_provider(settings.llm).complete(args.message))
        except LLMError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
        print(reply)
        return 0
    if args.command == "gui":
        from gui.main_window import run_gui

        return run_gui(settings)

    view_model = open_board(settings)
    if args.command == "list":
        print_board(view_model)
    elif args.command in ("generate", "upload"):
        if args.command == "generate":
            picture = asyncio.run(view_model.add_picture_from_prompt(args.prompt))
        else:
            picture = asyncio.run(view_model.add_picture_from_file(args.file))
        if picture is None:
            print(f"error: {view_model.error}", file=sys.stderr)
            return 1
        print(f"added picture {picture.id}")
    elif args.command == "add-window":
        window = view_model.add_window(args.style)
        print(f"added window {window.id}")
    elif args.command == "remove":
        if args.entity_id not in view_model.store:
            print(f"error: no entity with id {args.entity_id}", file=sys.stderr)
            return 1
        view_model.remove(args.entity_id)
        print(f"removed {args.entity_id}")
    elif args.command == "clear":
        if not args.yes:
            print("error: pass --yes to clear the wall", file=sys.stderr)
            return 1
        view_model.clear_all()
        print("wall cleared")
    elif args.command == "settings":
        view_model.set_wall_settings(background_color=args.color, texture=args.texture)
        settings_now = view_model.store.settings
        print(f"wall background={settings_now.background_color} texture={settings_now.texture}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the picture wall command line."""

    args = build_parser().parse_args(argv)
    settings = AppSettings.from_env()
    if args.storage is not None:
        settings = settings.model_copy(update={"storage_path": args.storage})
    configure_logging(settings)
    return run_command(args, settings)


if __name__ == "__main__":
    sys.exit(main())
