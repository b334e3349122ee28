"""Unified entrypoint for CLI and UI usage."""

from __future__ import annotations

import argparse
from pathlib import Path

from ears_skin.config import load_config
from ears_skin.main import main as cli_main
from ears_skin.ui.app import create_app


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ears skin tools launcher")
    subparsers = parser.add_subparsers(dest="command")

    ui_parser = subparsers.add_parser("ui", help="Launch the JSON API")
    ui_parser.add_argument("--host", default="127.0.0.1", help="UI host")
    ui_parser.add_argument("--port", type=int, default=5000, help="UI port")
    ui_parser.add_argument("--config", type=Path, help="Optional JSON config path")
    ui_parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")

    cli_parser = subparsers.add_parser("cli", help="Run the skin CLI")
    cli_parser.add_argument("cli_args", nargs=argparse.REMAINDER, help="Arguments passed to the CLI")

    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    if args.command is None:
        args = argparse.Namespace(command="ui", host="127.0.0.1", port=5000, config=None, debug=False)

    if args.command == "ui":
        app = create_app(load_config(args.config))
        app.run(host=args.host, port=args.port, debug=bool(args.debug))
        return

    if args.command == "cli":
        cli_main(args.cli_args)
        return

    raise SystemExit(f"Unknown command: {args.command}")


if __name__ == "__main__":
    main()
