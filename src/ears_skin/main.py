"""Command line entry point for inspecting and editing Ears skins."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ears_skin.config import Config, load_config
from ears_skin.container import EraseRegion
from ears_skin.errors import SkinDataError
from ears_skin.io import load_skin_bytes, save_layers
from ears_skin.layers import SkinEdit, decompose_for_render, open_session, recompose_for_save
from ears_skin.wire import container_to_wire, edit_from_wire, features_to_wire, parse_payload


def _region(text: str) -> EraseRegion:
    parts = text.split(",")
    if len(parts) != 4:
        raise argparse.ArgumentTypeError(f"Expected x,y,width,height, got {text!r}")
    try:
        return EraseRegion(*(int(part) for part in parts))
    except (ValueError, SkinDataError) as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ears skin container and feature tools")
    parser.add_argument("--config", type=Path, help="Optional JSON config path")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    inspect_parser = subparsers.add_parser("inspect", help="Print the features and container of a skin")
    inspect_parser.add_argument("skin", type=Path, help="Path to skin image")

    erase_parser = subparsers.add_parser("erase", help="List or replace the erase regions of a skin")
    erase_parser.add_argument("skin", type=Path, help="Path to skin image")
    erase_parser.add_argument(
        "--region",
        type=_region,
        action="append",
        default=[],
        help="Erase region as x,y,width,height (repeatable)",
    )
    erase_parser.add_argument("--clear", action="store_true", help="Remove every erase region")
    erase_parser.add_argument("--output", type=Path, help="Where to write the edited skin")

    render_parser = subparsers.add_parser("render", help="Write the render layers of a skin as PNG files")
    render_parser.add_argument("skin", type=Path, help="Path to skin image")
    render_parser.add_argument("--output-dir", type=Path, required=True, help="Output directory")

    apply_parser = subparsers.add_parser("apply", help="Apply a JSON edit to a skin")
    apply_parser.add_argument("skin", type=Path, help="Path to skin image")
    apply_parser.add_argument("--edit", type=Path, required=True, help="Path to JSON edit")
    apply_parser.add_argument("--output", type=Path, required=True, help="Where to write the edited skin")

    return parser.parse_args(argv)


def _inspect(args: argparse.Namespace, config: Config) -> None:
    session = open_session(load_skin_bytes(args.skin), config)
    report = {
        "size": [int(session.base.shape[1]), int(session.base.shape[0])],
        "features": features_to_wire(session.features, session.palette),
        "palette": [list(color) for color in session.palette] if session.palette else [],
        "container": container_to_wire(session.container),
    }
    print(json.dumps(report, indent=2))


def _erase(args: argparse.Namespace, config: Config) -> None:
    session = open_session(load_skin_bytes(args.skin), config)
    if not args.region and not args.clear:
        regions = session.container.get_erase_regions() or []
        print(f"Erase regions: {len(regions)}")
        for region in regions:
            print(f"  {region.x},{region.y} {region.width}x{region.height}")
        return
    if args.output is None:
        raise SystemExit("erase: --output is required when changing regions")
    regions = [] if args.clear else args.region
    data = recompose_for_save(session, SkinEdit(erase_regions=regions), config)
    args.output.write_bytes(data)
    print(f"Wrote {len(regions)} erase regions to {args.output}")


def _render(args: argparse.Namespace, config: Config) -> None:
    session = open_session(load_skin_bytes(args.skin), config)
    layers = decompose_for_render(session, config)
    save_layers(args.output_dir, layers)
    print(f"Layers: {', '.join(sorted(layers))}")
    print(f"Output: {args.output_dir}")


def _apply(args: argparse.Namespace, config: Config) -> None:
    payload = parse_payload(args.edit.read_text())
    edit = edit_from_wire(payload, default_data_version=config.default_data_version)
    session = open_session(load_skin_bytes(args.skin), config)
    data = recompose_for_save(session, edit, config)
    args.output.write_bytes(data)
    print(f"Saved {args.output}")


_COMMANDS = {
    "inspect": _inspect,
    "erase": _erase,
    "render": _render,
    "apply": _apply,
}


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = load_config(args.config)
    try:
        _COMMANDS[args.command](args, config)
    except SkinDataError as exc:
        print(f"Error: {exc.user_message} ({exc})", file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
