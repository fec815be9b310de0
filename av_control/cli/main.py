"""Command line entry point: ``av-control``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from av_control.config import EngineConfig
from av_control.core.logging_utils import get_module_logger
from av_control.presets.store import PresetStore
from av_control.routing.tolerance import PresetValue, matches

from .common import add_common_cli_arguments, non_negative_float, setup_logging

logger = get_module_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="av-control",
        description="Tools for the AV routing and preset engine",
    )
    add_common_cli_arguments(parser)
    commands = parser.add_subparsers(dest="command", required=True)

    match_cmd = commands.add_parser("match", help="Compare a live PTZ position with a saved preset")
    match_cmd.add_argument("current", help='Live position, e.g. "1.05 2.00 0.30"')
    match_cmd.add_argument("saved", help='Saved preset, e.g. "1.00 2.00 0.30"')
    match_cmd.add_argument(
        "--tolerance",
        type=non_negative_float,
        default=None,
        help="Per-axis tolerance (defaults to preset_tolerance from the config)",
    )
    match_cmd.add_argument("--moving", action="store_true", help="Treat the camera as moving")

    presets_cmd = commands.add_parser("presets", help="Inspect a preset file")
    presets_cmd.add_argument("path", type=Path, nargs="?", default=None, help="Preset JSON file")
    presets_cmd.add_argument("--device", default=None, help="Only show this device")
    presets_cmd.add_argument(
        "--normalize",
        action="store_true",
        help="Rewrite the file with stable key ordering",
    )
    return parser


def _run_match(args: argparse.Namespace, config: EngineConfig) -> int:
    tolerance = config.preset_tolerance if args.tolerance is None else args.tolerance
    for label, text in (("current", args.current), ("saved", args.saved)):
        if PresetValue.parse(text) is None:
            logger.warning("%s position %r is not 'pan tilt zoom'; comparing exactly", label, text)
    result = matches(args.current, args.saved, tolerance, args.moving)
    print("match" if result else "no match")
    return 0 if result else 1


def _run_presets(args: argparse.Namespace, config: EngineConfig) -> int:
    path = args.path or config.presets_path
    store = PresetStore(path=path)
    if not path.exists():
        print(f"{path}: no such file", file=sys.stderr)
        return 2
    if not store.load():
        print(f"{path}: invalid preset document", file=sys.stderr)
        return 2

    devices = [args.device] if args.device else store.devices()
    for device in devices:
        values = store.presets(device)
        if not values:
            print(f"{device}: (none)")
            continue
        print(f"{device}:")
        for index, value in enumerate(values, 1):
            print(f"  {index}: {value}")

    if args.normalize:
        if store.save(path, force=True):
            logger.info("Normalized %s", path)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = EngineConfig.load(args.config)
    setup_logging(args, config.log_level)

    if args.command == "match":
        return _run_match(args, config)
    if args.command == "presets":
        return _run_presets(args, config)
    parser.error(f"unknown command {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
