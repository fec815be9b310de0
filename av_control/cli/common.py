from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Optional

from av_control.core.logging_config import configure_logging

LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def add_common_cli_arguments(parser: argparse.ArgumentParser, *, include_config: bool = True) -> None:
    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default=None,
        help="Logging verbosity (defaults to the config file's log_level)",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional path to write logs to (rotated)",
    )

    if include_config:
        parser.add_argument(
            "--config",
            type=Path,
            default=None,
            help="Configuration file (key = value); defaults to the packaged config.txt",
        )


def _non_negative_number(value: str, typ: type, name: str):
    try:
        parsed = typ(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Value must be a {name}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("Value must not be negative")
    return parsed


def non_negative_float(value: str) -> float:
    return _non_negative_number(value, float, "number")


def setup_logging(args: Any, default_level: str = "info", *, console: bool = True) -> None:
    level_name: Optional[str] = getattr(args, "log_level", None) or default_level
    configure_logging(
        LOG_LEVELS.get(level_name, logging.INFO),
        console=console,
        log_file=getattr(args, "log_file", None),
    )


__all__ = [
    "LOG_LEVELS",
    "add_common_cli_arguments",
    "non_negative_float",
    "setup_logging",
]
