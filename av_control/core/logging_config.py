"""Root logging setup shared by the CLI and any hosting process."""

from __future__ import annotations

import contextlib
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Mapping, Optional, Union

from .logging_utils import MODULE_LOGGER_NAMESPACE

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
_DEFAULT_MAX_BYTES = 500 * 1024
_DEFAULT_BACKUP_COUNT = 2

LevelLike = Union[int, str]

_configured = False


def coerce_level(level: LevelLike) -> int:
    if isinstance(level, str):
        name = level.strip().upper()
        value = logging.getLevelName(name)
        if not isinstance(value, int):
            raise ValueError(f"Unknown log level '{level}'")
        return value
    return int(level)


def _apply_component_levels(levels: Mapping[str, LevelLike]) -> None:
    # Keys are component names relative to the av_control namespace,
    # e.g. {"routing.buttons": "debug"}.
    for component, level in levels.items():
        name = component if component.startswith(MODULE_LOGGER_NAMESPACE) else f"{MODULE_LOGGER_NAMESPACE}.{component}"
        logging.getLogger(name).setLevel(coerce_level(level))


def configure_logging(
    level: LevelLike = logging.INFO,
    *,
    force: bool = False,
    console: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    max_bytes: int = _DEFAULT_MAX_BYTES,
    backup_count: int = _DEFAULT_BACKUP_COUNT,
    component_levels: Optional[Mapping[str, LevelLike]] = None,
) -> None:
    """Install console/file handlers on the root logger.

    Args:
        level: Root level (int or name such as "info").
        force: Rebuild handlers even when logging was configured before.
        console: Emit records to stdout.
        log_file: Optional path for a rotating file handler.
        max_bytes: Size that triggers rotation of ``log_file``.
        backup_count: Rotated files kept next to ``log_file``.
        component_levels: Per-component level overrides inside the
            ``av_control`` namespace.
    """

    global _configured
    numeric_level = coerce_level(level)
    root = logging.getLogger()

    if _configured and not force:
        root.setLevel(numeric_level)
        _apply_component_levels(component_levels or {})
        return

    for handler in list(root.handlers):
        root.removeHandler(handler)
        with contextlib.suppress(Exception):
            handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    if console:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if not root.handlers:
        root.addHandler(logging.NullHandler())

    root.setLevel(numeric_level)
    _apply_component_levels(component_levels or {})
    _configured = True


__all__ = ["configure_logging", "coerce_level", "LOG_FORMAT", "LOG_DATEFMT"]
