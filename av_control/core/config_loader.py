"""Loader for ``key = value`` configuration files."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Optional

from .logging_utils import get_module_logger

logger = get_module_logger("ConfigLoader")

_TRUE_WORDS = ("true", "yes", "on", "1")
_BOOL_WORDS = _TRUE_WORDS + ("false", "no", "off", "0")


class ConfigLoader:
    """Reads flat config files into plain dicts.

    Lines are ``key = value``; blank lines and ``#`` comments are ignored and
    inline ``#`` comments are stripped. When ``defaults`` is given, values are
    coerced to the type of the matching default.
    """

    @staticmethod
    async def load_async(
        config_path: Path,
        defaults: Optional[Dict[str, Any]] = None,
        strict: bool = False,
    ) -> Dict[str, Any]:
        return await asyncio.to_thread(ConfigLoader.load, config_path, defaults, strict)

    @staticmethod
    def load(
        config_path: Path,
        defaults: Optional[Dict[str, Any]] = None,
        strict: bool = False,
    ) -> Dict[str, Any]:
        config = dict(defaults) if defaults else {}
        config_path = Path(config_path)

        if not config_path.exists():
            if defaults:
                logger.debug("Config file not found at %s, using defaults", config_path)
            else:
                logger.warning("Config file not found at %s and no defaults provided", config_path)
            return config

        try:
            text = config_path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to read config file %s: %s", config_path, exc)
            return config

        for line_num, raw_line in enumerate(text.splitlines(), 1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                logger.warning("Invalid config line %d (missing '='): %s", line_num, line)
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.split("#", 1)[0].strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
                value = value[1:-1]

            if strict and defaults is not None and key not in defaults:
                logger.warning("Unknown config key '%s' (line %d) - ignored in strict mode", key, line_num)
                continue

            if defaults and key in defaults:
                config[key] = ConfigLoader._parse_value_with_type(value, defaults[key])
            else:
                config[key] = ConfigLoader._parse_value(value)

        logger.info("Loaded config from %s (%d values)", config_path, len(config))
        return config

    @staticmethod
    def _parse_value(value: str) -> Any:
        if value.lower() in _BOOL_WORDS:
            return value.lower() in _TRUE_WORDS

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    @staticmethod
    def _parse_value_with_type(value: str, default: Any) -> Any:
        if isinstance(default, bool):
            return value.lower() in _TRUE_WORDS

        if isinstance(default, int):
            try:
                return int(value, 0)
            except ValueError:
                logger.warning("Failed to parse '%s' as int, keeping %r", value, default)
                return default

        if isinstance(default, float):
            try:
                return float(value)
            except ValueError:
                logger.warning("Failed to parse '%s' as float, keeping %r", value, default)
                return default

        if isinstance(default, Path):
            return Path(value) if value else default

        return value

    @staticmethod
    def format_value(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    @staticmethod
    def dumps(values: Dict[str, Any]) -> str:
        """Render ``values`` back to config text with keys in sorted order."""
        return "".join(f"{key} = {ConfigLoader.format_value(values[key])}\n" for key in sorted(values))


__all__ = ["ConfigLoader"]
