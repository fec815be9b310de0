"""Type coercion helpers for building typed configs from loose mappings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping


def get_pref_str(values: Mapping[str, Any], key: str, default: str) -> str:
    val = values.get(key)
    return str(val) if val is not None else default


def get_pref_int(values: Mapping[str, Any], key: str, default: int) -> int:
    val = values.get(key)
    if val is None or isinstance(val, bool):
        return default
    try:
        return int(val)
    except (ValueError, TypeError):
        return default


def get_pref_float(values: Mapping[str, Any], key: str, default: float) -> float:
    val = values.get(key)
    if val is None or isinstance(val, bool):
        return default
    try:
        return float(val)
    except (ValueError, TypeError):
        return default


def get_pref_bool(values: Mapping[str, Any], key: str, default: bool) -> bool:
    val = values.get(key)
    if val is None:
        return default
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in {"true", "1", "yes", "on"}


def get_pref_path(values: Mapping[str, Any], key: str, default: Path) -> Path:
    val = values.get(key)
    if val is None:
        return default
    text = str(val).strip()
    return Path(text) if text else default


__all__ = [
    "get_pref_str",
    "get_pref_int",
    "get_pref_float",
    "get_pref_bool",
    "get_pref_path",
]
