"""Routing and override engine for AV device-control automation."""

from __future__ import annotations

from importlib import metadata

from .config import EngineConfig
from .presets import CameraPresetController, PresetStore
from .routing import RoutingEngine

try:
    __version__ = metadata.version("av-control")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


__all__ = [
    "CameraPresetController",
    "EngineConfig",
    "PresetStore",
    "RoutingEngine",
    "__version__",
]
