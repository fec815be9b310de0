"""Typed configuration for the routing engine and preset controller."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from av_control.core.config_loader import ConfigLoader
from av_control.core.typed_config import (
    get_pref_float,
    get_pref_int,
    get_pref_path,
    get_pref_str,
)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.txt")


@dataclass(slots=True)
class EngineConfig:
    """Timings, tolerances and defaults shared by one controller instance."""

    # Buttons
    hold_time: float = 3.0
    led_on_time: float = 2.5

    # Presets
    preset_tolerance: float = 0.1
    preset_slots: int = 8
    default_camera: str = "devCam01"
    default_preset: int = 1
    presets_path: Path = field(default_factory=lambda: Path("presets.json"))

    # Routing
    default_input: int = 1
    no_source: int = 0
    poll_interval: float = 0.1

    # Logging
    log_level: str = "info"

    def __post_init__(self) -> None:
        if self.hold_time <= 0:
            raise ValueError("hold_time must be positive")
        if self.led_on_time < 0:
            raise ValueError("led_on_time must be non-negative")
        if self.preset_tolerance < 0:
            raise ValueError("preset_tolerance must be non-negative")
        if self.preset_slots < 1:
            raise ValueError("preset_slots must be at least 1")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], args: Any = None) -> "EngineConfig":
        """Build from loose config values with optional CLI overrides."""
        defaults = cls()
        config = cls(
            hold_time=get_pref_float(values, "hold_time", defaults.hold_time),
            led_on_time=get_pref_float(values, "led_on_time", defaults.led_on_time),
            preset_tolerance=get_pref_float(values, "preset_tolerance", defaults.preset_tolerance),
            preset_slots=get_pref_int(values, "preset_slots", defaults.preset_slots),
            default_camera=get_pref_str(values, "default_camera", defaults.default_camera),
            default_preset=get_pref_int(values, "default_preset", defaults.default_preset),
            presets_path=get_pref_path(values, "presets_path", defaults.presets_path),
            default_input=get_pref_int(values, "default_input", defaults.default_input),
            no_source=get_pref_int(values, "no_source", defaults.no_source),
            poll_interval=get_pref_float(values, "poll_interval", defaults.poll_interval),
            log_level=get_pref_str(values, "log_level", defaults.log_level).lower(),
        )
        if args is not None:
            config = config._apply_args_override(args)
        return config

    @classmethod
    def load(cls, path: Optional[Path] = None, args: Any = None) -> "EngineConfig":
        target = Path(path) if path is not None else DEFAULT_CONFIG_PATH
        values = ConfigLoader.load(target, cls().to_dict())
        return cls.from_mapping(values, args)

    def _apply_args_override(self, args: Any) -> "EngineConfig":
        overrides = {}
        for key in ("hold_time", "led_on_time", "preset_tolerance", "log_level", "presets_path"):
            value = getattr(args, key, None)
            if value is not None:
                overrides[key] = value
        return replace(self, **overrides) if overrides else self

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


__all__ = ["DEFAULT_CONFIG_PATH", "EngineConfig"]
