"""Approximate matching of live pan/tilt/zoom state against saved presets."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

from av_control.core.logging_utils import get_module_logger

logger = get_module_logger("routing.tolerance")

DEFAULT_PRESET = "0 0 0"

_NUMBER = r"([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)"
_PRESET_PATTERN = re.compile(rf"\s*{_NUMBER}\s+{_NUMBER}\s+{_NUMBER}")


@dataclass(frozen=True)
class PresetValue:
    """One camera position as pan, tilt and zoom."""

    pan: float
    tilt: float
    zoom: float

    @classmethod
    def parse(cls, text: str) -> Optional["PresetValue"]:
        """Parse the leading ``"pan tilt zoom"`` fields; returns None when they are missing.

        Anything after the third number is ignored.
        """
        if not isinstance(text, str):
            return None
        match = _PRESET_PATTERN.match(text)
        if match is None:
            return None
        pan, tilt, zoom = (float(part) for part in match.groups())
        return cls(pan, tilt, zoom)

    def format(self, precision: int = 2) -> str:
        return f"{self.pan:.{precision}f} {self.tilt:.{precision}f} {self.zoom:.{precision}f}"

    def within(self, other: "PresetValue", tolerance: float) -> bool:
        return (
            abs(self.pan - other.pan) <= tolerance
            and abs(self.tilt - other.tilt) <= tolerance
            and abs(self.zoom - other.zoom) <= tolerance
        )


PresetLike = Union[str, PresetValue]


def _as_text(value: PresetLike) -> str:
    return value.format() if isinstance(value, PresetValue) else value


def _as_preset(value: PresetLike) -> Optional[PresetValue]:
    return value if isinstance(value, PresetValue) else PresetValue.parse(value)


def matches(
    current: PresetLike,
    saved: PresetLike,
    tolerance: float,
    is_moving: bool = False,
) -> bool:
    """True when ``current`` is within ``tolerance`` of ``saved`` on every axis.

    A moving device never matches. Identical representations always match,
    which also covers saved defaults that were never parsed. If either side
    cannot be parsed the comparison is the exact one, which has already
    failed at that point.
    """

    if is_moving:
        return False
    if tolerance < 0:
        raise ValueError("tolerance must be non-negative")
    if current == saved:
        return True

    current_value = _as_preset(current)
    saved_value = _as_preset(saved)
    if current_value is None or saved_value is None:
        logger.debug("Unparseable preset (%r vs %r), using exact comparison", current, saved)
        return False

    result = current_value.within(saved_value, tolerance)
    if not result:
        logger.debug(
            "Tolerance check failed - current %s, saved %s, tolerance %.3f "
            "(pan diff %.3f, tilt diff %.3f, zoom diff %.3f)",
            _as_text(current),
            _as_text(saved),
            tolerance,
            abs(current_value.pan - saved_value.pan),
            abs(current_value.tilt - saved_value.tilt),
            abs(current_value.zoom - saved_value.zoom),
        )
    return result


class ToleranceMatcher:
    """``matches`` bound to a configured tolerance."""

    def __init__(self, tolerance: float = 0.1) -> None:
        if tolerance < 0:
            raise ValueError("tolerance must be non-negative")
        self.tolerance = tolerance

    def __call__(self, current: PresetLike, saved: PresetLike, is_moving: bool = False) -> bool:
        return matches(current, saved, self.tolerance, is_moving)


__all__ = ["DEFAULT_PRESET", "PresetValue", "ToleranceMatcher", "matches"]
