"""
Device capability handles.

A controlled component (router, camera, room-control script, ...) is seen
through a small capability interface: read and write named points, fire
trigger points, and subscribe to point changes. Reads and writes never raise;
they return a ``PropertyResult`` so callers decide how an unavailable device
degrades.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Union

from .logging_utils import get_module_logger

logger = get_module_logger("Devices")

PointValue = Union[bool, int, float, str]
PointCallback = Callable[[str, Any], None]


class DeviceUnavailableError(Exception):
    """Raised (or reported) when a device or one of its points cannot be reached."""

    def __init__(self, device: str, point: Optional[str] = None, reason: str = "unavailable") -> None:
        self.device = device
        self.point = point
        self.reason = reason
        target = f"{device}.{point}" if point else device
        super().__init__(f"{target}: {reason}")


@dataclass(frozen=True)
class PropertyResult:
    """Outcome of a point access: a value or the error that prevented it."""

    value: Any = None
    error: Optional[DeviceUnavailableError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value

    def value_or(self, default: Any) -> Any:
        return default if self.error is not None else self.value


class DeviceHandle(Protocol):
    """Capability-style view of one controllable component."""

    @property
    def name(self) -> str:
        ...

    def points(self) -> List[str]:
        ...

    def get_property(self, point: str) -> PropertyResult:
        ...

    def set_property(self, point: str, value: PointValue) -> PropertyResult:
        ...

    def trigger(self, point: str) -> PropertyResult:
        ...

    def subscribe(self, point: str, callback: PointCallback) -> Callable[[], None]:
        ...


class MemoryDevice:
    """In-process device with a fixed set of points.

    Used for simulations and as the stand-in for hardware in tests. Writes
    notify subscribers synchronously, like a control-change event. A device
    can be taken offline to exercise the unavailable paths.
    """

    def __init__(self, name: str, points: Optional[Dict[str, PointValue]] = None) -> None:
        self._name = name
        self._values: Dict[str, Any] = dict(points or {})
        self._subscribers: Dict[str, List[PointCallback]] = defaultdict(list)
        self._online = True
        self.triggered: List[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        self._online = online

    def points(self) -> List[str]:
        return sorted(self._values)

    def _unavailable(self, point: str, reason: str) -> PropertyResult:
        return PropertyResult(error=DeviceUnavailableError(self._name, point, reason))

    def get_property(self, point: str) -> PropertyResult:
        if not self._online:
            return self._unavailable(point, "offline")
        if point not in self._values:
            return self._unavailable(point, "no such point")
        return PropertyResult(self._values[point])

    def set_property(self, point: str, value: PointValue) -> PropertyResult:
        if not self._online:
            return self._unavailable(point, "offline")
        if point not in self._values:
            return self._unavailable(point, "no such point")
        changed = self._values[point] != value
        self._values[point] = value
        if changed:
            self._notify(point, value)
        return PropertyResult(value)

    def trigger(self, point: str) -> PropertyResult:
        if not self._online:
            return self._unavailable(point, "offline")
        self.triggered.append(point)
        self._notify(point, True)
        return PropertyResult(True)

    def subscribe(self, point: str, callback: PointCallback) -> Callable[[], None]:
        self._subscribers[point].append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(point, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def inject(self, point: str, value: PointValue) -> None:
        """Simulate the device itself changing a point (always notifies)."""
        self._values[point] = value
        self._notify(point, value)

    def _notify(self, point: str, value: Any) -> None:
        for callback in list(self._subscribers.get(point, ())):
            try:
                callback(point, value)
            except Exception:
                logger.exception("Subscriber for %s.%s failed", self._name, point)


def read_bool(device: Optional[DeviceHandle], point: str, default: bool = False) -> bool:
    """Read a boolean point, treating any failure as ``default``."""
    if device is None:
        return default
    result = device.get_property(point)
    if not result.ok:
        logger.debug("Reading %s failed: %s", point, result.error)
        return default
    return bool(result.value)


def count_points(device: Optional[DeviceHandle]) -> int:
    if device is None:
        return 0
    try:
        return len(device.points())
    except DeviceUnavailableError:
        return 0


def unsubscribe_all(unsubscribers: Iterable[Callable[[], None]]) -> None:
    for unsubscribe in unsubscribers:
        unsubscribe()


__all__ = [
    "DeviceHandle",
    "DeviceUnavailableError",
    "MemoryDevice",
    "PointCallback",
    "PointValue",
    "PropertyResult",
    "count_points",
    "read_bool",
    "unsubscribe_all",
]
