"""
Component validity tracking.

Each logical role a controller depends on (router, room controls, a camera)
is either valid or invalid. An invalid role disables the operations that
target it but never stops the rest of the controller. The aggregate status is
what the UI layer renders.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .devices import DeviceHandle, count_points
from .logging_utils import get_module_logger

logger = get_module_logger("ComponentStatus")

CLEAR_SELECTION = "[Clear]"


class StatusLevel(Enum):
    OK = 0
    INVALID = 1


@dataclass(frozen=True)
class StatusSnapshot:
    level: StatusLevel
    invalid_roles: tuple

    @property
    def text(self) -> str:
        return "OK" if self.level is StatusLevel.OK else "Invalid Components"

    @property
    def code(self) -> int:
        return self.level.value


StatusListener = Callable[[StatusSnapshot], None]


class ComponentStatus:
    """Tracks which roles are invalid and reports the aggregate status."""

    def __init__(self, on_change: Optional[StatusListener] = None) -> None:
        self._invalid: Dict[str, bool] = {}
        self._on_change = on_change
        self._last = self.snapshot()

    def set_valid(self, role: str) -> None:
        self._set(role, False)

    def set_invalid(self, role: str) -> None:
        self._set(role, True)

    def is_valid(self, role: str) -> bool:
        return not self._invalid.get(role, False)

    def forget(self, role: str) -> None:
        if self._invalid.pop(role, None) is not None:
            self._publish()

    def invalid_roles(self) -> List[str]:
        return sorted(role for role, invalid in self._invalid.items() if invalid)

    def snapshot(self) -> StatusSnapshot:
        invalid = tuple(self.invalid_roles())
        level = StatusLevel.INVALID if invalid else StatusLevel.OK
        return StatusSnapshot(level=level, invalid_roles=invalid)

    @property
    def text(self) -> str:
        return self.snapshot().text

    @property
    def code(self) -> int:
        return self.snapshot().code

    def _set(self, role: str, invalid: bool) -> None:
        previous = self._invalid.get(role)
        self._invalid[role] = invalid
        if previous != invalid:
            if invalid:
                logger.warning("Component role '%s' is invalid", role)
            else:
                logger.debug("Component role '%s' is valid", role)
        self._publish()

    def _publish(self) -> None:
        current = self.snapshot()
        if current == self._last:
            return
        self._last = current
        if self._on_change is not None:
            try:
                self._on_change(current)
            except Exception:
                logger.exception("Status listener failed")


def resolve_component(
    selection: str,
    lookup: Callable[[str], Optional[DeviceHandle]],
    role: str,
    status: ComponentStatus,
) -> Optional[DeviceHandle]:
    """Turn a UI component selection into a handle, updating ``status``.

    An empty selection or the clear sentinel leaves the role unassigned but
    valid. A name that does not resolve, or resolves to a component with no
    controllable points, marks the role invalid.
    """

    name = (selection or "").strip()
    if not name or name == CLEAR_SELECTION:
        logger.debug("No %s component selected", role)
        status.set_valid(role)
        return None

    handle = lookup(name)
    if handle is None or count_points(handle) < 1:
        logger.warning("%s component %s is invalid", role, name)
        status.set_invalid(role)
        return None

    logger.info("Using %s component %s", role, name)
    status.set_valid(role)
    return handle


__all__ = [
    "CLEAR_SELECTION",
    "ComponentStatus",
    "StatusLevel",
    "StatusSnapshot",
    "resolve_component",
]
