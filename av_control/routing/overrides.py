"""
Override frames layered on top of steady-state routing.

A frame is pushed when a higher-priority system event (fire alarm, system
power-down) takes over a set of outputs and popped when the event clears.
Frames form a LIFO stack with one frame per reason:

- entering a reason that is already active is a no-op, so the first
  snapshot is never overwritten;
- exiting the newest frame restores the routes it saved, provided the
  caller's guard still holds;
- exiting an older frame leaves the device alone (a newer override owns the
  outputs) and hands its saved routes to the next newer frame covering each
  output, so the last exit restores the routing in force before any override.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from av_control.core.logging_utils import get_module_logger

from .route_table import RouteTable
from .types import Input, Output, Predicate

logger = get_module_logger("routing.overrides")


@dataclass
class OverrideFrame:
    reason: str
    override_input: Input
    outputs: Tuple[Output, ...]
    saved_routes: Dict[Output, Input] = field(default_factory=dict)
    active: bool = True

    def covers(self, output: Output) -> bool:
        return output in self.outputs


def _guard_holds(guard: Optional[Predicate], reason: str) -> bool:
    if guard is None:
        return True
    try:
        return bool(guard())
    except Exception:
        logger.exception("Restore guard for '%s' failed; not restoring", reason)
        return False


class OverrideStack:
    """Push/pop of saved routing for transient overrides."""

    def __init__(self, table: RouteTable) -> None:
        self._table = table
        self._frames: List[OverrideFrame] = []

    # ------------------------------------------------------------------
    # Inspection

    def is_active(self, reason: Optional[str] = None) -> bool:
        if reason is None:
            return bool(self._frames)
        return self._find(reason) is not None

    def active_reasons(self) -> List[str]:
        """Reasons from oldest to newest."""
        return [frame.reason for frame in self._frames]

    def frame(self, reason: str) -> Optional[OverrideFrame]:
        return self._find(reason)

    def covers(self, output: Output) -> bool:
        return any(frame.covers(output) for frame in self._frames)

    def _find(self, reason: str) -> Optional[OverrideFrame]:
        for frame in self._frames:
            if frame.reason == reason:
                return frame
        return None

    # ------------------------------------------------------------------
    # Transitions

    def enter(self, reason: str, override_input: Input, outputs: Optional[Iterable[Output]] = None) -> bool:
        """Activate ``reason``; returns False when it was already active."""
        if self._find(reason) is not None:
            logger.debug("Override '%s' already active", reason)
            return False

        targets = tuple(dict.fromkeys(outputs)) if outputs is not None else tuple(self._table.outputs)
        frame = OverrideFrame(
            reason=reason,
            override_input=override_input,
            outputs=targets,
            saved_routes=self._table.snapshot(targets),
        )
        self._frames.append(frame)
        logger.info(
            "Override '%s' active on outputs %s (saved %s)",
            reason,
            list(targets),
            frame.saved_routes,
        )
        for output in targets:
            self._table.set_route(output, override_input, override=True)
        return True

    def exit(self, reason: str, guard: Optional[Predicate] = None) -> bool:
        """Clear ``reason``; returns False when it was not active."""
        frame = self._find(reason)
        if frame is None:
            logger.debug("Override '%s' not active", reason)
            return False

        index = self._frames.index(frame)
        self._frames.pop(index)
        frame.active = False

        newer = self._frames[index:]
        to_restore: Dict[Output, Input] = {}
        for output in frame.outputs:
            owner = next((f for f in newer if f.covers(output)), None)
            if owner is not None:
                owner.saved_routes[output] = frame.saved_routes[output]
                logger.debug(
                    "Override '%s' cleared under '%s'; output %s now restores to %s",
                    reason,
                    owner.reason,
                    output,
                    frame.saved_routes[output],
                )
            else:
                to_restore[output] = frame.saved_routes[output]

        if not to_restore:
            return True

        if not _guard_holds(guard, reason):
            logger.info("Override '%s' cleared; guard false, leaving outputs %s as is", reason, list(to_restore))
            return True

        logger.info("Override '%s' cleared; restoring %s", reason, to_restore)
        for output, input in to_restore.items():
            self._table.set_route(output, input, override=self.covers(output))
        return True

    def clear(self) -> None:
        """Drop every frame without touching routes."""
        for frame in self._frames:
            frame.active = False
        self._frames.clear()


__all__ = ["OverrideFrame", "OverrideStack"]
