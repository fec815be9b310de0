"""
Room-control binding.

Wires the room-control component's system power, warm-up and fire alarm
points into a RoutingEngine:

- power on routes the power-on input (or re-runs auto-switch when a priority
  list exists); power off routes NoSource;
- fire alarm raises the ``fire_alarm`` override and, when it clears, restores
  the saved routing only while the system is still powered;
- the end of warm-up re-runs auto-switch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

from av_control.core.devices import DeviceHandle, read_bool, unsubscribe_all
from av_control.core.logging_utils import get_module_logger

from .engine import RoutingEngine
from .types import Input, Output

logger = get_module_logger("routing.room")

FIRE_ALARM_REASON = "fire_alarm"
POWER_POINT = "ledSystemPower"
WARMING_POINT = "ledSystemWarming"
FIRE_ALARM_POINT = "ledFireAlarm"


@dataclass
class RoomControlsBinding:
    engine: RoutingEngine
    room: DeviceHandle
    outputs: Optional[List[Output]]
    power_on_input: Optional[Input]
    _unsubscribers: List[Callable[[], None]] = field(default_factory=list)

    @property
    def powered(self) -> bool:
        return read_bool(self.room, POWER_POINT)

    @property
    def warming(self) -> bool:
        return read_bool(self.room, WARMING_POINT)

    @property
    def fire_alarm(self) -> bool:
        return read_bool(self.room, FIRE_ALARM_POINT)

    def ready_for_auto_switch(self) -> bool:
        return self.powered and not self.warming

    def on_power(self, _point: str, value: Any) -> None:
        powered = bool(value)
        logger.info("System power %s", "on" if powered else "off")
        if not powered:
            self.engine.set_source_all(self.engine.table.no_source, self.outputs)
            return
        if self.engine.priority.has_sources:
            self.engine.on_priority_condition_changed()
        elif self.power_on_input is not None:
            self.engine.set_source_all(self.power_on_input, self.outputs)

    def on_warming(self, _point: str, value: Any) -> None:
        logger.debug("System warming %s", bool(value))
        if not value:
            self.engine.on_priority_condition_changed()

    def on_fire_alarm(self, _point: str, value: Any) -> None:
        if value:
            logger.warning("Fire alarm active; muting outputs")
            self.engine.on_override_trigger(FIRE_ALARM_REASON, self.engine.table.no_source, self.outputs)
        else:
            logger.info("Fire alarm cleared")
            self.engine.on_override_clear(FIRE_ALARM_REASON, guard=lambda: self.powered)

    def unbind(self) -> None:
        unsubscribe_all(self._unsubscribers)
        self._unsubscribers = []


def bind_room_controls(
    engine: RoutingEngine,
    room: DeviceHandle,
    *,
    outputs: Optional[Iterable[Output]] = None,
    power_on_input: Optional[Input] = None,
    gate_auto_switch: bool = True,
) -> RoomControlsBinding:
    """Subscribe ``engine`` to ``room``'s power, warm-up and fire alarm points.

    If the alarm is already active at bind time the override is raised
    immediately.
    """

    binding = RoomControlsBinding(
        engine=engine,
        room=room,
        outputs=list(outputs) if outputs is not None else None,
        power_on_input=power_on_input,
    )
    binding._unsubscribers = [
        room.subscribe(POWER_POINT, binding.on_power),
        room.subscribe(WARMING_POINT, binding.on_warming),
        room.subscribe(FIRE_ALARM_POINT, binding.on_fire_alarm),
    ]
    if gate_auto_switch:
        engine.set_auto_switch_gate(binding.ready_for_auto_switch)
    if binding.fire_alarm:
        binding.on_fire_alarm(FIRE_ALARM_POINT, True)
    logger.info("Room controls %s bound to %s", room.name, engine.name)
    return binding


__all__ = [
    "FIRE_ALARM_POINT",
    "FIRE_ALARM_REASON",
    "POWER_POINT",
    "RoomControlsBinding",
    "WARMING_POINT",
    "bind_room_controls",
]
