"""
RoutingEngine - composition root for one controlled router.

The engine owns the route table, the override stack, the priority list and
one button classifier per preset button. UI and device callbacks call into
it; it writes routes to the router handle and reports an unreachable router
through ``ComponentStatus`` instead of raising.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence

from av_control.core.devices import DeviceHandle, unsubscribe_all
from av_control.core.logging_utils import get_module_logger
from av_control.core.scheduler import Scheduler
from av_control.core.status import ComponentStatus

from .buttons import ButtonClassifier, ButtonState, PressKind
from .overrides import OverrideStack
from .priority import PriorityEvaluator, PrioritySource
from .route_table import RouteTable
from .types import NO_SOURCE, ButtonId, Input, Output, Predicate

logger = get_module_logger("routing.engine")

ROUTER_ROLE = "router"


class PresetActions(Protocol):
    """What a preset button does; implemented by the preset controller."""

    def recall(self, index: int) -> None:
        ...

    def save(self, index: int) -> None:
        ...

    def refresh_matches(self) -> Any:
        ...

    def hold_reached(self, index: int) -> None:
        ...


def default_output_point(output: Output) -> str:
    return f"select.{output}"


def decode_input(value: Any) -> Input:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return text
    return value


class RoutingEngine:
    """Routes inputs to outputs under override and auto-switch rules."""

    def __init__(
        self,
        outputs: Iterable[Output],
        scheduler: Scheduler,
        *,
        router: Optional[DeviceHandle] = None,
        status: Optional[ComponentStatus] = None,
        priority_sources: Sequence[PrioritySource] = (),
        auto_outputs: Optional[Iterable[Output]] = None,
        auto_switch_gate: Optional[Predicate] = None,
        preset_actions: Optional[PresetActions] = None,
        hold_threshold: float = 3.0,
        default_input: Input = 1,
        no_source: Input = NO_SOURCE,
        output_point: Callable[[Output], str] = default_output_point,
        encode_input: Callable[[Input], Any] = lambda value: value,
        name: str = "RoutingEngine",
    ) -> None:
        self.name = name
        self.logger = logger.getChild(name) if name != "RoutingEngine" else logger
        self._scheduler = scheduler
        self.status = status or ComponentStatus()
        self.table = RouteTable(
            outputs,
            default_input=default_input,
            no_source=no_source,
            applier=self._apply_route,
        )
        self.overrides = OverrideStack(self.table)
        self.priority = PriorityEvaluator(priority_sources)
        self._auto_outputs = list(auto_outputs) if auto_outputs is not None else self.table.outputs
        self._auto_switch_gate = auto_switch_gate
        self.preset_actions = preset_actions
        self._hold_threshold = hold_threshold
        self._buttons: Dict[ButtonId, ButtonClassifier] = {}
        self._output_point = output_point
        self._encode_input = encode_input
        self._router: Optional[DeviceHandle] = None
        self._router_subscriptions: List[Callable[[], None]] = []
        self.attach_router(router)

    # ------------------------------------------------------------------
    # Router handle

    @property
    def router(self) -> Optional[DeviceHandle]:
        return self._router

    @property
    def router_valid(self) -> bool:
        return self._router is not None and self.status.is_valid(ROUTER_ROLE)

    def attach_router(self, router: Optional[DeviceHandle]) -> None:
        """Switch to another router handle (or none) and follow its feedback."""
        unsubscribe_all(self._router_subscriptions)
        self._router_subscriptions = []
        self._router = router
        if router is None:
            return
        self.status.set_valid(ROUTER_ROLE)
        for output in self.table.outputs:
            point = self._output_point(output)
            self._router_subscriptions.append(
                router.subscribe(point, lambda _point, value, output=output: self._on_router_feedback(output, value))
            )
        self.logger.info("Router %s attached for outputs %s", router.name, self.table.outputs)

    def _on_router_feedback(self, output: Output, value: Any) -> None:
        self.table.sync_from_device(output, decode_input(value), override=self.overrides.covers(output))

    def _apply_route(self, output: Output, input: Input) -> bool:
        router = self._router
        if router is None:
            self.logger.debug("No router; output %s -> input %s not written", output, input)
            return False
        if not self.status.is_valid(ROUTER_ROLE):
            self.logger.debug("Router marked invalid; output %s -> input %s not written", output, input)
            return False
        result = router.set_property(self._output_point(output), self._encode_input(input))
        if not result.ok:
            self.logger.error("Route write to %s failed: %s", router.name, result.error)
            self.status.set_invalid(ROUTER_ROLE)
            return False
        return True

    # ------------------------------------------------------------------
    # Routing operations

    def set_source(self, input: Input, output: Output) -> bool:
        """Route ``input`` to ``output`` unless an override owns the output."""
        if self.overrides.covers(output):
            self.logger.info(
                "Output %s is held by override %s; ignoring input %s",
                output,
                self.overrides.active_reasons(),
                input,
            )
            return False
        self.table.set_route(output, input)
        return True

    def set_source_all(self, input: Input, outputs: Optional[Iterable[Output]] = None) -> List[Output]:
        targets = list(outputs) if outputs is not None else self.table.outputs
        return [output for output in targets if self.set_source(input, output)]

    def on_override_trigger(
        self,
        reason: str,
        override_input: Optional[Input] = None,
        outputs: Optional[Iterable[Output]] = None,
    ) -> bool:
        target = self.table.no_source if override_input is None else override_input
        return self.overrides.enter(reason, target, outputs)

    def on_override_clear(self, reason: str, guard: Optional[Predicate] = None) -> bool:
        return self.overrides.exit(reason, guard)

    def set_auto_switch_gate(self, gate: Optional[Predicate]) -> None:
        self._auto_switch_gate = gate

    def auto_switch_allowed(self) -> bool:
        if self._auto_switch_gate is None:
            return True
        try:
            return bool(self._auto_switch_gate())
        except Exception:
            self.logger.exception("Auto-switch gate failed; skipping evaluation")
            return False

    def on_priority_condition_changed(self) -> Optional[PrioritySource]:
        """Re-run the priority list and move auto-managed outputs to the winner."""
        if not self.priority.has_sources:
            return None
        if not self.auto_switch_allowed():
            self.logger.debug("Auto-switch gated off")
            return None

        winner = self.priority.evaluate()
        if winner is None:
            return None

        stale = [output for output in self._auto_outputs if self.table.current_input(output) != winner.input]
        if stale:
            self.logger.info("Auto-switching outputs %s to %s (input %s)", stale, winner.name, winner.input)
            for output in stale:
                self.set_source(winner.input, output)
        return winner

    # ------------------------------------------------------------------
    # Preset buttons

    @property
    def hold_threshold(self) -> float:
        return self._hold_threshold

    def set_hold_threshold(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError("hold_threshold must be positive")
        self._hold_threshold = seconds
        for classifier in self._buttons.values():
            classifier.set_hold_threshold(seconds)
        self.logger.debug("Hold threshold set to %.2fs", seconds)

    def register_button(
        self,
        button_id: ButtonId,
        *,
        is_down: Optional[Callable[[], bool]] = None,
    ) -> ButtonClassifier:
        classifier = self._buttons.get(button_id)
        if classifier is None:
            classifier = ButtonClassifier(
                button_id,
                self._scheduler,
                self._hold_threshold,
                on_short=self._recall_preset,
                on_long=self._save_preset,
                on_hold=self._hold_reached,
                is_down=is_down,
            )
            self._buttons[button_id] = classifier
        return classifier

    def on_button_event(self, button_id: ButtonId, pressed: bool) -> Optional[PressKind]:
        return self.register_button(button_id).handle(pressed)

    def button_state(self, button_id: ButtonId) -> ButtonState:
        classifier = self._buttons.get(button_id)
        if classifier is None:
            return ButtonState(hold_threshold=self._hold_threshold)
        return classifier.state

    def _recall_preset(self, button_id: ButtonId) -> None:
        if self.preset_actions is None:
            self.logger.debug("Short press on %s with no preset actions", button_id)
            return
        self.preset_actions.recall(button_id)
        self.preset_actions.refresh_matches()

    def _save_preset(self, button_id: ButtonId) -> None:
        if self.preset_actions is None:
            self.logger.debug("Long press on %s with no preset actions", button_id)
            return
        self.preset_actions.save(button_id)
        self.preset_actions.refresh_matches()

    def _hold_reached(self, button_id: ButtonId) -> None:
        if self.preset_actions is not None:
            self.preset_actions.hold_reached(button_id)

    # ------------------------------------------------------------------
    # Status accessors

    def current_input(self, output: Output) -> Input:
        return self.table.current_input(output)

    def last_input(self, output: Output) -> Input:
        return self.table.last_input(output)

    def is_override_active(self, reason: Optional[str] = None) -> bool:
        return self.overrides.is_active(reason)

    def status_snapshot(self) -> Dict[str, Any]:
        winner = self.priority.last_winner
        component_status = self.status.snapshot()
        return {
            "routes": self.table.routes(),
            "last_inputs": self.table.last_inputs(),
            "overrides": self.overrides.active_reasons(),
            "status": component_status.text,
            "status_code": component_status.code,
            "invalid_components": list(component_status.invalid_roles),
            "auto_switch_winner": winner.name if winner is not None else None,
            "buttons": {
                button_id: classifier.phase.value for button_id, classifier in self._buttons.items()
            },
        }

    def shutdown(self) -> None:
        for classifier in self._buttons.values():
            classifier.reset()
        unsubscribe_all(self._router_subscriptions)
        self._router_subscriptions = []
        self.logger.info("Shut down")


__all__ = ["PresetActions", "ROUTER_ROLE", "RoutingEngine", "decode_input", "default_output_point"]
