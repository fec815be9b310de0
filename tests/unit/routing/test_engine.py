"""Unit tests for RoutingEngine."""

import pytest

from av_control.core.status import ComponentStatus
from av_control.routing.buttons import ButtonPhase, PressKind
from av_control.routing.engine import ROUTER_ROLE, RoutingEngine, decode_input
from av_control.routing.priority import PrioritySource


class FakePresetActions:
    """Records preset actions in call order."""

    def __init__(self):
        self.calls = []

    def recall(self, index):
        self.calls.append(("recall", index))

    def save(self, index):
        self.calls.append(("save", index))

    def refresh_matches(self):
        self.calls.append(("refresh",))

    def hold_reached(self, index):
        self.calls.append(("hold", index))


@pytest.fixture
def engine(scheduler, router):
    return RoutingEngine([1, 2], scheduler, router=router)


class TestDecodeInput:
    @pytest.mark.parametrize("raw,expected", [
        ("3", 3),
        (" 4 ", 4),
        (2.0, 2),
        (True, 1),
        ("HDMI", "HDMI"),
        (7, 7),
    ])
    def test_decode(self, raw, expected):
        assert decode_input(raw) == expected


class TestSetSource:
    """Direct routing through the router handle."""

    def test_writes_router(self, engine, router):
        assert engine.set_source(3, 1)
        assert router.value("select.1") == 3
        assert engine.current_input(1) == 3
        assert engine.last_input(1) == 3

    def test_rejected_while_override_covers_output(self, engine, router):
        engine.set_source(3, 1)
        engine.on_override_trigger("alarm", outputs=[1])
        assert not engine.set_source(5, 1)
        assert engine.current_input(1) == 0
        assert engine.set_source(5, 2)

    def test_set_source_all(self, engine, router):
        engine.on_override_trigger("alarm", outputs=[2])
        assert engine.set_source_all(4) == [1]

    def test_router_feedback_syncs_table(self, engine, router):
        router.inject("select.2", "6")
        assert engine.current_input(2) == 6
        assert engine.last_input(2) == 6

    def test_feedback_under_override_keeps_last(self, engine, router):
        engine.set_source(3, 1)
        engine.on_override_trigger("alarm", outputs=[1])
        router.inject("select.1", 0)
        assert engine.last_input(1) == 3


class TestRouterFailures:
    """An unavailable router marks the role invalid without raising."""

    def test_write_failure_marks_invalid(self, engine, router):
        router.fail_point("select.1")
        assert engine.set_source(3, 1)
        assert not engine.router_valid
        assert engine.status.text == "Invalid Components"
        assert engine.status_snapshot()["invalid_components"] == [ROUTER_ROLE]

    def test_no_write_after_invalid(self, engine, router):
        router.set_online(False)
        engine.set_source(3, 1)
        router.set_online(True)
        engine.set_source(4, 2)
        assert router.writes == []
        # bookkeeping still follows the caller
        assert engine.current_input(2) == 4

    def test_no_router(self, scheduler):
        engine = RoutingEngine([1], scheduler)
        assert engine.set_source(2, 1)
        assert engine.current_input(1) == 2
        assert not engine.router_valid

    def test_attach_router_revalidates(self, engine, router, scheduler):
        router.fail_point("select.1")
        engine.set_source(3, 1)
        router.failing_points.clear()
        engine.attach_router(router)
        assert engine.router_valid
        engine.set_source(3, 1)
        assert router.value("select.1") == 3

    def test_shared_status(self, scheduler, router):
        status = ComponentStatus()
        status.set_invalid("camera:devCam01")
        engine = RoutingEngine([1], scheduler, router=router, status=status)
        assert engine.status_snapshot()["status_code"] == 1


class TestOverrides:
    def test_trigger_defaults_to_no_source(self, engine, router):
        engine.set_source(3, 1)
        engine.set_source(4, 2)
        assert engine.on_override_trigger("alarm")
        assert router.value("select.1") == 0
        assert router.value("select.2") == 0
        assert engine.is_override_active("alarm")

    def test_clear_with_guard(self, engine, router):
        engine.set_source(3, 1)
        engine.on_override_trigger("alarm")
        engine.on_override_clear("alarm", guard=lambda: True)
        assert router.value("select.1") == 3
        assert not engine.is_override_active()


class TestAutoSwitch:
    """Priority-driven source selection."""

    def make_engine(self, scheduler, router, state, **kwargs):
        sources = [
            PrioritySource("TeamsPC", 5, lambda: state["teams"]),
            PrioritySource("LaptopFront", 2, lambda: state["laptop"]),
        ]
        return RoutingEngine([1, 2], scheduler, router=router, priority_sources=sources, **kwargs)

    def test_moves_outputs_to_winner(self, scheduler, router):
        state = {"teams": False, "laptop": True}
        engine = self.make_engine(scheduler, router, state)
        assert engine.on_priority_condition_changed().name == "LaptopFront"
        assert engine.table.routes() == {1: 2, 2: 2}

        state["teams"] = True
        engine.on_priority_condition_changed()
        assert engine.table.routes() == {1: 5, 2: 5}

    def test_no_winner_leaves_routes(self, scheduler, router):
        state = {"teams": False, "laptop": False}
        engine = self.make_engine(scheduler, router, state)
        engine.set_source(3, 1)
        assert engine.on_priority_condition_changed() is None
        assert engine.current_input(1) == 3

    def test_only_auto_outputs(self, scheduler, router):
        state = {"teams": True, "laptop": False}
        engine = self.make_engine(scheduler, router, state, auto_outputs=[2])
        engine.set_source(3, 1)
        engine.on_priority_condition_changed()
        assert engine.table.routes() == {1: 3, 2: 5}

    def test_gate_blocks_evaluation(self, scheduler, router):
        state = {"teams": True, "laptop": False}
        ready = {"value": False}
        engine = self.make_engine(scheduler, router, state, auto_switch_gate=lambda: ready["value"])
        assert engine.on_priority_condition_changed() is None
        assert router.writes == []
        ready["value"] = True
        assert engine.on_priority_condition_changed().name == "TeamsPC"

    def test_no_writes_when_already_routed(self, scheduler, router):
        state = {"teams": False, "laptop": True}
        engine = self.make_engine(scheduler, router, state)
        engine.on_priority_condition_changed()
        count = len(router.writes)
        engine.on_priority_condition_changed()
        assert len(router.writes) == count

    def test_no_sources(self, engine):
        assert engine.on_priority_condition_changed() is None

    def test_snapshot_reports_winner(self, scheduler, router):
        engine = self.make_engine(scheduler, router, {"teams": True, "laptop": True})
        engine.on_priority_condition_changed()
        assert engine.status_snapshot()["auto_switch_winner"] == "TeamsPC"


class TestButtons:
    """Preset button dispatch."""

    def test_short_press_recalls_then_refreshes(self, scheduler, router):
        actions = FakePresetActions()
        engine = RoutingEngine([1], scheduler, router=router, preset_actions=actions)
        engine.on_button_event(2, True)
        scheduler.advance(0.5)
        assert engine.on_button_event(2, False) is PressKind.SHORT
        assert actions.calls == [("recall", 2), ("refresh",)]

    def test_long_press_saves_then_refreshes(self, scheduler, router):
        actions = FakePresetActions()
        engine = RoutingEngine([1], scheduler, router=router, preset_actions=actions)
        engine.on_button_event(4, True)
        scheduler.advance(3.5)
        assert engine.button_state(4).phase is ButtonPhase.HELD
        engine.on_button_event(4, False)
        assert actions.calls == [("hold", 4), ("save", 4), ("refresh",)]

    def test_hold_threshold_change(self, scheduler, router):
        actions = FakePresetActions()
        engine = RoutingEngine([1], scheduler, router=router, preset_actions=actions)
        engine.register_button(1)
        engine.set_hold_threshold(1.0)
        engine.on_button_event(1, True)
        scheduler.advance(1.0)
        engine.on_button_event(1, False)
        assert ("save", 1) in actions.calls

    def test_without_actions(self, engine, scheduler):
        engine.on_button_event(1, True)
        assert engine.on_button_event(1, False) is PressKind.SHORT

    def test_button_state_defaults(self, engine):
        state = engine.button_state(8)
        assert state.pressed_at is None
        assert state.hold_threshold == 3.0

    def test_snapshot_buttons(self, engine):
        engine.on_button_event(1, True)
        assert engine.status_snapshot()["buttons"] == {1: "held"}

    def test_shutdown_cancels_timers(self, engine, scheduler, router):
        engine.on_button_event(1, True)
        engine.shutdown()
        assert scheduler.pending == 0
        router.inject("select.1", 7)
        assert engine.current_input(1) == 0


class TestStatusSnapshot:
    def test_contents(self, engine):
        engine.set_source(3, 1)
        engine.on_override_trigger("alarm", outputs=[2])
        snapshot = engine.status_snapshot()
        assert snapshot["routes"] == {1: 3, 2: 0}
        assert snapshot["last_inputs"] == {1: 3, 2: 1}
        assert snapshot["overrides"] == ["alarm"]
        assert snapshot["status"] == "OK"
        assert snapshot["status_code"] == 0
        assert snapshot["auto_switch_winner"] is None
