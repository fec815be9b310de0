"""Routing, override, auto-switch and button classification."""

from .buttons import ButtonClassifier, ButtonPhase, ButtonState, PressKind
from .engine import PresetActions, RoutingEngine
from .layers import LayerInputFollower
from .overrides import OverrideFrame, OverrideStack
from .priority import PriorityEvaluator, PrioritySource, evaluate
from .room import FIRE_ALARM_REASON, RoomControlsBinding, bind_room_controls
from .route_table import RouteTable
from .tolerance import DEFAULT_PRESET, PresetValue, ToleranceMatcher, matches
from .types import NO_SOURCE, Input, Output

__all__ = [
    "ButtonClassifier",
    "ButtonPhase",
    "ButtonState",
    "DEFAULT_PRESET",
    "FIRE_ALARM_REASON",
    "Input",
    "LayerInputFollower",
    "NO_SOURCE",
    "Output",
    "OverrideFrame",
    "OverrideStack",
    "PresetActions",
    "PresetValue",
    "PressKind",
    "PriorityEvaluator",
    "PrioritySource",
    "RoomControlsBinding",
    "RouteTable",
    "RoutingEngine",
    "ToleranceMatcher",
    "bind_room_controls",
    "evaluate",
    "matches",
]
