"""
Short-press / long-press classification for momentary buttons.

Each physical button owns one ``ButtonClassifier``. Pressing arms a one-shot
hold timer; if the timer fires while the button is still held, the press
becomes a long press. On release the long-press action runs when the timer
already fired, otherwise the short-press action runs. The timer firing is the
only thing that decides the outcome, so a release that lands just after the
threshold but before the timer callback ran is still a short press.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from av_control.core.logging_utils import get_module_logger
from av_control.core.scheduler import Scheduler, TimerHandle

from .types import ButtonId

logger = get_module_logger("routing.buttons")

ButtonAction = Callable[[ButtonId], None]


class ButtonPhase(Enum):
    IDLE = "idle"
    HELD = "held"


class PressKind(Enum):
    SHORT = "short"
    LONG = "long"


@dataclass(frozen=True)
class ButtonState:
    pressed_at: Optional[float] = None
    long_press_fired: bool = False
    hold_threshold: float = 3.0

    @property
    def phase(self) -> ButtonPhase:
        return ButtonPhase.IDLE if self.pressed_at is None else ButtonPhase.HELD


class ButtonClassifier:
    """Timer-driven press/hold state machine for one button."""

    def __init__(
        self,
        button_id: ButtonId,
        scheduler: Scheduler,
        hold_threshold: float = 3.0,
        *,
        on_short: Optional[ButtonAction] = None,
        on_long: Optional[ButtonAction] = None,
        on_hold: Optional[ButtonAction] = None,
        is_down: Optional[Callable[[], bool]] = None,
    ) -> None:
        if hold_threshold <= 0:
            raise ValueError("hold_threshold must be positive")
        self.button_id = button_id
        self._scheduler = scheduler
        self._state = ButtonState(hold_threshold=hold_threshold)
        self._timer: Optional[TimerHandle] = None
        self.on_short = on_short
        self.on_long = on_long
        self.on_hold = on_hold
        self._is_down = is_down

    @property
    def state(self) -> ButtonState:
        return self._state

    @property
    def phase(self) -> ButtonPhase:
        return self._state.phase

    @property
    def hold_threshold(self) -> float:
        return self._state.hold_threshold

    def set_hold_threshold(self, seconds: float) -> None:
        """Change the threshold; a press already in progress keeps its timer."""
        if seconds <= 0:
            raise ValueError("hold_threshold must be positive")
        self._state = replace(self._state, hold_threshold=seconds)

    def handle(self, pressed: bool) -> Optional[PressKind]:
        if pressed:
            self.press()
            return None
        return self.release()

    def press(self) -> None:
        self._cancel_timer()
        self._state = replace(self._state, pressed_at=self._scheduler.now(), long_press_fired=False)
        self._timer = self._scheduler.call_later(self._state.hold_threshold, self._on_hold_timer)
        logger.debug("Button %s pressed; hold timer %.2fs", self.button_id, self._state.hold_threshold)

    def release(self) -> Optional[PressKind]:
        if self._state.pressed_at is None:
            logger.debug("Button %s released while idle; ignored", self.button_id)
            return None

        kind = PressKind.LONG if self._state.long_press_fired else PressKind.SHORT
        self.reset()
        logger.debug("Button %s released: %s press", self.button_id, kind.value)

        action = self.on_long if kind is PressKind.LONG else self.on_short
        if action is not None:
            action(self.button_id)
        return kind

    def reset(self) -> None:
        """Back to idle without dispatching anything."""
        self._cancel_timer()
        self._state = replace(self._state, pressed_at=None, long_press_fired=False)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_hold_timer(self) -> None:
        self._timer = None
        if self._state.pressed_at is None:
            return
        if self._is_down is not None and not self._is_down():
            logger.debug("Hold timer for button %s fired after physical release", self.button_id)
            return
        self._state = replace(self._state, long_press_fired=True)
        logger.debug("Button %s held past %.2fs", self.button_id, self._state.hold_threshold)
        if self.on_hold is not None:
            self.on_hold(self.button_id)


__all__ = ["ButtonClassifier", "ButtonPhase", "ButtonState", "PressKind"]
