"""Follow the active UI layer and route the input mapped to it."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from av_control.core.logging_utils import get_module_logger
from av_control.core.scheduler import RepeatingTimer, Scheduler

from .engine import RoutingEngine
from .types import Input, Output

logger = get_module_logger("routing.layers")

DEFAULT_POLL_INTERVAL = 0.1


class LayerInputFollower:
    """Maps UI layer numbers to inputs.

    Layer changes arrive either as direct notifications or, when the UI layer
    cannot notify, through a fallback poll of ``layer_getter``. Only a change
    of layer routes; seeing the same layer again does nothing, so a manual
    source change made while a layer is shown is not undone by the poll.
    """

    def __init__(
        self,
        engine: RoutingEngine,
        layer_inputs: Mapping[Any, Input],
        *,
        outputs: Optional[Iterable[Output]] = None,
        scheduler: Optional[Scheduler] = None,
        layer_getter: Optional[Callable[[], Any]] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._engine = engine
        self._layer_inputs: Dict[Any, Input] = dict(layer_inputs)
        self._outputs = list(outputs) if outputs is not None else None
        self._layer_getter = layer_getter
        self._last_layer: Any = None
        self._enabled = True
        self._poll: Optional[RepeatingTimer] = None
        if scheduler is not None and layer_getter is not None:
            self._poll = RepeatingTimer(scheduler, poll_interval, self.poll_once, name="layer-poll")

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def last_layer(self) -> Any:
        return self._last_layer

    @property
    def polling(self) -> bool:
        return self._poll is not None and self._poll.running

    def mapping(self) -> Dict[Any, Input]:
        return dict(self._layer_inputs)

    def start_polling(self) -> bool:
        if self._poll is None:
            logger.debug("No layer getter; polling unavailable")
            return False
        if self._enabled:
            self._poll.start()
        return self._poll.running

    def stop_polling(self) -> None:
        if self._poll is not None:
            self._poll.stop()

    def enable(self) -> None:
        self._enabled = True
        logger.info("Layer integration enabled")

    def disable(self) -> None:
        self._enabled = False
        self.stop_polling()
        logger.info("Layer integration disabled")

    def poll_once(self) -> Optional[Input]:
        if self._layer_getter is None:
            return None
        return self.on_layer_change(self._layer_getter())

    def on_layer_change(self, layer: Any) -> Optional[Input]:
        """Handle a layer observation; returns the input routed, if any."""
        if not self._enabled or layer == self._last_layer:
            return None
        logger.debug("Layer changed from %s to %s", self._last_layer, layer)
        self._last_layer = layer

        target = self._layer_inputs.get(layer)
        if target is None:
            return None
        logger.info("Layer %s selects input %s", layer, target)
        self._engine.set_source_all(target, self._outputs)
        return target


__all__ = ["DEFAULT_POLL_INTERVAL", "LayerInputFollower"]
