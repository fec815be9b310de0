"""Output to input assignment bookkeeping."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from av_control.core.logging_utils import get_module_logger

from .types import NO_SOURCE, Input, Output, RouteApplier

logger = get_module_logger("routing.table")


class RouteTable:
    """Current route per output plus the last steady-state selection.

    ``current_input`` is whatever was written last, override or not.
    ``last_input`` only follows regular writes, so it is the value to go back
    to once a transient override is gone.
    """

    def __init__(
        self,
        outputs: Iterable[Output] = (),
        *,
        default_input: Input = 1,
        no_source: Input = NO_SOURCE,
        applier: Optional[RouteApplier] = None,
    ) -> None:
        self._outputs: list = list(dict.fromkeys(outputs))
        self._current: Dict[Output, Input] = {}
        self._last: Dict[Output, Input] = {}
        self.default_input = default_input
        self.no_source = no_source
        self._applier = applier

    @property
    def outputs(self) -> list:
        return list(self._outputs)

    def declare_output(self, output: Output) -> None:
        if output not in self._outputs:
            self._outputs.append(output)

    def set_route(self, output: Output, input: Input, *, override: bool = False) -> bool:
        """Record ``input`` on ``output`` and push it to the device.

        Returns whether the device accepted the write; the table is updated
        either way.
        """
        self.declare_output(output)
        self._current[output] = input
        if not override:
            self._last[output] = input
        logger.info("Set output %s to input %s%s", output, input, " (override)" if override else "")
        if self._applier is None:
            return True
        return self._applier(output, input)

    def current_input(self, output: Output) -> Input:
        return self._current.get(output, self.no_source)

    def last_input(self, output: Output) -> Input:
        return self._last.get(output, self.default_input)

    def routes(self) -> Dict[Output, Input]:
        return {output: self.current_input(output) for output in self._outputs}

    def last_inputs(self) -> Dict[Output, Input]:
        return {output: self.last_input(output) for output in self._outputs}

    def snapshot(self, outputs: Iterable[Output]) -> Dict[Output, Input]:
        return {output: self.current_input(output) for output in outputs}

    def sync_from_device(self, output: Output, input: Input, *, override: bool = False) -> None:
        """Adopt a route the device reports without writing it back."""
        self.declare_output(output)
        if self._current.get(output) != input:
            logger.debug("Device reports output %s on input %s", output, input)
        self._current[output] = input
        if not override:
            self._last[output] = input


__all__ = ["RouteTable"]
