"""Priority-ordered auto-selection of a source."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from av_control.core.logging_utils import get_module_logger

from .types import Input, Predicate

logger = get_module_logger("routing.priority")


@dataclass(frozen=True)
class PrioritySource:
    """A candidate source and the live condition that makes it eligible.

    ``predicate`` must not have side effects; it is called on every
    evaluation.
    """

    name: str
    input: Input
    predicate: Predicate

    def is_eligible(self) -> bool:
        try:
            return bool(self.predicate())
        except Exception:
            logger.exception("Priority check for %s failed; treating as inactive", self.name)
            return False


def evaluate(sources: Iterable[PrioritySource]) -> Optional[PrioritySource]:
    """Return the first eligible source in list order, or None."""
    for source in sources:
        if source.is_eligible():
            return source
    return None


class PriorityEvaluator:
    """Holds a fixed priority list; list order is the tie-break."""

    def __init__(self, sources: Sequence[PrioritySource] = ()) -> None:
        self._sources = tuple(sources)
        self._last_winner: Optional[PrioritySource] = None

    @property
    def sources(self) -> tuple:
        return self._sources

    @property
    def last_winner(self) -> Optional[PrioritySource]:
        return self._last_winner

    @property
    def has_sources(self) -> bool:
        return bool(self._sources)

    def evaluate(self, sources: Optional[Sequence[PrioritySource]] = None) -> Optional[PrioritySource]:
        winner = evaluate(self._sources if sources is None else sources)
        if winner is not None:
            logger.debug("Priority winner: %s (input %s)", winner.name, winner.input)
        else:
            logger.debug("No priority source is active")
        self._last_winner = winner
        return winner


__all__ = ["PriorityEvaluator", "PrioritySource", "evaluate"]
