"""Identifiers shared by the routing components."""

from __future__ import annotations

from typing import Callable, Hashable, Union

Output = Union[int, str]
Input = Union[int, str]

NO_SOURCE: Input = 0

# Writes a route to the device side; returns False when the device could not
# take the write.
RouteApplier = Callable[[Output, Input], bool]

Predicate = Callable[[], bool]

ButtonId = Hashable

__all__ = ["ButtonId", "Input", "NO_SOURCE", "Output", "Predicate", "RouteApplier"]
