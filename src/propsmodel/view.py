"""View feedback loop — a derived property that can write back to its base.

A view is computed from its base like any derived property. Setting the
view directly reduces the new view value into a new base value and writes
it back. ViewLink records which direction is currently propagating so the
opposite direction stays quiet for the same update:

    IDLE --base changed--> BASE_TO_VIEW   (view write-back suppressed)
    IDLE --view set-----> VIEW_TO_BASE   (view recomputation suppressed)

The base produced by reduce_base is not checked against compute_view. If the
two disagree, view and base drift apart; keeping them consistent is up to
whoever supplies the reducer.
"""

from __future__ import annotations

import dataclasses
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Iterator, Mapping


class ViewState(Enum):
    IDLE = "idle"
    BASE_TO_VIEW = "base_to_view"
    VIEW_TO_BASE = "view_to_base"


class ViewLink:
    """Two-state guard between a view property and its base."""

    __slots__ = ("view", "base", "reduce_base", "state")

    def __init__(self, view: str, base: str, reduce_base: Callable[..., Any]) -> None:
        self.view = view
        self.base = base
        self.reduce_base = reduce_base
        self.state = ViewState.IDLE

    def allows(self, direction: ViewState) -> bool:
        """Only one direction may run at a time; nested runs of the same one are fine."""
        return self.state is ViewState.IDLE or self.state is direction

    @contextmanager
    def propagating(self, direction: ViewState) -> Iterator[None]:
        previous = self.state
        self.state = direction
        try:
            yield
        finally:
            self.state = previous

    def __repr__(self) -> str:
        return f"ViewLink({self.view!r} <-> {self.base!r}, {self.state.value})"


def item_getter(index: int) -> Callable[[Any], Any]:
    return lambda base: base[index]


def item_reducer(index: int) -> Callable[..., Any]:
    """Copy the sequence with one slot replaced. Tuples stay tuples."""

    def reduce(view_value, base_value, _props):
        items = list(base_value)
        items[index] = view_value
        return tuple(items) if isinstance(base_value, tuple) else items

    return reduce


def field_getter(field: str) -> Callable[[Any], Any]:
    def get(base):
        if isinstance(base, Mapping):
            return base[field]
        return getattr(base, field)

    return get


def field_reducer(field: str) -> Callable[..., Any]:
    """Copy a mapping or dataclass instance with one field replaced."""

    def reduce(view_value, base_value, _props):
        if isinstance(base_value, Mapping):
            return {**base_value, field: view_value}
        if dataclasses.is_dataclass(base_value):
            return dataclasses.replace(base_value, **{field: view_value})
        raise TypeError(
            f"Cannot replace field '{field}' of {type(base_value).__name__}"
        )

    return reduce
