"""State container and render debouncing.

The container owns a private deep copy of the initial state so that two
views created from the same defaults never share mutable data. Every
``mutate`` call notifies the subscriber unless the container has been
unsubscribed (a closed view keeps its state but stops rendering).
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Callable
from typing import Generic, TypeVar

S = TypeVar("S")
T = TypeVar("T")

_UNSET = object()


class StateContainer(Generic[S]):
    """Holds one mutable state value and notifies a subscriber on change."""

    def __init__(self, initial_state: S, subscriber: Callable[[S], None]) -> None:
        self._state: S = copy.deepcopy(initial_state)
        self._subscriber = subscriber
        self._unsubscribed = False

    @property
    def unsubscribed(self) -> bool:
        return self._unsubscribed

    def mutate(self, mutate_fn: Callable[[S], object]) -> None:
        """Apply *mutate_fn* to the state, then notify (unless unsubscribed)."""
        mutate_fn(self._state)
        if not self._unsubscribed:
            self._subscriber(self._state)

    def get(self) -> S:
        return self._state

    def set_unsubscribed(self, value: bool) -> None:
        self._unsubscribed = value


def create_state_container(
    initial_state: S,
    subscriber: Callable[[S], None],
) -> tuple[Callable[[Callable[[S], object]], None], Callable[[], S], Callable[[bool], None]]:
    """Return ``(mutate, get, set_unsubscribed)`` for a fresh container."""
    container = StateContainer(initial_state, subscriber)
    return container.mutate, container.get, container.set_unsubscribed


def debounce(fn: Callable[[T], object]) -> Callable[[T], None]:
    """Coalesce calls made within one event-loop tick into a single call of *fn*.

    Only the most recent argument is delivered. When no event loop is
    running the call goes through synchronously.
    """
    queued = False
    last_arg: object = _UNSET

    def flush() -> None:
        nonlocal queued, last_arg
        arg, last_arg = last_arg, _UNSET
        queued = False
        fn(arg)  # type: ignore[arg-type]

    def debounced(arg: T) -> None:
        nonlocal queued, last_arg
        last_arg = arg
        if queued:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            flush()
            return
        queued = True
        loop.call_soon(flush)

    return debounced
