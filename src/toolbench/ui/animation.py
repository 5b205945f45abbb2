"""Tick-based animations driven by the asyncio event loop.

An animation calls a function once per tick with the current tick value,
walking an inclusive range. Cancellation is cooperative: every run and every
cancel bumps an epoch counter, and each scheduled tick checks that the epoch
it captured is still current before doing anything.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from toolbench.ui.events import Fault, call_handler

logger = logging.getLogger(__name__)


class Animation:
    """A restartable, cancellable walk over ``range[0]..range[1]``."""

    def __init__(
        self,
        fn: Callable[[int], object],
        range: tuple[int, int],
        delay_ms: int,
        start_delay_ms: int | None = None,
        iteration_delay_ms: int | None = None,
    ) -> None:
        self._fn = fn
        self._start_tick, self._end_tick = range
        self._delay_ms = delay_ms
        self._start_delay_ms = start_delay_ms or 0
        self._iteration_delay_ms = iteration_delay_ms
        self._epoch = 0
        self._is_animating = False

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def is_animating(self) -> bool:
        return self._is_animating

    def start(self) -> Callable[[], None]:
        """Begin a run unless one is active; return the cancel function."""
        if self._is_animating:
            return self.cancel
        self._epoch += 1
        self._begin(self._epoch, self._start_delay_ms)
        return self.cancel

    def cancel(self) -> None:
        """Stop the current run; ticks already scheduled become no-ops."""
        self._is_animating = False
        self._epoch += 1

    def _begin(self, epoch: int, delay_ms: int) -> None:
        self._is_animating = True
        self._schedule(epoch, delay_ms, self._start_tick)

    def _schedule(self, epoch: int, delay_ms: int, tick: int) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, animation tick %d not scheduled", tick)
            return
        loop.call_later(delay_ms / 1000, self._tick, epoch, tick)

    def _tick(self, epoch: int, tick: int) -> None:
        if epoch != self._epoch:
            return
        result = call_handler(self._fn, tick)
        if isinstance(result, Fault):
            logger.warning("Animation tick %d failed: %r", tick, result.error, exc_info=result.error)
        # the callback may have cancelled the run
        if epoch != self._epoch:
            return
        if tick < self._end_tick:
            self._schedule(epoch, self._delay_ms, tick + 1)
            return
        self._is_animating = False
        if self._iteration_delay_ms is not None:
            self._begin(epoch, self._iteration_delay_ms)


def animation(
    fn: Callable[[int], object],
    range: tuple[int, int],
    delay_ms: int,
    start_delay_ms: int | None = None,
    iteration_delay_ms: int | None = None,
) -> Callable[[], Callable[[], None]]:
    """Return a ``start()`` function for a new :class:`Animation`."""
    return Animation(
        fn,
        range=range,
        delay_ms=delay_ms,
        start_delay_ms=start_delay_ms,
        iteration_delay_ms=iteration_delay_ms,
    ).start
