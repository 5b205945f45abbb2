"""Sequential install-status polling.

Probing a tool may shell out or walk ``PATH``, so tools are checked one at
a time with a short pause between checks instead of all at once. A sweep
consumes tool indices lazily from the live state, so tools removed while
it runs are never probed and tools appended while it runs are picked up.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator

from toolbench.dashboard.state import DashboardState
from toolbench.tools.state import InstallState
from toolbench.ui.events import Fault, call_handler

logger = logging.getLogger(__name__)


class StatusPoller:
    """Restartable sweep over ``state.tools.all`` that updates install states.

    ``is_alive`` is checked before every step; the sweep stops (and clears
    ``checking_statuses``) once it returns false. Restarting or cancelling
    bumps an epoch so steps scheduled by an older sweep do nothing.
    """

    def __init__(
        self,
        mutate: Callable[[Callable[[DashboardState], object]], None],
        get_state: Callable[[], DashboardState],
        is_alive: Callable[[], bool],
        delay_ms: int = 50,
    ) -> None:
        self._mutate = mutate
        self._get_state = get_state
        self._is_alive = is_alive
        self._delay_ms = delay_ms
        self._epoch = 0
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def _pending_indices(self) -> Iterator[int]:
        index = 0
        while index < len(self._get_state().tools.all):
            yield index
            index += 1

    def start(self) -> None:
        """Start a fresh sweep, abandoning any sweep in progress."""
        self._epoch += 1
        if not self._get_state().tools.all:
            self._running = False
            return

        self._running = True
        self._set_checking(True)
        epoch = self._epoch
        indices = self._pending_indices()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, checking tool statuses synchronously")
            while self._step(epoch, indices):
                pass
            return
        loop.call_soon(self._advance, epoch, indices)

    def cancel(self) -> None:
        self._epoch += 1
        if self._running:
            self._finish()

    def _advance(self, epoch: int, indices: Iterator[int]) -> None:
        if self._step(epoch, indices):
            asyncio.get_running_loop().call_later(self._delay_ms / 1000, self._advance, epoch, indices)

    def _step(self, epoch: int, indices: Iterator[int]) -> bool:
        """Check one tool; return whether another step should follow."""
        if epoch != self._epoch:
            return False
        if not self._is_alive():
            logger.debug("Status check stopped, window no longer open")
            self._finish()
            return False

        index = next(indices, None)
        if index is None:
            self._finish()
            return False

        tool_state = self._get_state().tools.all[index]
        name = tool_state.name
        result = call_handler(tool_state.tool.is_installed)
        if isinstance(result, Fault):
            logger.warning("Install check for %s failed: %r", name, result.error, exc_info=result.error)
            installed = False
        else:
            installed = bool(result.value)
        logger.debug("Status of %s: %s", name, "installed" if installed else "not installed")
        new_state = InstallState.INSTALLED if installed else InstallState.NOT_INSTALLED

        def apply(state: DashboardState) -> None:
            tools = state.tools.all
            # the tool list may have been rebuilt during the probe
            if index < len(tools) and tools[index].name == name and tools[index].install_state is not InstallState.INSTALLING:
                tools[index].install_state = new_state

        self._mutate(apply)
        return True

    def _finish(self) -> None:
        self._running = False
        self._set_checking(False)

    def _set_checking(self, value: bool) -> None:
        def apply(state: DashboardState) -> None:
            state.tools.checking_statuses = value

        self._mutate(apply)
