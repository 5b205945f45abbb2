"""The process terminal used by :class:`~toolbench.ui.screen.TerminalHost`.

``ProcessTerminal`` puts the controlling tty into raw mode on the
alternate screen, feeds key sequences from stdin to the host and reports
``SIGWINCH`` as a resize. Input reading and the resize signal are both
registered on the running asyncio loop, so the terminal must be started
from inside it.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import shutil
import signal
import sys
import termios
import tty
from typing import Callable, Protocol, TextIO

from toolbench.ui.keys import split_sequences

logger = logging.getLogger(__name__)

ENTER_ALT_SCREEN = "\x1b[?1049h"
LEAVE_ALT_SCREEN = "\x1b[?1049l"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
CLEAR_SCREEN = "\x1b[2J\x1b[H"

FALLBACK_SIZE = (80, 24)

READ_SIZE = 1024


class Terminal(Protocol):
    """What the terminal host needs from a terminal.

    ``on_input`` is called with one complete key sequence at a time.
    """

    def start(self, on_input: Callable[[str], None], on_resize: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def clear_screen(self) -> None: ...


class ProcessTerminal:
    """Terminal backed by the process's stdin and stdout."""

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._saved_mode: list | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._on_input: Callable[[str], None] | None = None

    @property
    def columns(self) -> int:
        return shutil.get_terminal_size(FALLBACK_SIZE).columns

    @property
    def rows(self) -> int:
        return shutil.get_terminal_size(FALLBACK_SIZE).lines

    def start(self, on_input: Callable[[str], None], on_resize: Callable[[], None]) -> None:
        if self._loop is not None:
            return
        fd = self._stdin.fileno()
        self._saved_mode = termios.tcgetattr(fd)
        tty.setraw(fd)
        self.write(ENTER_ALT_SCREEN)

        self._on_input = on_input
        self._loop = asyncio.get_running_loop()
        self._loop.add_reader(fd, self._read_input)
        self._loop.add_signal_handler(signal.SIGWINCH, on_resize)
        logger.debug("Terminal started (%dx%d)", self.columns, self.rows)

    def stop(self) -> None:
        """Undo everything :meth:`start` did; safe to call more than once."""
        loop, self._loop = self._loop, None
        self._on_input = None
        if loop is not None:
            loop.remove_reader(self._stdin.fileno())
            loop.remove_signal_handler(signal.SIGWINCH)
        self.write(SHOW_CURSOR + LEAVE_ALT_SCREEN)
        if self._saved_mode is not None:
            termios.tcsetattr(self._stdin.fileno(), termios.TCSADRAIN, self._saved_mode)
            self._saved_mode = None

    def write(self, data: str) -> None:
        self._stdout.write(data)
        self._stdout.flush()

    def hide_cursor(self) -> None:
        self.write(HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(SHOW_CURSOR)

    def clear_screen(self) -> None:
        self.write(CLEAR_SCREEN)

    def _read_input(self) -> None:
        try:
            raw = os.read(self._stdin.fileno(), READ_SIZE)
        except BlockingIOError:
            return
        if not raw:
            logger.debug("stdin closed, no more input")
            if self._loop is not None:
                self._loop.remove_reader(self._stdin.fileno())
            return
        # a multi-byte character may be split across reads
        text = self._decoder.decode(raw)
        for sequence in split_sequences(text):
            if self._on_input is None:
                return
            self._on_input(sequence)
