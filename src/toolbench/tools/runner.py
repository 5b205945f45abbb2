"""Shell command execution with streamed output."""

from __future__ import annotations

import asyncio
import codecs
import logging
import subprocess
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)

OutputCallback = Callable[[str], None]
CompleteCallback = Callable[[bool], None]

SUCCESS_LINE = "✓ Command completed successfully"
START_FAILURE_LINE = "✗ Failed to start command"

READ_CHUNK = 65536
MAX_LINE_CHARS = 65536


def failure_line(exit_code: int) -> str:
    return f"✗ Command failed with exit code: {exit_code}"


def visible_segment(line: str) -> str:
    """Return what a terminal would show for *line*: the text after its last ``\\r``."""
    return line.rstrip("\r").rsplit("\r", 1)[-1]


class CommandRunner(Protocol):
    """Runs *cmd* asynchronously.

    ``on_output`` receives lines in arrival order; ``on_complete`` is called
    exactly once, after all output has been delivered.
    """

    def run(self, cmd: str, on_output: OutputCallback, on_complete: CompleteCallback) -> object: ...


class ShellCommandRunner:
    """Runs commands through ``sh -c`` with stderr merged into stdout.

    Output is read in chunks and split into lines here, so arbitrarily long
    lines (progress bars redrawn with ``\\r``) never overflow the stream
    buffer. ``on_complete`` is called on every path out of :meth:`execute`,
    including errors in ``on_output`` and cancellation.
    """

    def __init__(self, shell: str = "/bin/sh") -> None:
        self.shell = shell

    def run(self, cmd: str, on_output: OutputCallback, on_complete: CompleteCallback) -> asyncio.Task[bool]:
        """Schedule *cmd* on the running loop and return its task."""
        return asyncio.get_running_loop().create_task(self.execute(cmd, on_output, on_complete))

    async def execute(self, cmd: str, on_output: OutputCallback, on_complete: CompleteCallback) -> bool:
        logger.info("Running command: %s", cmd)
        try:
            proc = await asyncio.create_subprocess_shell(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                executable=self.shell,
            )
        except OSError as exc:
            logger.error("Failed to start command %r: %s", cmd, exc)
            on_output(START_FAILURE_LINE)
            on_complete(False)
            return False

        success = False
        try:
            exit_code = await self._stream_output(proc, on_output)
            success = exit_code == 0
            if success:
                on_output(SUCCESS_LINE)
            else:
                logger.warning("Command %r exited with code %d", cmd, exit_code)
                on_output(failure_line(exit_code))
        except Exception:
            logger.exception("Command %r failed while streaming output", cmd)
            success = False
        finally:
            if proc.returncode is None:
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
            on_complete(success)
        return success

    async def _stream_output(self, proc: asyncio.subprocess.Process, on_output: OutputCallback) -> int:
        assert proc.stdout is not None
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""
        while True:
            chunk = await proc.stdout.read(READ_CHUNK)
            if not chunk:
                break
            pending += decoder.decode(chunk)
            *lines, pending = pending.split("\n")
            for line in lines:
                self._emit(line, on_output)
            # only the last redraw of an unfinished line can still be shown
            cut = pending.rfind("\r", 0, len(pending) - 1)
            if cut >= 0:
                pending = pending[cut + 1 :]
            if len(pending) > MAX_LINE_CHARS:
                self._emit(pending, on_output)
                pending = ""
        pending += decoder.decode(b"", final=True)
        self._emit(pending, on_output)
        return await proc.wait()

    @staticmethod
    def _emit(line: str, on_output: OutputCallback) -> None:
        text = visible_segment(line)
        if text.strip():
            on_output(text)
