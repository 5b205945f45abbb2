"""Tests for ShellCommandRunner against a real shell."""

from __future__ import annotations

import asyncio

import pytest

from toolbench.tools.runner import START_FAILURE_LINE, SUCCESS_LINE, ShellCommandRunner, failure_line


class Recorder:
    def __init__(self) -> None:
        self.lines: list[str] = []
        self.completions: list[bool] = []

    def on_output(self, line: str) -> None:
        self.lines.append(line)

    def on_complete(self, success: bool) -> None:
        # every output line arrives before completion
        self.completions.append(success)


@pytest.mark.asyncio
async def test_streams_output_and_succeeds():
    rec = Recorder()
    task = ShellCommandRunner().run("echo one; echo two", rec.on_output, rec.on_complete)
    assert await task is True
    assert rec.lines == ["one", "two", SUCCESS_LINE]
    assert rec.completions == [True]


@pytest.mark.asyncio
async def test_non_zero_exit():
    rec = Recorder()
    ok = await ShellCommandRunner().execute("echo boom; exit 3", rec.on_output, rec.on_complete)
    assert ok is False
    assert rec.lines == ["boom", failure_line(3)]
    assert rec.completions == [False]


@pytest.mark.asyncio
async def test_stderr_is_merged():
    rec = Recorder()
    await ShellCommandRunner().execute("echo oops 1>&2", rec.on_output, rec.on_complete)
    assert rec.lines[0] == "oops"


@pytest.mark.asyncio
async def test_blank_lines_skipped():
    rec = Recorder()
    await ShellCommandRunner().execute("echo a; echo; echo '   '; echo b", rec.on_output, rec.on_complete)
    assert rec.lines == ["a", "b", SUCCESS_LINE]


@pytest.mark.asyncio
async def test_missing_shell_reports_start_failure(tmp_path):
    rec = Recorder()
    runner = ShellCommandRunner(shell=str(tmp_path / "no-such-shell"))
    ok = await runner.execute("echo hi", rec.on_output, rec.on_complete)
    assert ok is False
    assert rec.lines == [START_FAILURE_LINE]
    assert rec.completions == [False]


@pytest.mark.asyncio
async def test_very_long_line_is_delivered_whole():
    rec = Recorder()
    task = ShellCommandRunner().run("head -c 200000 /dev/zero | tr '\\0' x; echo", rec.on_output, rec.on_complete)
    assert await task is True
    assert rec.lines == ["x" * 200000, SUCCESS_LINE]
    assert rec.completions == [True]


@pytest.mark.asyncio
async def test_carriage_return_redraws_keep_last_segment():
    rec = Recorder()
    await ShellCommandRunner().execute("printf '10%%\\r50%%\\r100%%\\r\\ndone\\r\\n'", rec.on_output, rec.on_complete)
    assert rec.lines == ["100%", "done", SUCCESS_LINE]


@pytest.mark.asyncio
async def test_output_without_trailing_newline():
    rec = Recorder()
    await ShellCommandRunner().execute("printf 'partial'", rec.on_output, rec.on_complete)
    assert rec.lines == ["partial", SUCCESS_LINE]


@pytest.mark.asyncio
async def test_failing_output_handler_still_completes():
    completions: list[bool] = []

    def on_output(line: str) -> None:
        raise RuntimeError("renderer exploded")

    ok = await ShellCommandRunner().execute("echo hi", on_output, completions.append)
    assert ok is False
    assert completions == [False]


@pytest.mark.asyncio
async def test_cancelled_command_completes_once():
    rec = Recorder()
    task = ShellCommandRunner().run("echo started; sleep 5", rec.on_output, rec.on_complete)
    for _ in range(200):
        if rec.lines:
            break
        await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert rec.lines == ["started"]
    assert rec.completions == [False]
