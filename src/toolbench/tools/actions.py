"""Install and update actions.

:class:`ToolActions` drives a single tool's install or update from inside a
view: every change to a :class:`ToolState` goes through the view's
``mutate`` so the dashboard re-renders as output streams in. Tools are
looked up by name on each callback, so output arriving after the tool list
was rebuilt is dropped instead of written into a stale object.

:func:`run_batch` is the headless counterpart used by the CLI.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import Any

from toolbench.tools.descriptor import Action, Tool
from toolbench.tools.runner import CommandRunner
from toolbench.tools.state import InstallState, ToolState
from toolbench.ui.events import Fault, call_handler

logger = logging.getLogger(__name__)

Mutate = Callable[[Callable[[Any], object]], None]
ToolsOf = Callable[[Any], list[ToolState]]

_LABELS = {
    Action.INSTALL: ("install", "Install"),
    Action.UPDATE: ("update", "Update"),
}


def missing_command_message(action: Action) -> str:
    verb, _ = _LABELS[action]
    return f"⚠ This tool doesn't have an {verb} command configured."


def resolve_error_message(action: Action, error: str) -> str:
    verb, _ = _LABELS[action]
    return f"✗ Cannot {verb}: {error}"


def completion_message(action: Action, success: bool) -> str:
    _, title = _LABELS[action]
    if success:
        return f"✓ {title} completed successfully"
    return f"✗ {title} failed (see output above)"


def find_tool(tools: Iterable[ToolState], name: str) -> ToolState | None:
    for tool_state in tools:
        if tool_state.name == name:
            return tool_state
    return None


def _default_tools_of(state: Any) -> list[ToolState]:
    return state.tools.all


class ToolActions:
    """Starts install/update commands for tools held in a view's state."""

    def __init__(self, mutate: Mutate, runner: CommandRunner, tools_of: ToolsOf = _default_tools_of) -> None:
        self._mutate = mutate
        self._runner = runner
        self._tools_of = tools_of

    def install(self, name: str) -> bool:
        return self.start(name, Action.INSTALL)

    def update(self, name: str) -> bool:
        return self.start(name, Action.UPDATE)

    def start(self, name: str, action: Action) -> bool:
        """Start *action* for tool *name*; return whether a command was launched.

        A tool that is already installing is left alone. When no command
        can be resolved, a single message replaces the tool's log and its
        install state is unchanged.
        """
        resolved: list[str] = []

        def prepare(state: Any) -> None:
            tool_state = find_tool(self._tools_of(state), name)
            if tool_state is None or tool_state.install_state is InstallState.INSTALLING:
                return
            tool_state.reset_log()
            cmd, err = tool_state.resolve_command(action)
            if cmd:
                tool_state.install_state = InstallState.INSTALLING
                tool_state.append_output(f"$ {cmd}")
                resolved.append(cmd)
            elif err:
                logger.warning("Cannot %s %s: %s", action.value, name, err)
                tool_state.set_message(resolve_error_message(action, err))
            else:
                logger.warning("No %s command configured for %s", action.value, name)
                tool_state.set_message(missing_command_message(action))

        self._mutate(prepare)
        if not resolved:
            return False

        logger.info("Starting %s of %s", action.value, name)
        self._runner.run(resolved[0], self._output_handler(name), self._complete_handler(name, action))
        return True

    def _output_handler(self, name: str) -> Callable[[str], None]:
        def on_output(line: str) -> None:
            def append(state: Any) -> None:
                tool_state = find_tool(self._tools_of(state), name)
                if tool_state is not None:
                    tool_state.append_output(line)

            self._mutate(append)

        return on_output

    def _complete_handler(self, name: str, action: Action) -> Callable[[bool], None]:
        def on_complete(success: bool) -> None:
            logger.info("%s of %s finished: %s", action.value.capitalize(), name, "ok" if success else "failed")

            def finish(state: Any) -> None:
                tool_state = find_tool(self._tools_of(state), name)
                if tool_state is None:
                    return
                tool_state.append_output(completion_message(action, success))
                tool_state.install_state = InstallState.INSTALLED if success else InstallState.FAILED

            self._mutate(finish)

        return on_complete


# ---------------------------------------------------------------------------
# Batch runs
# ---------------------------------------------------------------------------


async def run_action(tool: Tool, action: Action, runner: CommandRunner) -> bool | None:
    """Run *action* for *tool* and wait for it; ``None`` when no command is available."""
    cmd, err = tool.resolve_command(action)
    if not cmd:
        if err:
            logger.warning("%s: %s", tool.name, resolve_error_message(action, err))
        else:
            logger.warning("%s: %s", tool.name, missing_command_message(action))
        return None

    done: asyncio.Future[bool] = asyncio.get_running_loop().create_future()

    def on_output(line: str) -> None:
        logger.info("[%s] %s", tool.name, line)

    def on_complete(success: bool) -> None:
        if not done.done():
            done.set_result(success)

    logger.info("[%s] $ %s", tool.name, cmd)
    runner.run(cmd, on_output, on_complete)
    return await done


def _is_installed(tool: Tool) -> bool | None:
    """Whether *tool* is installed; ``None`` when the check itself fails."""
    result = call_handler(tool.is_installed)
    if isinstance(result, Fault):
        logger.warning("Install check for %s failed, skipping it: %r", tool.name, result.error, exc_info=result.error)
        return None
    return bool(result.value)


async def run_batch(tools: Iterable[Tool], action: Action, runner: CommandRunner) -> dict[str, bool]:
    """Run *action* sequentially over the tools it applies to.

    Installs target tools that are not installed; updates target installed
    ones. Returns the outcome per tool that had a command to run.
    """
    want_installed = action is Action.UPDATE
    results: dict[str, bool] = {}
    targets = [tool for tool in tools if _is_installed(tool) == want_installed]
    if not targets:
        logger.info("No tools to %s", action.value)
        return results

    for tool in targets:
        outcome = await run_action(tool, action, runner)
        if outcome is not None:
            results[tool.name] = outcome

    succeeded = sum(1 for ok in results.values() if ok)
    logger.info("%s finished: %d succeeded, %d failed", action.value.capitalize(), succeeded, len(results) - succeeded)
    return results


async def install_all(tools: Iterable[Tool], runner: CommandRunner) -> dict[str, bool]:
    return await run_batch(tools, Action.INSTALL, runner)


async def update_all(tools: Iterable[Tool], runner: CommandRunner) -> dict[str, bool]:
    return await run_batch(tools, Action.UPDATE, runner)
