"""The toolchain dashboard view.

Wires the dashboard components, the tool actions, the status poller, the
spinner animation and the periodic refresh timer into one
:class:`~toolbench.ui.display.ViewWindow`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Hashable, Sequence

from toolbench import __version__
from toolbench.dashboard.components import (
    CLOSE_WINDOW,
    INSTALL_TOOL,
    SPINNER_FRAMES,
    TOGGLE_HELP,
    TOGGLE_LOG,
    UPDATE_TOOL,
    dashboard_view,
)
from toolbench.dashboard.state import DashboardState
from toolbench.dashboard.status import StatusPoller
from toolbench.settings import Settings
from toolbench.tools.actions import ToolActions, find_tool
from toolbench.tools.descriptor import Tool
from toolbench.tools.runner import CommandRunner, ShellCommandRunner
from toolbench.tools.state import ToolState
from toolbench.ui import palette
from toolbench.ui.animation import Animation
from toolbench.ui.display import EffectEvent, ViewWindow, WindowOptions, new_view_window
from toolbench.ui.nodes import Node
from toolbench.ui.surface import SurfaceHost

logger = logging.getLogger(__name__)

WINDOW_NAME = "toolbench"


class Dashboard:
    """Lists configured tools and runs their install/update commands."""

    def __init__(
        self,
        settings: Settings,
        host: SurfaceHost,
        runner: CommandRunner | None = None,
        tools_provider: Callable[[], Sequence[Tool]] | None = None,
        version: str = __version__,
    ) -> None:
        self.settings = settings
        self.version = version
        self._tools_provider = tools_provider or (lambda: self.settings.tools)
        self._refresh_handle: asyncio.TimerHandle | None = None

        self.window: ViewWindow[DashboardState] = new_view_window(WINDOW_NAME, host, settings.ui)
        self.mutate, self.get_state = self.window.state(DashboardState())
        self.actions = ToolActions(self.mutate, runner or ShellCommandRunner())
        self.poller = StatusPoller(
            self.mutate,
            self.get_state,
            self.window.is_open,
            delay_ms=settings.ui.status_check_delay_ms,
        )
        refresh_ms = settings.ui.refresh_interval_ms
        self.spinner = Animation(
            self._set_spinner_frame,
            range=(0, len(SPINNER_FRAMES) - 1),
            delay_ms=refresh_ms,
            iteration_delay_ms=refresh_ms,
        )

        self.window.view(self._render)
        self.window.effects(
            {
                CLOSE_WINDOW: self._on_close_window,
                TOGGLE_HELP: self._on_toggle_help,
                INSTALL_TOOL: self._on_install_tool,
                UPDATE_TOOL: self._on_update_tool,
                TOGGLE_LOG: self._on_toggle_log,
            }
        )
        self.window.init(WindowOptions(border=settings.ui.border, highlight=palette.NORMAL))
        self.window.events.on("close", self._on_window_closed)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def is_open(self) -> bool:
        return self.window.is_open()

    def open(self) -> None:
        if self.window.is_open():
            return
        self.window.open()
        self.setup_tools()
        self._start_refresh_timer()

    def close(self) -> None:
        self.window.close()

    def _on_window_closed(self) -> None:
        self._stop_refresh_timer()
        self.spinner.cancel()
        self.poller.cancel()

    def set_sticky_cursor(self, tag: Hashable) -> None:
        self.window.set_sticky_cursor(tag)

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def _configured_tools(self) -> list[Tool]:
        return list(self._tools_provider())

    def setup_tools(self) -> None:
        """Rebuild the tool list from configuration and start a status sweep."""
        tools = self._configured_tools()
        logger.debug("Setting up %d tools", len(tools))

        def apply(state: DashboardState) -> None:
            state.tools.all = [ToolState(tool) for tool in tools]

        self.mutate(apply)
        self.poller.start()
        self._sync_spinner()

    def _sync_spinner(self) -> None:
        if self.window.is_open() and self.get_state().tools.any_busy():
            self.spinner.start()
        elif self.spinner.is_animating:
            self.spinner.cancel()

    def _set_spinner_frame(self, frame: int) -> None:
        def apply(state: DashboardState) -> None:
            state.spinner_frame = frame

        self.mutate(apply)

    # ------------------------------------------------------------------
    # Refresh timer
    # ------------------------------------------------------------------

    def _start_refresh_timer(self) -> None:
        if self._refresh_handle is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, refresh timer not started")
            return
        self._refresh_handle = loop.call_later(self.settings.ui.refresh_interval_ms / 1000, self._refresh)

    def _stop_refresh_timer(self) -> None:
        handle, self._refresh_handle = self._refresh_handle, None
        if handle is not None:
            handle.cancel()

    def _refresh(self) -> None:
        self._refresh_handle = None
        if not self.window.is_open():
            return
        configured = [tool.name for tool in self._configured_tools()]
        if configured != self.get_state().tools.names():
            logger.info("Tool configuration changed, reloading %d tools", len(configured))
            self.setup_tools()
        else:
            self._sync_spinner()
        self._start_refresh_timer()

    # ------------------------------------------------------------------
    # View and effects
    # ------------------------------------------------------------------

    def _render(self, state: DashboardState) -> Node:
        return dashboard_view(state, self.settings.ui.title, self.version)

    def _on_close_window(self, _event: EffectEvent) -> None:
        self.close()

    def _on_toggle_help(self, _event: EffectEvent) -> None:
        def apply(state: DashboardState) -> None:
            state.view.is_showing_help = not state.view.is_showing_help

        self.mutate(apply)

    def _on_install_tool(self, event: EffectEvent) -> None:
        if self.actions.install(event.payload):
            self._sync_spinner()

    def _on_update_tool(self, event: EffectEvent) -> None:
        if self.actions.update(event.payload):
            self._sync_spinner()

    def _on_toggle_log(self, event: EffectEvent) -> None:
        def apply(state: DashboardState) -> None:
            tool_state = find_tool(state.tools.all, event.payload)
            if tool_state is not None:
                tool_state.is_log_expanded = not tool_state.is_log_expanded

        self.mutate(apply)


def create_dashboard(
    settings: Settings,
    host: SurfaceHost,
    runner: CommandRunner | None = None,
    tools_provider: Callable[[], Sequence[Tool]] | None = None,
) -> Dashboard:
    return Dashboard(settings, host, runner=runner, tools_provider=tools_provider)
