"""State shape of the dashboard view."""

from __future__ import annotations

from dataclasses import dataclass, field

from toolbench.tools.state import InstallState, ToolState


@dataclass
class ViewState:
    is_showing_help: bool = False


@dataclass
class ToolsState:
    all: list[ToolState] = field(default_factory=list)
    checking_statuses: bool = False

    def names(self) -> list[str]:
        return [tool_state.name for tool_state in self.all]

    def any_busy(self) -> bool:
        return self.checking_statuses or any(tool_state.is_busy for tool_state in self.all)

    def grouped(self) -> tuple[list[ToolState], list[ToolState], list[ToolState]]:
        """Split tools into (installing, installed, available), keeping their order."""
        installing: list[ToolState] = []
        installed: list[ToolState] = []
        available: list[ToolState] = []
        for tool_state in self.all:
            if tool_state.install_state is InstallState.INSTALLING:
                installing.append(tool_state)
            elif tool_state.install_state is InstallState.INSTALLED:
                installed.append(tool_state)
            else:
                available.append(tool_state)
        return installing, installed, available


@dataclass
class DashboardState:
    view: ViewState = field(default_factory=ViewState)
    tools: ToolsState = field(default_factory=ToolsState)
    spinner_frame: int = 0
