"""The toolchain dashboard view."""

from toolbench.dashboard.app import Dashboard, create_dashboard
from toolbench.dashboard.state import DashboardState, ToolsState, ViewState
from toolbench.dashboard.status import StatusPoller

__all__ = [
    "Dashboard",
    "DashboardState",
    "StatusPoller",
    "ToolsState",
    "ViewState",
    "create_dashboard",
]
