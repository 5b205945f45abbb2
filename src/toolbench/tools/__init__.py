"""Tool descriptors, runtime state and install/update execution."""

# Descriptors
from toolbench.tools.descriptor import (
    Action,
    CommandResolver,
    Tool,
    ToolBuilder,
    executable_probe,
    tool_from_config,
)

# Runtime state
from toolbench.tools.state import LOG_LINE_LIMIT, InstallState, ToolState

# Command execution
from toolbench.tools.runner import CommandRunner, ShellCommandRunner

# Actions
from toolbench.tools.actions import ToolActions, find_tool, install_all, run_action, run_batch, update_all

__all__ = [
    # Descriptors
    "Action",
    "CommandResolver",
    "Tool",
    "ToolBuilder",
    "executable_probe",
    "tool_from_config",
    # Runtime state
    "LOG_LINE_LIMIT",
    "InstallState",
    "ToolState",
    # Command execution
    "CommandRunner",
    "ShellCommandRunner",
    # Actions
    "ToolActions",
    "find_tool",
    "install_all",
    "run_action",
    "run_batch",
    "update_all",
]
