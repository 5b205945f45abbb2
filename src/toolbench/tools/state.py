"""Per-tool runtime state shown by the dashboard."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from toolbench.tools.descriptor import Action, Tool

LOG_LINE_LIMIT = 100


class InstallState(enum.Enum):
    CHECKING = "checking"
    NOT_INSTALLED = "not_installed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    FAILED = "failed"


@dataclass
class ToolState:
    """Install state and captured output for one tool.

    ``log`` keeps the last :data:`LOG_LINE_LIMIT` lines; ``last_non_empty_line``
    is the latest line with visible content, used as a one-line preview.
    """

    tool: Tool
    install_state: InstallState = InstallState.CHECKING
    log: list[str] = field(default_factory=list)
    last_non_empty_line: str | None = None
    is_log_expanded: bool = False

    @property
    def name(self) -> str:
        return self.tool.name

    @property
    def description(self) -> str:
        return self.tool.description

    @property
    def is_busy(self) -> bool:
        return self.install_state in (InstallState.CHECKING, InstallState.INSTALLING)

    def reset_log(self) -> None:
        self.log = []
        self.last_non_empty_line = None
        self.is_log_expanded = False

    def append_output(self, line: str) -> None:
        self.log.append(line)
        if line.strip():
            self.last_non_empty_line = line.lstrip()
        if len(self.log) > LOG_LINE_LIMIT:
            del self.log[: len(self.log) - LOG_LINE_LIMIT]

    def set_message(self, message: str) -> None:
        """Replace the log with a single *message*."""
        self.log = [message]
        self.last_non_empty_line = message

    def resolve_command(self, action: Action) -> tuple[str | None, str | None]:
        return self.tool.resolve_command(action)
