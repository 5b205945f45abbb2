"""Tool descriptors and their builder.

A :class:`Tool` is immutable once built. Descriptors are assembled with
:class:`ToolBuilder`, which validates everything in :meth:`ToolBuilder.build`
and raises :class:`~toolbench.errors.ConfigurationFault` on bad input::

    tool = (
        ToolBuilder("ripgrep")
        .description("A fast search tool")
        .executable("rg")
        .install_cmd("brew install ripgrep")
        .update_cmd("brew upgrade ripgrep")
        .build()
    )
"""

from __future__ import annotations

import enum
import shutil
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from toolbench.errors import ConfigurationFault

# () -> (command, error); at most one of the two is set
CommandResolver = Callable[[], tuple[str | None, str | None]]


class Action(enum.Enum):
    INSTALL = "install"
    UPDATE = "update"


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    is_installed: Callable[[], bool]
    install_cmd: str | None = None
    update_cmd: str | None = None
    resolve_install_command: CommandResolver | None = None
    resolve_update_command: CommandResolver | None = None

    def resolve_command(self, action: Action) -> tuple[str | None, str | None]:
        """Return ``(command, error)`` for *action*.

        A resolver, when present, takes precedence over the static command
        string; a resolver that yields neither a command nor an error means
        no command is configured.
        """
        if action is Action.INSTALL:
            resolver, static = self.resolve_install_command, self.install_cmd
        else:
            resolver, static = self.resolve_update_command, self.update_cmd
        if resolver is not None:
            cmd, err = resolver()
            return cmd, err
        return static, None


def executable_probe(executable: str) -> Callable[[], bool]:
    """Return an ``is_installed`` check that looks *executable* up on ``PATH``."""

    def is_installed() -> bool:
        return shutil.which(executable) is not None

    return is_installed


class ToolBuilder:
    """Fluent builder for :class:`Tool`."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._description: str | None = None
        self._is_installed: Callable[[], bool] | None = None
        self._executable: str | None = None
        self._install_cmd: str | None = None
        self._update_cmd: str | None = None
        self._resolve_install: CommandResolver | None = None
        self._resolve_update: CommandResolver | None = None

    def description(self, description: str) -> ToolBuilder:
        self._description = description
        return self

    def is_installed(self, check: Callable[[], bool]) -> ToolBuilder:
        self._is_installed = check
        return self

    def executable(self, executable: str) -> ToolBuilder:
        """Probe installation by looking *executable* up on ``PATH``."""
        self._executable = executable
        return self

    def install_cmd(self, cmd: str) -> ToolBuilder:
        self._install_cmd = cmd
        return self

    def update_cmd(self, cmd: str) -> ToolBuilder:
        self._update_cmd = cmd
        return self

    def resolve_install_command(self, resolver: CommandResolver) -> ToolBuilder:
        self._resolve_install = resolver
        return self

    def resolve_update_command(self, resolver: CommandResolver) -> ToolBuilder:
        self._resolve_update = resolver
        return self

    def build(self) -> Tool:
        if not self._name or not isinstance(self._name, str):
            raise ConfigurationFault("Missing required field: name")
        if not self._description:
            raise ConfigurationFault(f"Tool {self._name!r} is missing required field: description", self._name)
        for label, cmd in (("install_cmd", self._install_cmd), ("update_cmd", self._update_cmd)):
            if cmd is not None and (not isinstance(cmd, str) or not cmd.strip()):
                raise ConfigurationFault(f"Tool {self._name!r} has an empty {label}", self._name)

        is_installed = self._is_installed
        if is_installed is None:
            is_installed = executable_probe(self._executable or self._name)

        return Tool(
            name=self._name,
            description=self._description,
            is_installed=is_installed,
            install_cmd=self._install_cmd,
            update_cmd=self._update_cmd,
            resolve_install_command=self._resolve_install,
            resolve_update_command=self._resolve_update,
        )


def tool_from_config(entry: Mapping[str, Any]) -> Tool:
    """Build a tool from a settings-file entry.

    Recognised keys: ``name``, ``description``, ``executable``,
    ``install_cmd``, ``update_cmd``.
    """
    if not isinstance(entry, Mapping):
        raise ConfigurationFault(f"Tool entry must be an object, got {type(entry).__name__}")
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise ConfigurationFault("Missing required field: name")

    builder = ToolBuilder(name)
    if entry.get("description") is not None:
        builder.description(str(entry["description"]))
    if entry.get("executable") is not None:
        builder.executable(str(entry["executable"]))
    if entry.get("install_cmd") is not None:
        builder.install_cmd(entry["install_cmd"])
    if entry.get("update_cmd") is not None:
        builder.update_cmd(entry["update_cmd"])
    return builder.build()
