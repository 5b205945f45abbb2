"""Exception hierarchy shared across the dashboard, the UI engine and the tools layer."""

from __future__ import annotations


class ToolbenchError(Exception):
    """Base class for every error raised by toolbench."""


class ConfigurationFault(ToolbenchError, ValueError):
    """A tool descriptor is missing required fields or carries invalid values."""

    def __init__(self, message: str, tool_name: str | None = None) -> None:
        super().__init__(message)
        self.tool_name = tool_name


class RenderAbort(ToolbenchError):
    """A draw could not complete because its target went away."""


class SurfaceInvalid(RenderAbort):
    """Raised by a surface that is used after it has been torn down."""
