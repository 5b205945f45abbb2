"""Display surface protocols and window geometry.

The display controller never talks to a concrete screen. It asks a
``SurfaceHost`` for rectangular ``Surface`` windows and writes render output
into them. ``toolbench.ui.screen`` provides the terminal implementation;
tests use an in-memory one.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from toolbench.ui.nodes import Span
from toolbench.ui.render import DiagnosticEntry

NO_BORDERS = ("none", "")

POPUP_ZINDEX = 45
BACKDROP_ZINDEX = 44


@dataclass(frozen=True)
class WindowLayout:
    """Position and size of a window, in host cells.

    ``width``/``height`` describe the content area; a border, when drawn,
    sits outside it.
    """

    width: int
    height: int
    row: int
    col: int
    border: str = "none"
    title: str = ""
    zindex: int = POPUP_ZINDEX
    focusable: bool = True


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class Surface(Protocol):
    """A window the controller renders into.

    Every method except ``is_valid`` raises
    :class:`toolbench.errors.SurfaceInvalid` once the surface is gone.
    Lines and the cursor line are 0-based.
    """

    def is_valid(self) -> bool: ...

    @property
    def width(self) -> int: ...

    def get_cursor(self) -> tuple[int, int]: ...

    def set_cursor(self, line: int, col: int) -> None: ...

    def set_lines(self, lines: Sequence[str]) -> None: ...

    def clear_decorations(self) -> None: ...

    def add_highlight(self, group: str, line: int, col_start: int, col_end: int) -> None: ...

    def set_virtual_text(self, line: int, spans: Sequence[Span]) -> None: ...

    def set_diagnostics(self, diagnostics: Sequence[DiagnosticEntry]) -> None: ...

    def bind_key(self, key: str, handler: Callable[[], None]) -> None: ...

    def set_layout(self, layout: WindowLayout) -> None: ...

    def on_close(self, handler: Callable[[], None]) -> None: ...

    def close(self) -> None: ...


class SurfaceHost(Protocol):
    """The environment that owns the screen and hands out surfaces."""

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    @property
    def supports_backdrop(self) -> bool: ...

    def open_surface(self, layout: WindowLayout, *, focus: bool = True, highlight: str = "") -> Surface: ...

    def open_backdrop(self, opacity: int) -> Surface: ...

    def on_resize(self, handler: Callable[[], None]) -> Callable[[], None]:
        """Register *handler*; return a function that unregisters it."""
        ...


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


def calc_size(size: float, viewport: int) -> int:
    """Resolve a size against a viewport extent.

    Values above 1 are absolute counts capped to *viewport*; values in
    ``(0, 1]`` are fractions of it, floored.
    """
    if size > 1:
        return int(min(size, viewport))
    return math.floor(size * viewport)


def popup_layout(
    columns: int,
    rows: int,
    width: float,
    height: float,
    border: str = "none",
    title: str = "",
) -> WindowLayout:
    """Centre a popup of the configured size within the host viewport."""
    h = calc_size(height, rows)
    w = calc_size(width, columns)
    row = (rows - h) // 2
    col = (columns - w) // 2
    if border not in NO_BORDERS:
        row = max(row - 1, 0)
        col = max(col - 1, 0)
    return WindowLayout(width=w, height=h, row=row, col=col, border=border, title=title)


def backdrop_layout(columns: int, rows: int) -> WindowLayout:
    return WindowLayout(
        width=columns,
        height=rows,
        row=0,
        col=0,
        border="none",
        zindex=BACKDROP_ZINDEX,
        focusable=False,
    )
