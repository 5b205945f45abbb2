"""Terminal implementation of the surface host.

:class:`TerminalHost` owns a :class:`~toolbench.ui.terminal.Terminal` and
paints every open :class:`TerminalWindow` onto it, lowest z-index first.
Repaints requested while one is already pending are coalesced into a
single full-frame write on the next loop iteration.

Key input goes to the focused window: a key bound with ``bind_key`` runs
its handler, otherwise the navigation keys move the cursor. An unbound
``ctrl+c`` closes the window.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from toolbench.errors import SurfaceInvalid
from toolbench.ui import palette
from toolbench.ui.events import Fault, call_handler
from toolbench.ui.keys import parse_key
from toolbench.ui.nodes import Severity, Span
from toolbench.ui.render import DiagnosticEntry
from toolbench.ui.surface import NO_BORDERS, WindowLayout, backdrop_layout
from toolbench.ui.terminal import Terminal
from toolbench.ui.utils import grapheme_width, take_columns, visible_width

logger = logging.getLogger(__name__)

# top-left, top-right, bottom-left, bottom-right, horizontal, vertical
BORDER_CHARS: dict[str, str] = {
    "rounded": "╭╮╰╯─│",
    "single": "┌┐└┘─│",
    "double": "╔╗╚╝═║",
    "solid": "┏┓┗┛━┃",
}
ASCII_BORDER = "++++-|"

SEVERITY_SIGNS: dict[Severity, tuple[str, str]] = {
    Severity.ERROR: ("●", palette.ERROR),
    Severity.WARN: ("▲", palette.WARNING),
    Severity.INFO: ("■", palette.HIGHLIGHT),
    Severity.HINT: ("·", palette.MUTED),
}

NAVIGATION_KEYS = frozenset({"up", "down", "k", "j", "home", "end", "g", "G", "pageUp", "pageDown"})


def _move(row: int, col: int) -> str:
    return f"\x1b[{row + 1};{col + 1}H"


class TerminalWindow:
    """A rectangular window painted by a :class:`TerminalHost`."""

    def __init__(self, host: TerminalHost, layout: WindowLayout, *, highlight: str = "", opacity: int | None = None) -> None:
        self._host = host
        self._layout = layout
        self._highlight = highlight
        self._opacity = opacity
        self._valid = True
        self._lines: list[str] = []
        self._cursor: tuple[int, int] = (0, 0)
        self._top = 0
        self._highlights: dict[int, list[tuple[str, int, int]]] = {}
        self._virtual_text: dict[int, list[Span]] = {}
        self._diagnostics: dict[int, list[DiagnosticEntry]] = {}
        self._bindings: dict[str, Callable[[], None]] = {}
        self._close_handlers: list[Callable[[], None]] = []

    # -- Surface protocol ---------------------------------------------------

    def is_valid(self) -> bool:
        return self._valid

    def _check(self) -> None:
        if not self._valid:
            raise SurfaceInvalid("window has been closed")

    @property
    def width(self) -> int:
        self._check()
        return self._layout.width

    @property
    def layout(self) -> WindowLayout:
        return self._layout

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def get_cursor(self) -> tuple[int, int]:
        self._check()
        return self._cursor

    def set_cursor(self, line: int, col: int) -> None:
        self._check()
        last = max(len(self._lines) - 1, 0)
        self._cursor = (min(max(line, 0), last), max(col, 0))
        self._host.request_paint()

    def set_lines(self, lines: Sequence[str]) -> None:
        self._check()
        self._lines = list(lines)
        line, col = self._cursor
        last = max(len(self._lines) - 1, 0)
        if line > last:
            self._cursor = (last, col)
        self._host.request_paint()

    def clear_decorations(self) -> None:
        self._check()
        self._highlights = {}
        self._virtual_text = {}
        self._diagnostics = {}

    def add_highlight(self, group: str, line: int, col_start: int, col_end: int) -> None:
        self._check()
        self._highlights.setdefault(line, []).append((group, col_start, col_end))

    def set_virtual_text(self, line: int, spans: Sequence[Span]) -> None:
        self._check()
        self._virtual_text[line] = list(spans)

    def set_diagnostics(self, diagnostics: Sequence[DiagnosticEntry]) -> None:
        self._check()
        self._diagnostics = {}
        for diagnostic in diagnostics:
            self._diagnostics.setdefault(diagnostic.line, []).append(diagnostic)
        self._host.request_paint()

    def bind_key(self, key: str, handler: Callable[[], None]) -> None:
        self._check()
        self._bindings[key] = handler

    def set_layout(self, layout: WindowLayout) -> None:
        self._check()
        self._layout = layout
        self._host.request_paint()

    def on_close(self, handler: Callable[[], None]) -> None:
        self._close_handlers.append(handler)

    def close(self) -> None:
        if not self._valid:
            return
        self._valid = False
        self._host._remove(self)
        handlers, self._close_handlers = self._close_handlers, []
        for handler in handlers:
            result = call_handler(handler)
            if isinstance(result, Fault):
                logger.warning("Close handler failed: %r", result.error)

    # -- Input --------------------------------------------------------------

    @property
    def focusable(self) -> bool:
        return self._layout.focusable

    def handle_key(self, key: str) -> None:
        handler = self._bindings.get(key)
        if handler is not None:
            handler()
            return
        if key in NAVIGATION_KEYS:
            self._navigate(key)
        elif key == "ctrl+c":
            self.close()

    def _navigate(self, key: str) -> None:
        line, col = self._cursor
        page = max(self._layout.height - 1, 1)
        if key in ("up", "k"):
            line -= 1
        elif key in ("down", "j"):
            line += 1
        elif key in ("home", "g"):
            line = 0
        elif key in ("end", "G"):
            line = len(self._lines) - 1
        elif key == "pageUp":
            line -= page
        elif key == "pageDown":
            line += page
        self.set_cursor(line, col)

    # -- Painting -----------------------------------------------------------

    def _scroll(self) -> None:
        height = max(self._layout.height, 1)
        line, _ = self._cursor
        if line < self._top:
            self._top = line
        elif line >= self._top + height:
            self._top = line - height + 1
        self._top = max(0, min(self._top, max(len(self._lines) - height, 0)))

    def _paint_line(self, index: int, width: int) -> str:
        """Return the styled, exactly *width*-column content of line *index*."""
        text = self._lines[index]
        styles = [""] * len(text)
        for group, start, end in self._highlights.get(index, []):
            sgr = palette.style_for(group)
            for i in range(max(start, 0), min(end, len(text))):
                styles[i] = sgr

        parts: list[str] = []
        used = 0
        current = None
        for ch, sgr in zip(text, styles):
            w = grapheme_width(ch) if ch != "\t" else 3
            if used + w > width:
                break
            if sgr != current:
                parts.append(palette.RESET + self._highlight_prefix() + sgr)
                current = sgr
            parts.append(ch)
            used += w
        parts.append(palette.RESET + self._highlight_prefix())

        extras: list[Span] = []
        virtual = self._virtual_text.get(index)
        if virtual:
            extras.append((" ", ""))
            extras.extend(virtual)
        for diagnostic in self._diagnostics.get(index, []):
            sign, group = SEVERITY_SIGNS.get(diagnostic.severity, ("●", palette.ERROR))
            extras.append((f"  {sign} {diagnostic.message}", group))

        for span_text, group in extras:
            remaining = width - used
            if remaining <= 0:
                break
            cut = take_columns(span_text, remaining)
            parts.append(palette.style_for(group) + cut + palette.RESET + self._highlight_prefix())
            used += visible_width(cut)

        parts.append(" " * max(0, width - used))
        styled = "".join(parts)
        if index == self._cursor[0]:
            styled = palette.REVERSE + styled.replace(palette.RESET, palette.RESET + palette.REVERSE)
        return styled + palette.RESET

    def _highlight_prefix(self) -> str:
        return palette.style_for(self._highlight) if self._highlight else ""

    def paint(self) -> str:
        """Return the escape sequences that draw this window."""
        if self._opacity is not None:
            return self._paint_backdrop()

        layout = self._layout
        self._scroll()
        border = layout.border not in NO_BORDERS
        chars = BORDER_CHARS.get(layout.border, ASCII_BORDER)
        row, col = layout.row, layout.col
        content_col = col + 1 if border else col
        out: list[str] = []

        if border:
            title = f" {layout.title} " if layout.title else ""
            title = take_columns(title, layout.width)
            top = chars[0] + title + chars[4] * (layout.width - visible_width(title)) + chars[1]
            out.append(_move(row, col) + top)
            row += 1

        for offset in range(layout.height):
            index = self._top + offset
            if index < len(self._lines):
                content = self._paint_line(index, layout.width)
            else:
                content = self._highlight_prefix() + " " * layout.width + palette.RESET
            if border:
                out.append(_move(row + offset, col) + chars[5] + content + chars[5])
            else:
                out.append(_move(row + offset, content_col) + content)

        if border:
            bottom = chars[2] + chars[4] * layout.width + chars[3]
            out.append(_move(row + layout.height, col) + bottom)
        return "".join(out)

    def _paint_backdrop(self) -> str:
        assert self._opacity is not None
        if self._opacity <= 0:
            return ""
        shade = max(0, 48 - int(48 * self._opacity / 100))
        fill = f"\x1b[48;2;{shade};{shade};{shade}m"
        blank = " " * self._layout.width
        return "".join(
            _move(self._layout.row + r, self._layout.col) + fill + blank + palette.RESET
            for r in range(self._layout.height)
        )


class TerminalHost:
    """Surface host that paints windows onto a terminal."""

    supports_backdrop = True

    def __init__(self, terminal: Terminal) -> None:
        self.terminal = terminal
        self._windows: list[TerminalWindow] = []
        self._resize_handlers: list[Callable[[], None]] = []
        self._paint_pending = False
        self._started = False

    @property
    def columns(self) -> int:
        return self.terminal.columns

    @property
    def rows(self) -> int:
        return self.terminal.rows

    @property
    def windows(self) -> list[TerminalWindow]:
        return list(self._windows)

    # -- lifecycle ----------------------------------------------------------

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.terminal.start(self.handle_input, self.handle_resize)
        self.terminal.hide_cursor()

    def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        for window in list(self._windows):
            window.close()
        self.terminal.clear_screen()
        self.terminal.show_cursor()
        self.terminal.stop()

    # -- SurfaceHost protocol -------------------------------------------------

    def open_surface(self, layout: WindowLayout, *, focus: bool = True, highlight: str = "") -> TerminalWindow:
        window = TerminalWindow(self, layout, highlight=highlight)
        if focus:
            self._windows.append(window)
        else:
            self._windows.insert(0, window)
        self.request_paint()
        return window

    def open_backdrop(self, opacity: int) -> TerminalWindow:
        window = TerminalWindow(self, backdrop_layout(self.columns, self.rows), opacity=opacity)
        self._windows.insert(0, window)
        self.request_paint()
        return window

    def on_resize(self, handler: Callable[[], None]) -> Callable[[], None]:
        self._resize_handlers.append(handler)

        def unregister() -> None:
            if handler in self._resize_handlers:
                self._resize_handlers.remove(handler)

        return unregister

    # -- events -------------------------------------------------------------

    def handle_resize(self) -> None:
        for handler in list(self._resize_handlers):
            result = call_handler(handler)
            if isinstance(result, Fault):
                logger.warning("Resize handler failed: %r", result.error, exc_info=result.error)
        self.request_paint()

    def handle_input(self, data: str) -> None:
        key = parse_key(data)
        if key is None:
            logger.debug("Ignoring unrecognised input %r", data)
            return
        window = self.focused_window()
        if window is not None:
            window.handle_key(key)

    def focused_window(self) -> TerminalWindow | None:
        """The topmost focusable window."""
        candidates = [w for w in self._windows if w.is_valid() and w.focusable]
        if not candidates:
            return None
        return max(candidates, key=lambda w: w.layout.zindex)

    def _remove(self, window: TerminalWindow) -> None:
        if window in self._windows:
            self._windows.remove(window)
        self.request_paint()

    # -- painting -----------------------------------------------------------

    def request_paint(self) -> None:
        if self._paint_pending:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.paint()
            return
        self._paint_pending = True
        loop.call_soon(self.paint)

    def paint(self) -> None:
        self._paint_pending = False
        frame = ["\x1b[2J"]
        # stable sort keeps open order among equal z-indexes
        for window in sorted(self._windows, key=lambda w: w.layout.zindex):
            frame.append(window.paint())
        self.terminal.write("".join(frame))


