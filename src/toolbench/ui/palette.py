"""Highlight groups used by the dashboard and their terminal styles.

Components build spans with the helpers below (``header("text")`` gives
``("text", "ToolbenchHeader")``); the terminal host looks each group up in
:data:`STYLES` to paint it.
"""

from __future__ import annotations

from collections.abc import Callable

from toolbench.ui.nodes import Span

RESET = "\x1b[0m"
BOLD = "\x1b[1m"
REVERSE = "\x1b[7m"


def _fg(r: int, g: int, b: int) -> str:
    return f"\x1b[38;2;{r};{g};{b}m"


def _bg(r: int, g: int, b: int) -> str:
    return f"\x1b[48;2;{r};{g};{b}m"


_DARK = (0x22, 0x22, 0x22)
_GOLD = (0xDC, 0xA5, 0x61)
_CYAN = (0x56, 0xB6, 0xC2)
_GREY = (0x88, 0x88, 0x88)
_RED = (0xE0, 0x6C, 0x75)
_YELLOW = (0xE5, 0xC0, 0x7B)

HEADER = "ToolbenchHeader"
HEADER_SECONDARY = "ToolbenchHeaderSecondary"
HIGHLIGHT = "ToolbenchHighlight"
HIGHLIGHT_SECONDARY = "ToolbenchHighlightSecondary"
MUTED = "ToolbenchMuted"
ERROR = "ToolbenchError"
WARNING = "ToolbenchWarning"
HEADING = "ToolbenchHeading"
COMMENT = "ToolbenchComment"
NORMAL = "ToolbenchNormal"
BACKDROP = "ToolbenchBackdrop"

STYLES: dict[str, str] = {
    HEADER: BOLD + _fg(*_DARK) + _bg(*_GOLD),
    HEADER_SECONDARY: BOLD + _fg(*_DARK) + _bg(*_CYAN),
    HIGHLIGHT: _fg(*_CYAN),
    HIGHLIGHT_SECONDARY: _fg(*_GOLD),
    MUTED: _fg(*_GREY),
    ERROR: _fg(*_RED),
    WARNING: _fg(*_YELLOW),
    HEADING: BOLD,
    COMMENT: _fg(*_GREY),
    NORMAL: "",
    BACKDROP: _bg(0, 0, 0),
}


def style_for(group: str) -> str:
    """SGR prefix for *group*; unknown groups render unstyled."""
    return STYLES.get(group, "")


def _hl(group: str) -> Callable[[str], Span]:
    def span(text: str) -> Span:
        return (text, group)

    return span


none = _hl("")
header = _hl(HEADER)
header_secondary = _hl(HEADER_SECONDARY)
highlight = _hl(HIGHLIGHT)
highlight_secondary = _hl(HIGHLIGHT_SECONDARY)
muted = _hl(MUTED)
error = _hl(ERROR)
warning = _hl(WARNING)
heading = _hl(HEADING)
comment = _hl(COMMENT)
