"""Node-tree components of the dashboard.

Each component is a plain function from state to a node tree. Tool lines
carry their own line-scoped keybinds and a sticky-cursor marker keyed by
tool name, so the cursor follows a tool when it moves between sections.
"""

from __future__ import annotations

import re

from toolbench.dashboard.state import DashboardState
from toolbench.tools.state import InstallState, ToolState
from toolbench.ui import palette as p
from toolbench.ui.nodes import (
    Node,
    Severity,
    Span,
    StyleTag,
    cascading_style,
    diagnostic,
    empty_line,
    hl_text,
    keybind,
    node,
    sticky_cursor,
    table,
    virtual_text,
    when,
)

SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")

LOG_PREVIEW_LINES = 5

SUBTITLE = "Install and update your development tools"

FOOTER = " i: Install  u: Update  l: Log  ?: Help  q: Quit"

# effect names
CLOSE_WINDOW = "CLOSE_WINDOW"
TOGGLE_HELP = "TOGGLE_HELP"
INSTALL_TOOL = "INSTALL_TOOL"
UPDATE_TOOL = "UPDATE_TOOL"
TOGGLE_LOG = "TOGGLE_LOG"

HELP_ROWS: tuple[tuple[str, str], ...] = (
    ("i, enter", "Install the tool under the cursor"),
    ("u", "Update the tool under the cursor"),
    ("l", "Show or hide the full output log"),
    ("j, k, up, down", "Move the cursor"),
    ("g, G", "Jump to the first or last line"),
    ("?", "Toggle this help"),
    ("q, escape", "Close the window"),
)

_ERROR_RE = re.compile(r"[Ee]rror|[Ff]ail")
_SUCCESS_RE = re.compile(r"[Ss]uccess|[Dd]one")


def global_keybinds() -> Node:
    return node(
        [
            keybind("q", CLOSE_WINDOW, is_global=True),
            keybind("escape", CLOSE_WINDOW, is_global=True),
            keybind("?", TOGGLE_HELP, is_global=True),
        ]
    )


def header(title: str, version: str) -> Node:
    return cascading_style(
        {StyleTag.CENTERED},
        [
            hl_text(
                [
                    [p.header(f" {title} "), p.header(f"{version} ")],
                    [p.comment(SUBTITLE)],
                ]
            )
        ],
    )


def spinner_glyph(frame: int) -> str:
    return SPINNER_FRAMES[frame % len(SPINNER_FRAMES)]


def status_span(tool_state: ToolState, frame: int) -> Span:
    match tool_state.install_state:
        case InstallState.INSTALLING | InstallState.CHECKING:
            return p.muted(spinner_glyph(frame) + " ")
        case InstallState.INSTALLED:
            return p.highlight("✓ ")
        case InstallState.FAILED:
            return p.error("x ")
        case InstallState.NOT_INSTALLED:
            return p.error("✗ ")
    return p.muted("? ")


def log_line_group(line: str) -> str:
    """Pick the highlight group for one line of command output."""
    if line.startswith("#") or line.startswith("["):
        return p.HIGHLIGHT_SECONDARY
    if _ERROR_RE.search(line):
        return p.ERROR
    if _SUCCESS_RE.search(line):
        return p.HIGHLIGHT
    return p.MUTED


def log_lines(tool_state: ToolState) -> Node:
    lines = [line for line in tool_state.log if line]
    if not tool_state.is_log_expanded:
        lines = lines[-LOG_PREVIEW_LINES:]
    return hl_text([[(f"  ▶ {line}", log_line_group(line))] for line in lines])


def tool_line(tool_state: ToolState, frame: int) -> Node:
    name = tool_state.name
    is_installing = tool_state.install_state is InstallState.INSTALLING
    is_failed = tool_state.install_state is InstallState.FAILED
    show_log = is_installing or tool_state.is_log_expanded
    return node(
        [
            sticky_cursor(name),
            keybind("i", INSTALL_TOOL, name),
            keybind("enter", INSTALL_TOOL, name),
            keybind("u", UPDATE_TOOL, name),
            keybind("l", TOGGLE_LOG, name),
            when(is_failed, lambda: diagnostic(f"{name} failed", Severity.ERROR, source="toolbench")),
            hl_text(
                [
                    [
                        status_span(tool_state, frame),
                        (name, ""),
                        p.muted(f" - {tool_state.description}"),
                    ]
                ]
            ),
            when(
                not is_installing and tool_state.last_non_empty_line,
                lambda: virtual_text([p.comment(tool_state.last_non_empty_line or "")]),
            ),
            when(show_log and tool_state.log, lambda: log_lines(tool_state)),
        ]
    )


def section(title: str, tools: list[ToolState], frame: int) -> Node:
    return node(
        [
            hl_text([[p.heading(title), p.muted(f" ({len(tools)})")]]),
            *(tool_line(tool_state, frame) for tool_state in tools),
        ]
    )


def main(state: DashboardState) -> Node:
    installing, installed, available = state.tools.grouped()
    frame = state.spinner_frame
    items: list[Node] = []
    for title, tools in (("Installing", installing), ("Installed", installed), ("Available", available)):
        if not tools:
            continue
        if items:
            items.append(empty_line())
        items.append(section(title, tools, frame))

    if not items:
        items.append(hl_text([[p.muted("No tools configured.")]]))

    return node(
        [
            empty_line(),
            cascading_style({StyleTag.INDENT}, items),
            empty_line(),
            hl_text([[p.comment(FOOTER)]]),
        ]
    )


def help_view() -> Node:
    return node(
        [
            empty_line(),
            cascading_style(
                {StyleTag.INDENT},
                [
                    hl_text([[p.heading("Keyboard shortcuts")]]),
                    empty_line(),
                    table([[p.highlight_secondary(keys), p.none(description)] for keys, description in HELP_ROWS]),
                ],
            ),
            empty_line(),
            hl_text([[p.comment(" ?: Back  q: Quit")]]),
        ]
    )


def dashboard_view(state: DashboardState, title: str, version: str) -> Node:
    return node(
        [
            global_keybinds(),
            header(title, version),
            help_view() if state.view.is_showing_help else main(state),
        ]
    )
