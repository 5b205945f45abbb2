"""Declarative node tree for describing a view.

A view function returns a tree built from the seven node variants below.
The tree is inert data: the render engine (:mod:`toolbench.ui.render`) walks
it and produces the lines and positional metadata that a surface displays.

Besides the variant classes, this module provides small builders that cover
the common shapes (plain text, a single highlighted line, conditional
subtrees, column-aligned tables).
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass
from typing import Any, Union

from toolbench.ui.utils import visible_width

# (text, highlight group); an empty group means "no highlight"
Span = tuple[str, str]


class StyleTag(enum.Enum):
    INDENT = "INDENT"
    CENTERED = "CENTERED"


class Severity(enum.IntEnum):
    ERROR = 1
    WARN = 2
    INFO = 3
    HINT = 4


# ---------------------------------------------------------------------------
# Node variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Container:
    children: Sequence[Node]


@dataclass(frozen=True)
class CascadingStyle:
    styles: frozenset[StyleTag]
    children: Sequence[Node]


@dataclass(frozen=True)
class TextBlock:
    lines: Sequence[Sequence[Span]]


@dataclass(frozen=True)
class VirtualAnnotation:
    spans: Sequence[Span]


@dataclass(frozen=True)
class KeybindBinding:
    key: str
    effect: str
    payload: Any = None
    is_global: bool = False


@dataclass(frozen=True)
class DiagnosticAnnotation:
    message: str
    severity: Severity = Severity.ERROR
    source: str | None = None


@dataclass(frozen=True)
class StickyCursorMarker:
    id: Hashable


Node = Union[
    Container,
    CascadingStyle,
    TextBlock,
    VirtualAnnotation,
    KeybindBinding,
    DiagnosticAnnotation,
    StickyCursorMarker,
]


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def node(children: Sequence[Node]) -> Container:
    return Container(children=tuple(children))


def cascading_style(styles: Sequence[StyleTag] | set[StyleTag], children: Sequence[Node]) -> CascadingStyle:
    return CascadingStyle(styles=frozenset(styles), children=tuple(children))


def hl_text(lines: Sequence[Sequence[Span]] | Span) -> TextBlock:
    """Build a text block from lines of spans.

    A bare ``(text, group)`` tuple is accepted as a one-line, one-span
    shorthand.
    """
    if len(lines) == 2 and isinstance(lines[0], str):
        return TextBlock(lines=(((lines[0], lines[1]),),))  # type: ignore[index]
    return TextBlock(lines=tuple(tuple(line) for line in lines))  # type: ignore[union-attr]


def text(lines: Sequence[str]) -> TextBlock:
    """Build an unhighlighted text block, one line per string."""
    return TextBlock(lines=tuple(((line, ""),) for line in lines))


def empty_line() -> TextBlock:
    return text([""])


def virtual_text(spans: Sequence[Span]) -> VirtualAnnotation:
    return VirtualAnnotation(spans=tuple(spans))


def diagnostic(message: str, severity: Severity = Severity.ERROR, source: str | None = None) -> DiagnosticAnnotation:
    return DiagnosticAnnotation(message=message, severity=severity, source=source)


def keybind(key: str, effect: str, payload: Any = None, is_global: bool = False) -> KeybindBinding:
    return KeybindBinding(key=key, effect=effect, payload=payload, is_global=is_global)


def sticky_cursor(id: Hashable) -> StickyCursorMarker:
    return StickyCursorMarker(id=id)


def when(
    condition: object,
    subtree: Node | Callable[[], Node],
    default: Node | None = None,
) -> Node:
    """Return *subtree* when *condition* is truthy, else *default* (or an empty container).

    *subtree* may be a zero-argument callable so that expensive branches are
    only built when they are shown.
    """
    if condition:
        return subtree() if callable(subtree) else subtree
    return default if default is not None else Container(children=())


def table(rows: Sequence[Sequence[Span]]) -> TextBlock:
    """Lay out rows of spans as columns padded to a common display width.

    Every cell is padded to the widest cell of its column plus one space.
    """
    col_widths: list[int] = []
    for row in rows:
        for j, (content, _group) in enumerate(row):
            width = visible_width(content)
            if j >= len(col_widths):
                col_widths.append(width)
            else:
                col_widths[j] = max(col_widths[j], width)

    padded: list[tuple[Span, ...]] = []
    for row in rows:
        cells: list[Span] = []
        for j, (content, group) in enumerate(row):
            pad = col_widths[j] - visible_width(content) + 1
            cells.append((content + " " * pad, group))
        padded.append(tuple(cells))
    return TextBlock(lines=tuple(padded))
