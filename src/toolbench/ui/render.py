"""Render engine: flattens a node tree into display lines plus positional metadata.

The walk is depth-first in document order. Every entry recorded in the
auxiliary lists carries the line index that was current when its node was
visited:

* keybinds, diagnostics and sticky-cursor markers point at the *next* line
  to be emitted (``len(output.lines)``), so they precede the line they tag;
* virtual annotations point at the *last* emitted line
  (``len(output.lines) - 1``), so they follow the line they decorate.

All indices are 0-based; global keybinds use ``-1``.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field
from typing import Any, assert_never

from toolbench.ui.nodes import (
    CascadingStyle,
    Container,
    DiagnosticAnnotation,
    KeybindBinding,
    Node,
    Severity,
    Span,
    StickyCursorMarker,
    StyleTag,
    TextBlock,
    VirtualAnnotation,
)
from toolbench.ui.utils import visible_width

GLOBAL_LINE = -1

INDENT_WIDTH = 2


@dataclass(frozen=True)
class Viewport:
    width: int


# ---------------------------------------------------------------------------
# Output records
# ---------------------------------------------------------------------------


@dataclass
class Highlight:
    group: str
    line: int
    col_start: int
    col_end: int


@dataclass
class VirtualAnnotationEntry:
    line: int
    spans: Sequence[Span]


@dataclass
class KeybindEntry:
    line: int
    key: str
    effect: str
    payload: Any = None


@dataclass
class DiagnosticEntry:
    line: int
    message: str
    severity: Severity
    source: str | None = None


@dataclass
class StickyCursorMap:
    line_to_id: dict[int, Hashable] = field(default_factory=dict)
    id_to_line: dict[Hashable, int] = field(default_factory=dict)


@dataclass
class RenderOutput:
    lines: list[str] = field(default_factory=list)
    highlights: list[Highlight] = field(default_factory=list)
    virtual_annotations: list[VirtualAnnotationEntry] = field(default_factory=list)
    keybinds: list[KeybindEntry] = field(default_factory=list)
    diagnostics: list[DiagnosticEntry] = field(default_factory=list)
    sticky_cursor: StickyCursorMap = field(default_factory=StickyCursorMap)


@dataclass
class RenderContext:
    viewport: Viewport
    applied_styles: list[frozenset[StyleTag]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Styles
# ---------------------------------------------------------------------------


def compute_indentation(line: str, context: RenderContext) -> int:
    """Return the number of leading spaces for *line* under the active styles.

    INDENT scopes accumulate; CENTERED replaces whatever has been
    accumulated so far with the centering offset.
    """
    indentation = 0
    for styles in context.applied_styles:
        # CENTERED is applied after INDENT within a single scope
        if StyleTag.INDENT in styles:
            indentation += INDENT_WIDTH
        if StyleTag.CENTERED in styles:
            indentation = max(0, (context.viewport.width - visible_width(line)) // 2)
    return indentation


def _render_text_block(block: TextBlock, context: RenderContext, output: RenderOutput) -> None:
    for spans in block.lines:
        line_no = len(output.lines)
        full_line = ""
        line_highlights: list[Highlight] = []
        for content, group in spans:
            col_start = len(full_line)
            full_line += content
            if group:
                line_highlights.append(
                    Highlight(group=group, line=line_no, col_start=col_start, col_end=col_start + len(content))
                )

        # empty lines stay unstyled
        if full_line:
            indentation = compute_indentation(full_line, context)
            full_line = " " * indentation + full_line
            for hl in line_highlights:
                hl.col_start += indentation
                hl.col_end += indentation
                output.highlights.append(hl)

        output.lines.append(full_line)


# ---------------------------------------------------------------------------
# Walk
# ---------------------------------------------------------------------------


def render(
    viewport: Viewport,
    node: Node,
    context: RenderContext | None = None,
    output: RenderOutput | None = None,
) -> RenderOutput:
    """Render *node* for *viewport*, appending into *output* when given."""
    if context is None:
        context = RenderContext(viewport=viewport)
    if output is None:
        output = RenderOutput()

    match node:
        case TextBlock():
            _render_text_block(node, context, output)
        case Container(children=children):
            for child in children:
                render(viewport, child, context, output)
        case CascadingStyle(styles=styles, children=children):
            context.applied_styles.append(styles)
            try:
                for child in children:
                    render(viewport, child, context, output)
            finally:
                context.applied_styles.pop()
        case VirtualAnnotation(spans=spans):
            output.virtual_annotations.append(
                VirtualAnnotationEntry(line=len(output.lines) - 1, spans=tuple(spans))
            )
        case KeybindBinding(key=key, effect=effect, payload=payload, is_global=is_global):
            output.keybinds.append(
                KeybindEntry(
                    line=GLOBAL_LINE if is_global else len(output.lines),
                    key=key,
                    effect=effect,
                    payload=payload,
                )
            )
        case DiagnosticAnnotation(message=message, severity=severity, source=source):
            output.diagnostics.append(
                DiagnosticEntry(line=len(output.lines), message=message, severity=severity, source=source)
            )
        case StickyCursorMarker(id=tag):
            line = len(output.lines)
            output.sticky_cursor.id_to_line[tag] = line
            output.sticky_cursor.line_to_id[line] = tag
        case _:
            assert_never(node)

    return output
