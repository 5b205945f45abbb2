"""Tests for the render engine: line flattening, styles and marker positions."""

from __future__ import annotations

from toolbench.ui.nodes import (
    Severity,
    StyleTag,
    cascading_style,
    diagnostic,
    empty_line,
    hl_text,
    keybind,
    node,
    sticky_cursor,
    text,
    virtual_text,
)
from toolbench.ui.render import (
    GLOBAL_LINE,
    DiagnosticEntry,
    Highlight,
    KeybindEntry,
    RenderOutput,
    Viewport,
    render,
)

VP = Viewport(width=10)


class TestFlattening:
    def test_containers_flatten_in_order(self) -> None:
        out = render(VP, node([text(["a"]), text(["b"])]))
        assert out.lines == ["a", "b"]
        assert out.highlights == []

    def test_line_count_is_sum_of_text_block_lines(self) -> None:
        tree = node(
            [
                text(["1", "2"]),
                cascading_style({StyleTag.INDENT}, [text(["3"]), node([text(["4", "5", "6"])])]),
                keybind("q", "QUIT"),
                empty_line(),
            ]
        )
        assert len(render(VP, tree).lines) == 7

    def test_spans_concatenate_into_one_line(self) -> None:
        out = render(VP, hl_text([[("ab", "A"), ("cd", ""), ("ef", "B")]]))
        assert out.lines == ["abcdef"]
        assert out.highlights == [
            Highlight(group="A", line=0, col_start=0, col_end=2),
            Highlight(group="B", line=0, col_start=4, col_end=6),
        ]

    def test_renders_into_supplied_accumulator(self) -> None:
        out = RenderOutput(lines=["existing"])
        render(VP, text(["next"]), output=out)
        assert out.lines == ["existing", "next"]

    def test_output_is_deterministic(self) -> None:
        tree = node(
            [
                sticky_cursor("x"),
                keybind("i", "INSTALL", payload="x"),
                cascading_style({StyleTag.CENTERED}, [hl_text([[("hi", "H")]])]),
                virtual_text([("note", "C")]),
                diagnostic("bad", Severity.WARN),
            ]
        )
        assert render(VP, tree) == render(VP, tree)


class TestStyles:
    def test_centered_line(self) -> None:
        out = render(VP, cascading_style({StyleTag.CENTERED}, [text(["hi"])]))
        assert out.lines == ["    hi"]

    def test_centered_never_negative(self) -> None:
        out = render(Viewport(width=4), cascading_style({StyleTag.CENTERED}, [text(["toolong"])]))
        assert out.lines == ["toolong"]

    def test_centering_uses_display_width(self) -> None:
        out = render(VP, cascading_style({StyleTag.CENTERED}, [text(["日本"])]))
        # width 4 -> (10 - 4) // 2
        assert out.lines == ["   日本"]

    def test_indent_accumulates_across_scopes(self) -> None:
        tree = cascading_style(
            {StyleTag.INDENT},
            [text(["a"]), cascading_style({StyleTag.INDENT}, [text(["b"])]), text(["c"])],
        )
        assert render(VP, tree).lines == ["  a", "    b", "  c"]

    def test_centered_overrides_accumulated_indent(self) -> None:
        tree = cascading_style({StyleTag.INDENT}, [cascading_style({StyleTag.CENTERED}, [text(["hi"])])])
        assert render(VP, tree).lines == ["    hi"]

    def test_indent_after_centered_in_outer_scope_adds(self) -> None:
        tree = cascading_style({StyleTag.CENTERED}, [cascading_style({StyleTag.INDENT}, [text(["hi"])])])
        assert render(VP, tree).lines == ["      hi"]

    def test_centered_wins_within_one_style_set(self) -> None:
        tree = cascading_style({StyleTag.INDENT, StyleTag.CENTERED}, [text(["hi"])])
        assert render(VP, tree).lines == ["    hi"]

    def test_empty_lines_are_unstyled(self) -> None:
        tree = cascading_style({StyleTag.INDENT}, [empty_line(), text(["a"])])
        assert render(VP, tree).lines == ["", "  a"]

    def test_styles_pop_after_scope(self) -> None:
        tree = node([cascading_style({StyleTag.INDENT}, [text(["a"])]), text(["b"])])
        assert render(VP, tree).lines == ["  a", "b"]

    def test_highlights_shift_by_indent(self) -> None:
        tree = cascading_style({StyleTag.INDENT}, [hl_text([[("x", ""), ("yz", "G")]])])
        out = render(VP, tree)
        assert out.lines == ["  xyz"]
        assert out.highlights == [Highlight(group="G", line=0, col_start=3, col_end=5)]


class TestMarkers:
    def test_keybind_records_next_line(self) -> None:
        tree = node([text(["a", "b"]), keybind("i", "INSTALL")])
        out = render(VP, tree)
        assert out.keybinds == [KeybindEntry(line=2, key="i", effect="INSTALL", payload=None)]

    def test_global_keybind_uses_global_line(self) -> None:
        out = render(VP, node([text(["a"]), keybind("q", "CLOSE", is_global=True)]))
        assert out.keybinds[0].line == GLOBAL_LINE

    def test_virtual_annotation_attaches_to_previous_line(self) -> None:
        out = render(VP, node([text(["a", "b"]), virtual_text([("note", "C")])]))
        assert out.virtual_annotations[0].line == 1
        assert tuple(out.virtual_annotations[0].spans) == (("note", "C"),)

    def test_diagnostic_records_next_line(self) -> None:
        out = render(VP, node([text(["a"]), diagnostic("bad", Severity.WARN, source="x"), text(["b"])]))
        assert out.diagnostics == [DiagnosticEntry(line=1, message="bad", severity=Severity.WARN, source="x")]

    def test_sticky_cursor_maps_both_ways(self) -> None:
        out = render(VP, node([text(["header"]), sticky_cursor("tool"), text(["tool line"])]))
        assert out.sticky_cursor.id_to_line == {"tool": 1}
        assert out.sticky_cursor.line_to_id == {1: "tool"}
        assert out.lines[1] == "tool line"
