"""Tests for the view window controller.

Uses the in-memory VirtualHost; without a running event loop the debounced
render goes through synchronously, so every ``mutate`` redraws immediately.
"""

from __future__ import annotations

import pytest

from toolbench.settings import UISettings
from toolbench.ui.display import EffectEvent, ViewWindow, WindowOptions, new_view_window
from toolbench.ui.events import Fault, Ok
from toolbench.ui.nodes import Node, keybind, node, sticky_cursor, text

from .virtual_surface import VirtualHost


def items_view(state: dict) -> Node:
    children: list[Node] = []
    for item in state["items"]:
        children.append(sticky_cursor(item))
        children.append(text([item]))
    return node(children)


def make_window(
    host: VirtualHost | None = None,
    settings: UISettings | None = None,
    view=items_view,
    initial: dict | None = None,
    effects: dict | None = None,
) -> tuple[ViewWindow, VirtualHost, object, object]:
    host = host or VirtualHost()
    window = new_view_window("test", host, settings or UISettings(backdrop=100))
    window.view(view)
    window.effects(effects or {})
    mutate, get = window.state(initial or {"items": ["a", "b"]})
    window.init()
    return window, host, mutate, get


# ---------------------------------------------------------------------------
# Registration and lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_init_requires_view(self) -> None:
        window = new_view_window("test", VirtualHost(), UISettings())
        window.state({})
        with pytest.raises(RuntimeError):
            window.init()

    def test_init_requires_state(self) -> None:
        window = new_view_window("test", VirtualHost(), UISettings())
        window.view(items_view)
        with pytest.raises(RuntimeError):
            window.init()

    def test_open_before_init_raises(self) -> None:
        window = new_view_window("test", VirtualHost(), UISettings())
        with pytest.raises(RuntimeError):
            window.open()

    def test_open_renders_initial_state(self) -> None:
        window, host, _, _ = make_window()
        window.open()
        assert window.is_open()
        assert host.surface.lines == ["a", "b"]

    def test_open_is_idempotent(self) -> None:
        window, host, _, _ = make_window()
        window.open()
        window.open()
        assert len(host.surfaces) == 1
        assert host.resize_handler_count == 1

    def test_close_is_idempotent_and_emits_once(self) -> None:
        window, host, _, _ = make_window()
        closed: list[int] = []
        window.events.on("close", lambda: closed.append(1))
        window.open()
        window.close()
        window.close()
        assert closed == [1]
        assert not host.surface.valid
        assert host.resize_handler_count == 0

    def test_open_event(self) -> None:
        window, _, _, _ = make_window()
        opened: list[int] = []
        window.events.on("open", lambda: opened.append(1))
        window.open()
        assert opened == [1]

    def test_mutations_while_closed_do_not_render(self) -> None:
        renders: list[dict] = []

        def view(state: dict) -> Node:
            renders.append(state)
            return items_view(state)

        window, host, mutate, get = make_window(view=view)
        mutate(lambda s: s["items"].append("c"))
        assert renders == []

        window.open()
        assert host.surface.lines == ["a", "b", "c"]
        window.close()
        count = len(renders)
        mutate(lambda s: s["items"].append("d"))
        assert len(renders) == count
        assert get()["items"] == ["a", "b", "c", "d"]

    def test_reopen_gets_fresh_surface(self) -> None:
        window, host, _, _ = make_window()
        window.open()
        window.close()
        window.open()
        assert len(host.surfaces) == 2
        assert host.surface.lines == ["a", "b"]

    def test_host_closing_surface_closes_window(self) -> None:
        window, host, _, _ = make_window()
        closed: list[int] = []
        window.events.on("close", lambda: closed.append(1))
        window.open()
        host.surface.close()
        assert not window.is_open()
        assert closed == [1]


# ---------------------------------------------------------------------------
# Geometry and backdrop
# ---------------------------------------------------------------------------


class TestGeometry:
    def test_fractional_size_centered_and_shifted_for_border(self) -> None:
        settings = UISettings(width=0.8, height=0.9, border="rounded", backdrop=100)
        window, host, _, _ = make_window(host=VirtualHost(columns=100, rows=40), settings=settings)
        window.open()
        layout = host.surface.layout
        assert (layout.width, layout.height) == (80, 36)
        assert (layout.row, layout.col) == (1, 9)
        assert layout.border == "rounded"
        assert layout.title == "Toolchain"

    def test_absolute_size_capped_to_viewport(self) -> None:
        settings = UISettings(width=200, height=10, border="none", backdrop=100)
        window, host, _, _ = make_window(host=VirtualHost(columns=100, rows=40), settings=settings)
        window.open()
        layout = host.surface.layout
        assert (layout.width, layout.height) == (100, 10)
        assert (layout.row, layout.col) == (15, 0)

    def test_options_border_overrides_settings(self) -> None:
        host = VirtualHost()
        window = new_view_window("test", host, UISettings(border="rounded", backdrop=100))
        window.view(items_view)
        window.state({"items": []})
        window.init(WindowOptions(border="none"))
        window.open()
        assert host.surface.layout.border == "none"

    def test_get_window_layout_requires_open(self) -> None:
        window, _, _, _ = make_window()
        with pytest.raises(RuntimeError):
            window.get_window_layout()

    def test_resize_recomputes_layout_and_redraws(self) -> None:
        settings = UISettings(width=0.5, height=0.5, border="none", backdrop=100)
        window, host, _, _ = make_window(host=VirtualHost(columns=100, rows=40), settings=settings)
        resized: list[int] = []
        window.events.on("resize", lambda: resized.append(1))
        window.open()
        calls = host.surface.set_lines_calls
        host.resize(columns=60, rows=20)
        assert host.surface.layout.width == 30
        assert host.surface.layout.height == 10
        assert host.surface.set_lines_calls == calls + 1
        assert resized == [1]

    def test_backdrop_opened_and_closed(self) -> None:
        window, host, _, _ = make_window(settings=UISettings(backdrop=60))
        window.open()
        assert len(host.backdrops) == 1
        assert host.backdrops[0].opacity == 60
        window.close()
        assert not host.backdrops[0].valid

    def test_no_backdrop_at_full_opacity(self) -> None:
        window, host, _, _ = make_window(settings=UISettings(backdrop=100))
        window.open()
        assert host.backdrops == []

    def test_no_backdrop_when_host_cannot(self) -> None:
        host = VirtualHost(supports_backdrop=False)
        window, host, _, _ = make_window(host=host, settings=UISettings(backdrop=30))
        window.open()
        assert host.backdrops == []


# ---------------------------------------------------------------------------
# Cursor
# ---------------------------------------------------------------------------


class TestStickyCursor:
    def test_cursor_follows_tagged_line(self) -> None:
        window, host, mutate, _ = make_window()
        window.open()
        window.set_cursor(1)
        mutate(lambda s: s["items"].insert(0, "z"))
        assert host.surface.lines == ["z", "a", "b"]
        assert window.get_cursor() == (2, 0)

    def test_cursor_keeps_column(self) -> None:
        window, host, mutate, _ = make_window()
        window.open()
        window.set_cursor(0, 3)
        mutate(lambda s: s["items"].insert(0, "z"))
        assert window.get_cursor() == (1, 3)

    def test_untagged_line_leaves_cursor(self) -> None:
        def view(state: dict) -> Node:
            return node([text(["title"]), items_view(state)])

        window, host, mutate, _ = make_window(view=view)
        window.open()
        window.set_cursor(0)
        mutate(lambda s: s["items"].insert(0, "z"))
        assert window.get_cursor() == (0, 0)

    def test_vanished_tag_leaves_cursor(self) -> None:
        window, host, mutate, _ = make_window()
        window.open()
        window.set_cursor(1)
        mutate(lambda s: s["items"].remove("b"))
        assert window.get_cursor() == (1, 0)

    def test_set_sticky_cursor_moves_to_tag(self) -> None:
        window, host, _, _ = make_window(initial={"items": ["a", "b", "c"]})
        window.open()
        window.set_sticky_cursor("c")
        assert window.get_cursor() == (2, 0)

    def test_set_sticky_cursor_unknown_tag_is_noop(self) -> None:
        window, _, _, _ = make_window()
        window.open()
        window.set_sticky_cursor("missing")
        assert window.get_cursor() == (0, 0)

    def test_cursor_access_requires_open(self) -> None:
        window, _, _, _ = make_window()
        with pytest.raises(RuntimeError):
            window.get_cursor()


# ---------------------------------------------------------------------------
# Keybind dispatch
# ---------------------------------------------------------------------------


def keyed_view(state: dict) -> Node:
    return node(
        [
            keybind("x", "GLOBAL", is_global=True),
            text(["first"]),
            keybind("x", "LINE", payload="second"),
            text(["second"]),
        ]
    )


class TestDispatch:
    def test_line_then_global(self) -> None:
        calls: list[tuple[str, EffectEvent]] = []
        effects = {
            "LINE": lambda e: calls.append(("LINE", e)),
            "GLOBAL": lambda e: calls.append(("GLOBAL", e)),
        }
        window, host, _, _ = make_window(view=keyed_view, effects=effects)
        window.open()
        window.set_cursor(1)
        host.surface.press("x")
        assert [name for name, _ in calls] == ["LINE", "GLOBAL"]
        assert calls[0][1] == EffectEvent(key="x", line=1, payload="second")
        assert calls[1][1].line == -1

    def test_global_only_off_bound_line(self) -> None:
        calls: list[str] = []
        effects = {"LINE": lambda e: calls.append("LINE"), "GLOBAL": lambda e: calls.append("GLOBAL")}
        window, _, _, _ = make_window(view=keyed_view, effects=effects)
        window.open()
        window.set_cursor(0)
        window.dispatch("x")
        assert calls == ["GLOBAL"]

    def test_faulting_line_handler_does_not_block_global(self) -> None:
        calls: list[str] = []

        def boom(_event: EffectEvent) -> None:
            raise RuntimeError("broken effect")

        window, _, _, _ = make_window(view=keyed_view, effects={"LINE": boom, "GLOBAL": lambda e: calls.append("G")})
        window.open()
        window.set_cursor(1)
        results = window.dispatch("x")
        assert calls == ["G"]
        assert isinstance(results[0], Fault)
        assert isinstance(results[1], Ok)

    def test_missing_effect_handler_is_silent(self) -> None:
        window, _, _, _ = make_window(view=keyed_view, effects={})
        window.open()
        window.set_cursor(1)
        assert window.dispatch("x") == []

    def test_unbound_key_is_silent(self) -> None:
        window, _, _, _ = make_window(view=keyed_view, effects={"GLOBAL": lambda e: None})
        window.open()
        assert window.dispatch("z") == []

    def test_dispatch_when_closed_is_noop(self) -> None:
        window, _, _, _ = make_window(view=keyed_view, effects={"GLOBAL": lambda e: None})
        assert window.dispatch("x") == []

    def test_key_bound_once_per_surface(self) -> None:
        window, host, mutate, _ = make_window(view=keyed_view)
        window.open()
        mutate(lambda s: None)
        mutate(lambda s: None)
        assert host.surface.bind_count == {"x": 1}

    def test_effect_can_close_window(self) -> None:
        window: ViewWindow
        window, host, _, _ = make_window(view=keyed_view, effects={"GLOBAL": lambda e: window.close()})
        window.open()
        host.surface.press("x")
        assert not window.is_open()


# ---------------------------------------------------------------------------
# Render abort
# ---------------------------------------------------------------------------


class TestRenderAbort:
    def test_surface_invalid_mid_draw_unsubscribes(self) -> None:
        renders: list[int] = []

        def view(state: dict) -> Node:
            renders.append(1)
            return items_view(state)

        window, host, mutate, _ = make_window(view=view)
        window.open()
        host.surface.fail_on_set_lines = True

        mutate(lambda s: s["items"].append("c"))  # must not raise
        count = len(renders)
        mutate(lambda s: s["items"].append("d"))
        assert len(renders) == count

    def test_draw_into_closed_surface_is_silent(self) -> None:
        window, host, _, _ = make_window()
        window.open()
        host.surface.valid = False
        window.draw(text(["x"]))
        assert host.surface.lines == ["a", "b"]
