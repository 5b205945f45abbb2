"""View-only window controller.

Composes the state container, the render engine and a host surface into a
single view instance::

    window = new_view_window("toolbench", host, settings.ui)
    window.view(lambda state: ...)          # state -> node tree
    window.effects({"CLOSE_WINDOW": ...})   # effect name -> handler
    mutate, get = window.state(initial)
    window.init(WindowOptions(border="rounded"))
    window.open()

While the window is closed the state container stays unsubscribed, so
mutations made by background work (status checks, command output) do not
render into a torn-down surface.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from toolbench.errors import SurfaceInvalid
from toolbench.ui.events import EventEmitter, Fault, HandlerResult, call_handler
from toolbench.ui.nodes import Node
from toolbench.ui.render import GLOBAL_LINE, KeybindEntry, RenderOutput, Viewport, render
from toolbench.ui.state import StateContainer, debounce
from toolbench.ui.surface import Surface, SurfaceHost, WindowLayout, backdrop_layout, popup_layout

if TYPE_CHECKING:
    from toolbench.settings import UISettings

logger = logging.getLogger(__name__)

S = TypeVar("S")

EffectHandler = Callable[["EffectEvent"], object]

NO_BACKDROP = 100


@dataclass(frozen=True)
class EffectEvent:
    """Passed to effect handlers when a bound key is pressed."""

    key: str
    line: int
    payload: Any = None


@dataclass
class WindowOptions:
    border: str | None = None
    highlight: str = ""


class ViewWindow(Generic[S]):
    """One view: owns its state, its surface and its key dispatch table."""

    def __init__(self, name: str, host: SurfaceHost, ui_settings: UISettings) -> None:
        self.name = name
        self.events = EventEmitter()
        self._host = host
        self._ui_settings = ui_settings
        self._renderer: Callable[[S], Node] | None = None
        self._effects: dict[str, EffectHandler] = {}
        self._container: StateContainer[S] | None = None
        self._options = WindowOptions()
        self._has_initiated = False

        self._surface: Surface | None = None
        self._backdrop: Surface | None = None
        self._teardown: list[Callable[[], None]] = []
        self._output: RenderOutput | None = None
        self._sticky_cursor: Hashable | None = None
        self._registered_keys: set[str] = set()
        self._keybinds: dict[tuple[int, str], KeybindEntry] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def view(self, renderer: Callable[[S], Node]) -> None:
        self._renderer = renderer

    def effects(self, effects: Mapping[str, EffectHandler]) -> None:
        self._effects = dict(effects)

    def state(self, initial_state: S) -> tuple[Callable[[Callable[[S], object]], None], Callable[[], S]]:
        """Create the view's state container; returns ``(mutate, get)``."""
        self._container = StateContainer(initial_state, debounce(self._render_state))
        # nothing to render into until the window opens
        self._container.set_unsubscribed(True)
        return self._container.mutate, self._container.get

    def init(self, options: WindowOptions | None = None) -> None:
        if self._renderer is None:
            raise RuntimeError("No view function has been registered. Call .view() before .init().")
        if self._container is None:
            raise RuntimeError("No state has been registered. Call .state() before .init().")
        if options is not None:
            self._options = options
        self._has_initiated = True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def is_open(self) -> bool:
        return self._surface is not None and self._surface.is_valid()

    def open(self) -> None:
        if not self._has_initiated:
            raise RuntimeError("Display has not been initiated, cannot open.")
        if self.is_open():
            return
        assert self._container is not None

        logger.debug("Opening window %s", self.name)
        self._registered_keys = set()
        self._keybinds = {}
        self._output = None
        self._sticky_cursor = None

        self._surface = self._host.open_surface(self._popup_layout(), focus=True, highlight=self._options.highlight)
        self._open_backdrop()

        self._teardown.append(self._host.on_resize(self._on_resize))
        self._surface.on_close(self._on_surface_closed)

        self._container.set_unsubscribed(False)
        self.events.emit("open")
        self.draw(self._render_view(self._container.get()))

    def close(self) -> None:
        if not self._has_initiated:
            raise RuntimeError("Display has not been initiated, cannot close.")
        assert self._container is not None
        self._container.set_unsubscribed(True)
        if self._surface is None:
            return

        surface, self._surface = self._surface, None
        logger.debug("Closing window %s", self.name)
        self._run_teardown()
        if surface.is_valid():
            surface.close()
        self._close_backdrop()
        self.events.emit("close")

    def _on_surface_closed(self) -> None:
        # the host tore the surface down (e.g. the terminal went away)
        if self._surface is not None:
            self.close()

    def _run_teardown(self) -> None:
        teardown, self._teardown = self._teardown, []
        for fn in teardown:
            result = call_handler(fn)
            if isinstance(result, Fault):
                logger.warning("Teardown handler failed for window %s: %r", self.name, result.error)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def _border(self) -> str:
        if self._options.border is not None:
            return self._options.border
        return self._ui_settings.border

    def _popup_layout(self) -> WindowLayout:
        return popup_layout(
            self._host.columns,
            self._host.rows,
            self._ui_settings.width,
            self._ui_settings.height,
            border=self._border(),
            title=self._ui_settings.title,
        )

    def _open_backdrop(self) -> None:
        opacity = self._ui_settings.backdrop
        if opacity == NO_BACKDROP or not self._host.supports_backdrop:
            return
        self._backdrop = self._host.open_backdrop(opacity)

    def _close_backdrop(self) -> None:
        backdrop, self._backdrop = self._backdrop, None
        if backdrop is not None and backdrop.is_valid():
            backdrop.close()

    def _on_resize(self) -> None:
        assert self._container is not None
        if self.is_open():
            assert self._surface is not None
            self._surface.set_layout(self._popup_layout())
            self.draw(self._render_view(self._container.get()))
        if self._backdrop is not None and self._backdrop.is_valid():
            self._backdrop.set_layout(backdrop_layout(self._host.columns, self._host.rows))
        self.events.emit("resize")

    def get_window_layout(self) -> WindowLayout:
        if self._surface is None:
            raise RuntimeError("Window has not been opened, cannot get layout.")
        return self._popup_layout()

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def get_cursor(self) -> tuple[int, int]:
        if self._surface is None:
            raise RuntimeError("Window has not been opened, cannot get cursor.")
        return self._surface.get_cursor()

    def set_cursor(self, line: int, col: int = 0) -> None:
        if self._surface is None:
            raise RuntimeError("Window has not been opened, cannot set cursor.")
        self._surface.set_cursor(line, col)

    def set_sticky_cursor(self, tag: Hashable) -> None:
        """Move the cursor to the line tagged *tag* in the last render, if any."""
        if not self.is_open() or self._output is None:
            return
        assert self._surface is not None
        line = self._output.sticky_cursor.id_to_line.get(tag)
        if line is not None:
            self._sticky_cursor = tag
            _, col = self._surface.get_cursor()
            self._surface.set_cursor(line, col)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render_view(self, state: S) -> Node:
        assert self._renderer is not None
        return self._renderer(state)

    def _render_state(self, state: S) -> None:
        self.draw(self._render_view(state))

    def draw(self, view: Node) -> None:
        """Render *view* into the surface, keeping the cursor on its sticky row."""
        surface = self._surface
        if surface is None or not surface.is_valid():
            self._abort_draw()
            return
        try:
            self._draw(surface, view)
        except SurfaceInvalid:
            self._abort_draw()

    def _abort_draw(self) -> None:
        logger.debug("Surface for window %s is no longer valid, aborting draw", self.name)
        if self._container is not None:
            self._container.set_unsubscribed(True)

    def _draw(self, surface: Surface, view: Node) -> None:
        cursor_line, cursor_col = surface.get_cursor()
        if self._output is not None:
            self._sticky_cursor = self._output.sticky_cursor.line_to_id.get(cursor_line)

        output = render(Viewport(width=surface.width), view)
        self._output = output

        surface.clear_decorations()
        surface.set_lines(output.lines)

        if self._sticky_cursor is not None:
            new_line = output.sticky_cursor.id_to_line.get(self._sticky_cursor)
            if new_line is not None and new_line != cursor_line:
                surface.set_cursor(new_line, cursor_col)

        for annotation in output.virtual_annotations:
            surface.set_virtual_text(annotation.line, annotation.spans)

        surface.set_diagnostics(output.diagnostics)

        for hl in output.highlights:
            surface.add_highlight(hl.group, hl.line, hl.col_start, hl.col_end)

        self._keybinds = {}
        for keybind in output.keybinds:
            self._keybinds[(keybind.line, keybind.key)] = keybind
            if keybind.key not in self._registered_keys:
                self._registered_keys.add(keybind.key)
                surface.bind_key(keybind.key, self._key_handler(keybind.key))

    # ------------------------------------------------------------------
    # Keybind dispatch
    # ------------------------------------------------------------------

    def _key_handler(self, key: str) -> Callable[[], None]:
        def handler() -> None:
            self.dispatch(key)

        return handler

    def dispatch(self, key: str) -> list[HandlerResult]:
        """Run the effect bound to *key* on the cursor line, then the global one."""
        if not self.is_open():
            return []
        assert self._surface is not None
        line, _ = self._surface.get_cursor()
        logger.debug("Dispatching effect on line %d, key %s", line, key)
        results: list[HandlerResult] = []
        for target in (line, GLOBAL_LINE):
            result = self._call_effect_handler(target, key)
            if result is not None:
                results.append(result)
        return results

    def _call_effect_handler(self, line: int, key: str) -> HandlerResult | None:
        keybind = self._keybinds.get((line, key))
        if keybind is None:
            return None
        handler = self._effects.get(keybind.effect)
        if handler is None:
            return None
        logger.debug("Calling handler for effect %s on line %d for key %s", keybind.effect, line, key)
        result = call_handler(handler, EffectEvent(key=key, line=line, payload=keybind.payload))
        if isinstance(result, Fault):
            logger.error(
                "Effect %s for key %s on line %d failed: %r",
                keybind.effect,
                key,
                line,
                result.error,
                exc_info=result.error,
            )
        return result


def new_view_window(name: str, host: SurfaceHost, ui_settings: UISettings) -> ViewWindow[Any]:
    """Create an independent view window bound to *host*."""
    return ViewWindow(name, host, ui_settings)
