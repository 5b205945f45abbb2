"""Declarative rendering, reactive state and display surfaces."""

# Animation
from toolbench.ui.animation import Animation, animation

# Display controller
from toolbench.ui.display import EffectEvent, ViewWindow, WindowOptions, new_view_window

# Events
from toolbench.ui.events import EventEmitter, Fault, HandlerResult, Ok, call_handler

# Keyboard input handling
from toolbench.ui.keys import parse_key, split_sequences

# Node tree DSL
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
    cascading_style,
    diagnostic,
    empty_line,
    hl_text,
    keybind,
    node,
    sticky_cursor,
    table,
    text,
    virtual_text,
    when,
)

# Render engine
from toolbench.ui.render import GLOBAL_LINE, RenderOutput, Viewport, render

# Terminal host
from toolbench.ui.screen import TerminalHost, TerminalWindow

# State
from toolbench.ui.state import StateContainer, create_state_container, debounce

# Surfaces
from toolbench.ui.surface import Surface, SurfaceHost, WindowLayout, calc_size, popup_layout

# Terminal interface and implementations
from toolbench.ui.terminal import ProcessTerminal, Terminal

# Utilities
from toolbench.ui.utils import visible_width

__all__ = [
    # Animation
    "Animation",
    "animation",
    # Display controller
    "EffectEvent",
    "ViewWindow",
    "WindowOptions",
    "new_view_window",
    # Events
    "EventEmitter",
    "Fault",
    "HandlerResult",
    "Ok",
    "call_handler",
    # Keyboard input handling
    "parse_key",
    "split_sequences",
    # Node tree DSL
    "CascadingStyle",
    "Container",
    "DiagnosticAnnotation",
    "KeybindBinding",
    "Node",
    "Severity",
    "Span",
    "StickyCursorMarker",
    "StyleTag",
    "TextBlock",
    "VirtualAnnotation",
    "cascading_style",
    "diagnostic",
    "empty_line",
    "hl_text",
    "keybind",
    "node",
    "sticky_cursor",
    "table",
    "text",
    "virtual_text",
    "when",
    # Render engine
    "GLOBAL_LINE",
    "RenderOutput",
    "Viewport",
    "render",
    # Terminal host
    "TerminalHost",
    "TerminalWindow",
    # State
    "StateContainer",
    "create_state_container",
    "debounce",
    # Surfaces
    "Surface",
    "SurfaceHost",
    "WindowLayout",
    "calc_size",
    "popup_layout",
    # Terminal interface and implementations
    "ProcessTerminal",
    "Terminal",
    # Utilities
    "visible_width",
]
