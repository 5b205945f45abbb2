"""Minimal publish/subscribe emitter with per-handler fault isolation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

Handler = Callable[..., Any]


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A handler invocation that returned normally."""

    value: T

    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Fault:
    """A handler invocation that raised; the exception is kept, not re-raised."""

    error: BaseException

    def is_ok(self) -> bool:
        return False


HandlerResult = Union[Ok[Any], Fault]


def call_handler(handler: Handler, *args: Any) -> HandlerResult:
    """Invoke *handler* and capture its outcome as a :data:`HandlerResult`."""
    try:
        return Ok(handler(*args))
    except Exception as exc:
        return Fault(exc)


class EventEmitter:
    """Persistent (``on``) and one-shot (``once``) handlers keyed by event.

    Handlers run in registration order, persistent ones first. A handler
    that raises is logged and does not stop the remaining handlers.
    """

    def __init__(self) -> None:
        self._handlers: dict[Hashable, dict[Handler, None]] = {}
        self._handlers_once: dict[Hashable, dict[Handler, None]] = {}

    def on(self, event: Hashable, handler: Handler) -> EventEmitter:
        self._handlers.setdefault(event, {})[handler] = None
        return self

    def once(self, event: Hashable, handler: Handler) -> EventEmitter:
        self._handlers_once.setdefault(event, {})[handler] = None
        return self

    def off(self, event: Hashable, handler: Handler) -> EventEmitter:
        self._handlers.get(event, {}).pop(handler, None)
        self._handlers_once.get(event, {}).pop(handler, None)
        return self

    def emit(self, event: Hashable, *args: Any) -> EventEmitter:
        self.emit_results(event, *args)
        return self

    def emit_results(self, event: Hashable, *args: Any) -> list[HandlerResult]:
        """Emit *event* and return one result per invoked handler."""
        results: list[HandlerResult] = []
        for handler in list(self._handlers.get(event, {})):
            results.append(self._call(event, handler, args))

        once = self._handlers_once.get(event)
        if once:
            for handler in list(once):
                # removed before the call so a raising handler is still dropped
                once.pop(handler, None)
                results.append(self._call(event, handler, args))
        return results

    def clear(self) -> None:
        self._handlers.clear()
        self._handlers_once.clear()

    def _call(self, event: Hashable, handler: Handler, args: tuple[Any, ...]) -> HandlerResult:
        result = call_handler(handler, *args)
        if isinstance(result, Fault):
            logger.warning(
                "EventEmitter handler failed for event %s with error %r",
                event,
                result.error,
                exc_info=result.error,
            )
        return result
