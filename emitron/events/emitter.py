"""Typed event emitter: registration, synchronous and asyncio dispatch."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any
from typing import Coroutine
from typing import Dict
from typing import Generic
from typing import Hashable
from typing import Iterable
from typing import List
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from emitron.config import get_settings
from emitron.errors import HandlerErrorGroup
from emitron.errors import PayloadShapeError

from .publisher import schedule_fire_and_forget
from .registry import Registry
from .stream import EventStream
from .types import Handler
from .types import PayloadShape
from .types import WildcardHandler
from .types import shapes_from_schema

logger = logging.getLogger(__name__)

EventsT = TypeVar("EventsT")


class EmitronOptions(BaseModel):
    """Per-instance options, validated on construction and on assignment."""

    model_config = ConfigDict(validate_assignment=True)

    max_listeners: int = Field(default=10, ge=0, description="Advisory handler count per key")
    initial_events: List[Any] = Field(default_factory=list, description="Keys whose buckets exist up front")


class Emitron(Generic[EventsT]):
    """Publish/subscribe emitter whose keys carry a declared payload shape.

    Args:
        events: Annotated schema class (usually a ``TypedDict``) or mapping of
            key to annotation / :class:`PayloadShape`.
        max_listeners: Advisory limit, stored but never enforced. Defaults to
            ``Settings.default_max_listeners``.
        initial_events: Keys to create empty buckets for up front.
        shapes: Explicit ``{key: PayloadShape}`` entries, applied after ``events``.

    Example::

        class AppEvents(TypedDict):
            login: str
            resize: Callable[[int, int], None]

        bus = Emitron[AppEvents](AppEvents)
        bus.on("resize", lambda w, h: ...).emit("resize", 800, 600)
    """

    def __init__(
        self,
        events: Any = None,
        *,
        max_listeners: Optional[int] = None,
        initial_events: Optional[Iterable[Hashable]] = None,
        shapes: Optional[Mapping[Hashable, PayloadShape]] = None,
    ):
        if max_listeners is None:
            max_listeners = get_settings().default_max_listeners
        self._options = EmitronOptions(max_listeners=max_listeners, initial_events=list(initial_events or ()))

        self._shapes: Dict[Hashable, PayloadShape] = shapes_from_schema(events)
        self._shapes.update(shapes or {})

        self._registry = Registry(
            capacity_hint=self._options.max_listeners,
            initial_keys=self._options.initial_events,
        )

    # ------------------------------------------------------------------
    # Shapes
    # ------------------------------------------------------------------

    def declare(self, key: Hashable, shape: PayloadShape) -> "Emitron[EventsT]":
        """Set the payload shape of *key* (overrides the schema)."""
        self._shapes[key] = PayloadShape(shape)
        return self

    def shape_of(self, key: Hashable) -> PayloadShape:
        return self._shapes.get(key, PayloadShape.SINGLE)

    def _normalize(self, key: Hashable, args: Tuple[Any, ...]) -> Tuple[Tuple[Any, ...], Any]:
        """Return ``(handler_args, wildcard_payload)`` for one emission."""

        shape = self.shape_of(key)
        if shape is PayloadShape.ARGS:
            return args, list(args)

        if len(args) != 1:
            expected = "a single sequence" if shape is PayloadShape.SEQUENCE else "a single value"
            raise PayloadShapeError(key, expected, len(args))

        value = args[0]
        if shape is PayloadShape.SEQUENCE:
            return (value,), value
        return (value,), [value]

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def on(self, key: Hashable, handler: Handler) -> "Emitron[EventsT]":
        self._registry.add_persistent(key, handler)
        return self

    def off(self, key: Hashable, handler: Handler) -> "Emitron[EventsT]":
        self._registry.remove(key, handler)
        return self

    def once(self, key: Hashable, handler: Handler) -> "Emitron[EventsT]":
        self._registry.add_transient(key, handler)
        return self

    def on_async(self, key: Hashable, handler: Handler) -> "Emitron[EventsT]":
        """Same as :meth:`on`; async handlers need no special registration."""
        return self.on(key, handler)

    def on_any(self, handler: WildcardHandler) -> "Emitron[EventsT]":
        self._registry.add_wildcard(handler)
        return self

    def off_any(self, handler: WildcardHandler) -> "Emitron[EventsT]":
        self._registry.remove_wildcard(handler)
        return self

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def emit(self, key: Hashable, *args: Any) -> "Emitron[EventsT]":
        """Call every handler of *key*, then every wildcard handler, in order.

        Handlers run synchronously.  An awaitable returned by a handler is not
        awaited here: it is scheduled on the running loop, if any.  The first
        handler that raises aborts the rest of this emission.
        """

        handler_args, wildcard_payload = self._normalize(key, args)
        handlers = self._registry.drain(key)

        logger.debug("Emitting %s to %d handler(s)", key, len(handlers))

        for handler in handlers:
            result = handler(*handler_args)
            if inspect.isawaitable(result):
                schedule_fire_and_forget(result, key)

        for wildcard in self._registry.wildcards():
            result = wildcard(key, wildcard_payload)
            if inspect.isawaitable(result):
                schedule_fire_and_forget(result, key)

        return self

    def emit_async(self, key: Hashable, *args: Any) -> Coroutine[Any, Any, "Emitron[EventsT]"]:
        """Run every handler of *key* and every wildcard concurrently and wait for all.

        The payload is checked and the handler snapshot is taken (one-shot
        handlers drained) when this is called, not when the returned coroutine
        is first awaited.

        Raises:
            PayloadShapeError: immediately, when *args* do not fit the key.
            HandlerErrorGroup: from the awaited coroutine, when one or more
                handlers failed; raised only after every handler has settled.
        """

        handler_args, wildcard_payload = self._normalize(key, args)
        handlers = self._registry.drain(key)
        wildcards = self._registry.wildcards()
        return self._gather(key, handlers, handler_args, wildcards, wildcard_payload)

    async def _gather(
        self,
        key: Hashable,
        handlers: Tuple[Handler, ...],
        handler_args: Tuple[Any, ...],
        wildcards: Tuple[WildcardHandler, ...],
        wildcard_payload: Any,
    ) -> "Emitron[EventsT]":
        units = [_invoke(handler, handler_args) for handler in handlers]
        units.extend(_invoke(wildcard, (key, wildcard_payload)) for wildcard in wildcards)

        if not units:
            return self

        logger.debug("Emitting %s asynchronously to %d unit(s)", key, len(units))
        results = await asyncio.gather(*units, return_exceptions=True)

        failures = []
        for i, result in enumerate(results):
            if isinstance(result, Exception):
                logger.error("Error in handler %d for event %s: %s", i, key, result)
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result

        if failures:
            raise HandlerErrorGroup(f"{len(failures)} handler(s) failed for event {key!r}", failures, key=key)

        return self

    def events(self, key: Hashable) -> EventStream:
        """Async iterator over the payloads of *key*; see :class:`EventStream`."""
        return EventStream(self, key)

    # ------------------------------------------------------------------
    # Housekeeping and queries
    # ------------------------------------------------------------------

    def clear(self, key: Hashable) -> "Emitron[EventsT]":
        self._registry.clear_key(key)
        return self

    def clear_all(self) -> "Emitron[EventsT]":
        self._registry.clear_all()
        logger.debug("Cleared all handlers")
        return self

    def cleanup(self) -> "Emitron[EventsT]":
        return self.clear_all()

    def listener_count(self, key: Hashable) -> int:
        return self._registry.count_for(key)

    def listeners(self, key: Hashable) -> Tuple[Handler, ...]:
        return self._registry.list_for(key)

    def has_listeners(self, key: Hashable) -> bool:
        return self._registry.has_any(key)

    def event_keys(self) -> Tuple[Hashable, ...]:
        """Keys that currently own a handler bucket (possibly empty)."""
        return self._registry.keys()

    def set_max_listeners(self, n: int) -> "Emitron[EventsT]":
        self._options.max_listeners = n
        self._registry.set_capacity_hint(self._options.max_listeners)
        return self

    def get_max_listeners(self) -> int:
        return self._registry.get_capacity_hint()


async def _invoke(handler: Handler, args: Tuple[Any, ...]) -> None:
    # Runs as its own task under gather, so a synchronous raise fails only this unit
    result = handler(*args)
    if inspect.isawaitable(result):
        await result
