"""Pull-based async iteration over one event key."""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import Hashable
from typing import Optional

from .types import Handler
from .types import PayloadShape

if TYPE_CHECKING:
    from .emitter import Emitron

logger = logging.getLogger(__name__)


class EventStream:
    """Lazy, infinite, non-restartable stream of a key's payloads.

    Every ``__anext__`` registers one ``once`` handler on the emitter, right
    away, and returns a future that the next emission resolves.  Emissions that
    happen while no pull is pending are not buffered.

    For ``ARGS`` keys each item is the tuple of emitted arguments; for the
    other shapes it is the emitted value itself.

    Usage::

        async with emitter.events("tick") as ticks:
            async for value in ticks:
                ...
    """

    def __init__(self, emitter: "Emitron", key: Hashable):
        self._emitter = emitter
        self._key = key
        self._pending: Optional[asyncio.Future] = None
        self._handler = None
        self._closed = False

    @property
    def key(self) -> Hashable:
        return self._key

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "EventStream":
        return self

    def __anext__(self) -> "asyncio.Future[Any]":
        loop = asyncio.get_running_loop()

        if self._closed:
            done = loop.create_future()
            done.set_exception(StopAsyncIteration())
            done.exception()
            return done

        # at most one outstanding registration
        if self._pending is not None and not self._pending.done():
            return self._pending

        future = loop.create_future()
        args_shape = self._emitter.shape_of(self._key) is PayloadShape.ARGS

        def _deliver(*args: Any) -> None:
            if future.done():
                return
            future.set_result(tuple(args) if args_shape else args[0])

        self._pending = future
        self._handler = _deliver
        future.add_done_callback(functools.partial(self._on_settled, _deliver))
        self._emitter.once(self._key, _deliver)
        return future

    def _on_settled(self, handler: Handler, future: asyncio.Future) -> None:
        if self._handler is handler:
            self._handler = None
        # A cancelled pull leaves its one-shot handler behind; take it out
        if future.cancelled():
            self._emitter.off(self._key, handler)

    def _drop_registration(self) -> None:
        if self._handler is not None:
            self._emitter.off(self._key, self._handler)
            self._handler = None

    async def aclose(self) -> None:
        """Stop the stream and remove any pending registration from the emitter."""

        if self._closed:
            return
        self._closed = True
        self._drop_registration()
        if self._pending is not None and not self._pending.done():
            self._pending.set_exception(StopAsyncIteration())
            # Mark retrieved: the pull may never be awaited, awaiting it still raises
            self._pending.exception()
        logger.debug("Closed event stream for %s", self._key)

    async def __aenter__(self) -> "EventStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
