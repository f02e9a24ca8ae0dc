"""Typed publish/subscribe event emitter with asyncio fan-out and async streams."""

from emitron.errors import EmitronError
from emitron.errors import HandlerErrorGroup
from emitron.errors import PayloadShapeError
from emitron.events import Emitron
from emitron.events import EmitronOptions
from emitron.events import EventStream
from emitron.events import PayloadShape
from emitron.events import emits

__all__ = [
    "Emitron",
    "EmitronError",
    "EmitronOptions",
    "EventStream",
    "HandlerErrorGroup",
    "PayloadShape",
    "PayloadShapeError",
    "emits",
]

__version__ = "1.0.0"
