"""Event registry, dispatch and streaming."""

from .decorators import emits
from .emitter import Emitron
from .emitter import EmitronOptions
from .registry import HandlerBucket
from .registry import Registry
from .stream import EventStream
from .types import Handler
from .types import PayloadShape
from .types import WildcardHandler

__all__ = [
    "Emitron",
    "EmitronOptions",
    "EventStream",
    "Handler",
    "HandlerBucket",
    "PayloadShape",
    "Registry",
    "WildcardHandler",
    "emits",
]
