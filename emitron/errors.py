"""Exception types raised by the emitter."""

from __future__ import annotations

from typing import Any
from typing import Sequence


class EmitronError(Exception):
    """Base class for errors raised by emitron itself (not by handlers)."""


class PayloadShapeError(EmitronError, TypeError):
    """Raised when ``emit`` receives a payload that does not fit the key's shape."""

    def __init__(self, key: Any, expected: str, received: int):
        self.key = key
        super().__init__(f"Event {key!r} expects {expected}, got {received} positional argument(s)")


class HandlerErrorGroup(ExceptionGroup):
    """Aggregate failure of one ``emit_async`` call.

    Holds every exception raised by the handlers of a single emission, in the
    order the handlers were scheduled (keyed handlers first, then wildcard).
    """

    def __new__(cls, message: str, exceptions: Sequence[Exception], key: Any = None):
        self = super().__new__(cls, message, exceptions)
        self.key = key
        return self

    def __init__(self, message: str, exceptions: Sequence[Exception], key: Any = None):
        super().__init__(message, exceptions)

    def derive(self, excs):
        return HandlerErrorGroup(self.message, excs, key=self.key)
