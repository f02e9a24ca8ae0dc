"""Decorators for event handling."""

import functools
import inspect
from typing import Any
from typing import Callable
from typing import Hashable

from .emitter import Emitron
from .types import PayloadShape


def emits(emitter: Emitron, key: Hashable, *, wait: bool = True):
    """Decorator that emits an event after a successful function call.

    The return value of the decorated function becomes the payload of *key*;
    ``None`` results are not emitted.  For ``ARGS`` keys a tuple result is
    spread into the emitted arguments.

    Coroutine functions are supported: the result is emitted with
    ``emit_async`` when *wait* is true, otherwise with the synchronous
    ``emit``.

    Args:
        emitter: The emitter to publish on
        key: The event key to publish
        wait: For async functions, wait for the handlers before returning
    """

    def _payload(result: Any) -> tuple:
        if isinstance(result, tuple) and emitter.shape_of(key) is PayloadShape.ARGS:
            return result
        return (result,)

    def decorator(func: Callable):
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                result = await func(*args, **kwargs)
                if result is not None:
                    if wait:
                        await emitter.emit_async(key, *_payload(result))
                    else:
                        emitter.emit(key, *_payload(result))
                return result

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            result = func(*args, **kwargs)
            if result is not None:
                emitter.emit(key, *_payload(result))
            return result

        return wrapper

    return decorator
