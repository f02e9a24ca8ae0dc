"""Payload shapes and how they are derived from an events schema.

An events schema is any annotated class, usually a ``TypedDict``::

    class AppEvents(TypedDict):
        user_login: str                              # SINGLE
        resize: Callable[[int, int], None]           # ARGS
        batch: list[str]                             # SEQUENCE
        fetched: Awaitable[bytes]                    # SINGLE (resolve before emit)

The shape is read from the *declaration*, never from the emitted value.
"""

from __future__ import annotations

import collections.abc
import typing
from enum import Enum
from typing import Any
from typing import Callable
from typing import Dict
from typing import Hashable
from typing import Mapping

Handler = Callable[..., Any]
WildcardHandler = Callable[[Any, Any], Any]


class PayloadShape(str, Enum):
    """How emitted arguments are handed to the handlers of a key."""

    # one value, handler(value), wildcard gets [value]
    SINGLE = "single"
    # one sequence value, handler(seq), wildcard gets seq
    SEQUENCE = "sequence"
    # fixed argument list, handler(*args), wildcard gets list(args)
    ARGS = "args"


_SEQUENCE_ORIGINS = {
    list,
    tuple,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
}


def shape_for_annotation(annotation: Any) -> PayloadShape:
    """Map one type annotation to its :class:`PayloadShape`."""

    if isinstance(annotation, PayloadShape):
        return annotation

    origin = typing.get_origin(annotation)
    if origin is typing.Annotated:
        return shape_for_annotation(typing.get_args(annotation)[0])

    target = origin if origin is not None else annotation
    if target is collections.abc.Callable:
        return PayloadShape.ARGS
    if target in _SEQUENCE_ORIGINS:
        return PayloadShape.SEQUENCE
    return PayloadShape.SINGLE


def shapes_from_schema(schema: Any) -> Dict[Hashable, PayloadShape]:
    """Return ``{key: shape}`` for an annotated class or a plain mapping.

    A mapping may hold annotations or :class:`PayloadShape` members as values.
    """

    if schema is None:
        return {}
    if isinstance(schema, Mapping):
        items = schema.items()
    else:
        items = typing.get_type_hints(schema).items()
    return {key: shape_for_annotation(annotation) for key, annotation in items}


__all__ = [
    "Handler",
    "PayloadShape",
    "WildcardHandler",
    "shape_for_annotation",
    "shapes_from_schema",
]
