"""Handler storage: per-key buckets plus the global wildcard set."""

import inspect
import logging
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Dict
from typing import Hashable
from typing import Iterable
from typing import Optional
from typing import Tuple

from .types import Handler
from .types import WildcardHandler

logger = logging.getLogger(__name__)


def handler_identity(handler: Any) -> Hashable:
    """Storage key for *handler*: its reference, never its ``__eq__``.

    Bound methods are recreated on every attribute access, so they are keyed by
    the instance they are bound to plus the underlying function.
    """

    if inspect.ismethod(handler):
        return (id(handler.__self__), id(handler.__func__))
    return id(handler)


@dataclass
class HandlerBucket:
    """Persistent and one-shot handlers of a single key.

    Both collections map :func:`handler_identity` to the handler, keeping
    insertion order. Unhashable callables are fine, and two distinct handlers
    that compare equal stay two entries.
    """

    persistent: Dict[Hashable, Handler] = field(default_factory=dict)
    transient: Dict[Hashable, Handler] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.persistent) + len(self.transient)

    def snapshot(self) -> Tuple[Handler, ...]:
        return (*self.persistent.values(), *self.transient.values())


class Registry:
    """Owns the key -> bucket mapping, the wildcard set and the capacity hint."""

    def __init__(self, capacity_hint: int = 10, initial_keys: Optional[Iterable[Hashable]] = None):
        self._buckets: Dict[Hashable, HandlerBucket] = {}
        self._wildcards: Dict[Hashable, WildcardHandler] = {}
        self._capacity_hint = capacity_hint

        for key in initial_keys or ():
            self._buckets[key] = HandlerBucket()

    # ------------------------------------------------------------------
    # Buckets
    # ------------------------------------------------------------------

    def ensure_bucket(self, key: Hashable) -> HandlerBucket:
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = self._buckets[key] = HandlerBucket()
        return bucket

    def add_persistent(self, key: Hashable, handler: Handler) -> None:
        self.ensure_bucket(key).persistent.setdefault(handler_identity(handler), handler)
        logger.debug("Added handler for event %s", key)

    def add_transient(self, key: Hashable, handler: Handler) -> None:
        self.ensure_bucket(key).transient.setdefault(handler_identity(handler), handler)
        logger.debug("Added one-shot handler for event %s", key)

    def remove(self, key: Hashable, handler: Handler) -> None:
        """Remove *handler* from both collections of *key*; silently ignores unknowns."""

        bucket = self._buckets.get(key)
        if bucket is None:
            return
        identity = handler_identity(handler)
        bucket.persistent.pop(identity, None)
        bucket.transient.pop(identity, None)
        logger.debug("Removed handler for event %s", key)

    def clear_key(self, key: Hashable) -> None:
        self._buckets.pop(key, None)

    def clear_all(self) -> None:
        self._buckets.clear()
        self._wildcards.clear()

    def drain(self, key: Hashable) -> Tuple[Handler, ...]:
        """Snapshot every handler of *key*, then drop the one-shot ones.

        The snapshot is taken before the transient collection is cleared, so a
        handler that re-registers itself with ``once`` while running lands in
        the fresh collection and waits for the next emission.
        """

        bucket = self.ensure_bucket(key)
        handlers = bucket.snapshot()
        bucket.transient.clear()
        return handlers

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def count_for(self, key: Hashable) -> int:
        bucket = self._buckets.get(key)
        return len(bucket) if bucket is not None else 0

    def list_for(self, key: Hashable) -> Tuple[Handler, ...]:
        bucket = self._buckets.get(key)
        return bucket.snapshot() if bucket is not None else ()

    def has_any(self, key: Hashable) -> bool:
        return self.count_for(key) > 0

    def keys(self) -> Tuple[Hashable, ...]:
        return tuple(self._buckets)

    # ------------------------------------------------------------------
    # Wildcards
    # ------------------------------------------------------------------

    def add_wildcard(self, handler: WildcardHandler) -> None:
        self._wildcards.setdefault(handler_identity(handler), handler)
        logger.debug("Added wildcard handler")

    def remove_wildcard(self, handler: WildcardHandler) -> None:
        self._wildcards.pop(handler_identity(handler), None)

    def wildcards(self) -> Tuple[WildcardHandler, ...]:
        return tuple(self._wildcards.values())

    # ------------------------------------------------------------------
    # Capacity hint (advisory, never enforced)
    # ------------------------------------------------------------------

    def set_capacity_hint(self, n: int) -> None:
        self._capacity_hint = n

    def get_capacity_hint(self) -> int:
        return self._capacity_hint
