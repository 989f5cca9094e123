"""Process-wide cache of inferred node shapes."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import TYPE_CHECKING

from tracegraph._context import get_trace_config

if TYPE_CHECKING:
    from tracegraph._hashing import HashT
    from tracegraph._shape import Shape

logger = logging.getLogger(__name__)


class ShapeCache:
    """A thread-safe LRU map from structural node keys to shapes."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            msg = f"Shape cache capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self.capacity = capacity
        self._entries: OrderedDict[HashT, Shape] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: HashT) -> Shape | None:
        with self._lock:
            shape = self._entries.get(key)
            if shape is not None:
                self._entries.move_to_end(key)
            return shape

    def add(self, key: HashT, shape: Shape) -> Shape:
        """Store a shape and return the cached one.

        If another thread stored a shape for the same key first, that shape wins.
        """
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                self._entries.move_to_end(key)
                return existing
            self._entries[key] = shape
            if len(self._entries) > self.capacity:
                self._entries.popitem(last=False)
            return shape

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: HashT) -> bool:
        with self._lock:
            return key in self._entries


_shape_cache: ShapeCache | None = None
_shape_cache_lock = threading.Lock()


def get_shape_cache() -> ShapeCache:
    """Get the process-wide shape cache, creating it with the configured capacity."""
    global _shape_cache  # noqa: PLW0603
    with _shape_cache_lock:
        if _shape_cache is None:
            capacity = get_trace_config().shape_cache_size
            logger.debug("Creating shape cache with capacity %d", capacity)
            _shape_cache = ShapeCache(capacity)
        return _shape_cache


def reset_shape_cache(capacity: int | None = None) -> ShapeCache:
    """Replace the process-wide shape cache with an empty one."""
    global _shape_cache  # noqa: PLW0603
    with _shape_cache_lock:
        _shape_cache = ShapeCache(capacity if capacity is not None else get_trace_config().shape_cache_size)
        return _shape_cache
