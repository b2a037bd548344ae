"""Lookup cache for event types, statuses and instruments.

The calendar header needs these lists on every page load but they change
rarely. One ``LookupCache`` lives on the application (``app.state``) and is
handed to routes through a dependency. Entries stay until ``invalidate`` is
called; nothing expires on its own, so writers that change lookups must
invalidate.
"""
import logging
from collections.abc import Callable
from threading import Lock
from typing import TypeVar

from fastapi import Request

logger = logging.getLogger(__name__)

T = TypeVar("T")

EVENT_TYPES = "event_types"
EVENT_STATUSES = "event_statuses"
INSTRUMENTS = "instruments"


class LookupCache:
    """Fetch once, keep until invalidated."""

    def __init__(self):
        self._entries: dict[tuple, object] = {}
        self._lock = Lock()

    def get_or_load(self, kind: str, loader: Callable[[], T], *key) -> T:
        """
        Return the cached value for (kind, *key), calling ``loader`` on a miss.

        The loader runs outside the lock; if two requests miss at once both
        load and the last one wins, which is harmless for read-only lists.
        """
        cache_key = (kind, *key)
        with self._lock:
            if cache_key in self._entries:
                return self._entries[cache_key]

        value = loader()
        with self._lock:
            self._entries[cache_key] = value
        logger.debug(f"Cached {kind} {key or ''}")
        return value

    def invalidate(self, kind: str | None = None) -> None:
        """Drop every entry of ``kind``, or everything when kind is None."""
        with self._lock:
            if kind is None:
                self._entries.clear()
            else:
                for cache_key in [k for k in self._entries if k[0] == kind]:
                    del self._entries[cache_key]
        logger.info(f"Lookup cache invalidated: {kind or 'all'}")

    def __contains__(self, cache_key: tuple) -> bool:
        with self._lock:
            return cache_key in self._entries


def get_lookup_cache(request: Request) -> LookupCache:
    """Dependency returning the application's lookup cache."""
    return request.app.state.lookup_cache
