"""
Query cache for list reads.

Entries are keyed by collection, user and query parameters. A successful
mutation drops every entry of that collection for that user; the next read
refetches (last fetch wins, nothing is merged).
"""
import copy
import logging
import threading
from typing import Any, Dict, Hashable, List, Optional, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, Hashable]


class QueryCache:
    def __init__(self) -> None:
        self._entries: Dict[CacheKey, List[Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(collection: str, user_id: str, **params: Any) -> CacheKey:
        frozen = tuple(sorted((k, repr(v)) for k, v in params.items()))
        return collection, user_id, frozen

    def get(self, key: CacheKey) -> Optional[List[Dict[str, Any]]]:
        with self._lock:
            items = self._entries.get(key)
        return copy.deepcopy(items) if items is not None else None

    def set(self, key: CacheKey, items: List[Dict[str, Any]]) -> None:
        with self._lock:
            self._entries[key] = copy.deepcopy(items)

    def invalidate(self, collection: str, user_id: str) -> None:
        with self._lock:
            stale = [key for key in self._entries if key[0] == collection and key[1] == user_id]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cached {collection} queries for {user_id}")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


query_cache = QueryCache()
