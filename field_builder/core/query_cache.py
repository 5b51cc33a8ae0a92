"""Query-Cache fuer gelesene Ressourcen.

Keys sind Tupel wie ("object-fields", "Account", "industry"). Invalidierung
arbeitet per Prefix: ("object-fields", "Account") invalidiert die Feldliste
und alle Felddetails des Objects.
"""

import logging
from typing import Any, Callable, Hashable

logger = logging.getLogger(__name__)

QueryKey = tuple[Hashable, ...]


class QueryCache:
    def __init__(self):
        self._entries: dict[QueryKey, Any] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def get(self, key: QueryKey, default=None):
        return self._entries.get(key, default)

    def set(self, key: QueryKey, value: Any) -> None:
        self._entries[key] = value

    def fetch(self, key: QueryKey, loader: Callable[[], Any]) -> Any:
        """Return the cached value or load and cache it. Loader errors are not cached."""
        if key in self._entries:
            return self._entries[key]
        value = loader()
        self._entries[key] = value
        return value

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop every entry whose key starts with ``prefix``. Returns the count."""
        n = len(prefix)
        stale = [key for key in self._entries if key[:n] == prefix]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cached queries for {prefix}")
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
