import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from constants import RECIPES_PATH

log = logging.getLogger(__name__)

QueryKey = Tuple[str, ...]


def list_key(query_string: str = "") -> QueryKey:
    return (RECIPES_PATH, "list", query_string)


def detail_key(recipe_id: int) -> QueryKey:
    return (RECIPES_PATH, "detail", str(recipe_id))


LIST_PREFIX: QueryKey = (RECIPES_PATH, "list")


@dataclass
class CacheEntry:
    data: Any = None
    stale: bool = True
    has_data: bool = False
    # bumped by every invalidation; lets a fetch notice it raced one
    generation: int = 0


class QueryCache:
    """Process-wide cache of query results keyed by tuples.

    Entries are never edited in place. They are replaced by fetches and
    marked stale by `invalidate`; the next read of a stale entry refetches.
    """

    def __init__(self) -> None:
        self._entries: Dict[QueryKey, CacheEntry] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def peek(self, key: QueryKey) -> Optional[Any]:
        entry = self._entries.get(key)
        return entry.data if entry and entry.has_data else None

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.stale

    def set(self, key: QueryKey, data: Any) -> None:
        entry = self._entries.setdefault(key, CacheEntry())
        entry.data = data
        entry.has_data = True
        entry.stale = False

    def invalidate(self, prefix: QueryKey) -> List[QueryKey]:
        """Mark every key starting with `prefix` stale and return them."""
        matched = [key for key in self._entries if key[: len(prefix)] == prefix]
        for key in matched:
            entry = self._entries[key]
            entry.stale = True
            entry.generation += 1
        log.debug("Invalidated %d queries under %s", len(matched), "/".join(prefix))
        return matched

    async def fetch(self, key: QueryKey, fetcher: Callable[[], Any]) -> Any:
        """Return fresh cached data, or run the blocking `fetcher` and store it."""
        entry = self._entries.setdefault(key, CacheEntry())
        if entry.has_data and not entry.stale:
            return entry.data

        generation = entry.generation
        data = await asyncio.to_thread(fetcher)

        entry = self._entries.setdefault(key, CacheEntry())
        entry.data = data
        entry.has_data = True
        entry.stale = entry.generation != generation
        if entry.stale:
            log.debug("Query %s was invalidated while fetching", "/".join(key))
        return data
