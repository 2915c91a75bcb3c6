import logging
from typing import List

from query_cache import LIST_PREFIX, QueryCache, QueryKey, detail_key
from recipe_models import Recipe

log = logging.getLogger(__name__)


class CacheSynchronizer:
    """Marks cached queries stale after a mutation so views refetch."""

    def __init__(self, cache: QueryCache):
        self.cache = cache

    def recipe_created(self, recipe: Recipe) -> List[QueryKey]:
        log.info("Recipe %s created, refreshing listings", recipe.id)
        return self.cache.invalidate(LIST_PREFIX)

    def recipe_updated(self, recipe: Recipe) -> List[QueryKey]:
        log.info("Recipe %s updated, refreshing listings and detail", recipe.id)
        stale = self.cache.invalidate(LIST_PREFIX)
        stale.extend(self.cache.invalidate(detail_key(recipe.id)))
        return stale

    def recipe_deleted(self, recipe_id: int) -> List[QueryKey]:
        log.info("Recipe %s deleted, refreshing listings", recipe_id)
        return self.cache.invalidate(LIST_PREFIX)
