import asyncio
import logging
from typing import List, Optional, Set, Tuple
from urllib.parse import parse_qs, urlsplit

from cache_sync import CacheSynchronizer
from capabilities import Navigator, Notifier
from constants import ALL_CATEGORIES
from query_cache import QueryCache, detail_key, list_key
from recipe_client import RecipeApiClient, build_query_string
from recipe_errors import NetworkFailure, NotFoundFailure
from recipe_models import Recipe

log = logging.getLogger(__name__)


def parse_location(location: str) -> Tuple[str, str]:
    """Return ``(category, search)`` from a location such as ``/?category=lunch``."""
    params = parse_qs(urlsplit(location).query)
    category = (params.get("category") or [ALL_CATEGORIES])[0] or ALL_CATEGORIES
    search = (params.get("search") or [""])[0]
    return category, search


def search_location(query: str) -> str:
    query = query.strip()
    return f"/?{build_query_string(search=query)}" if query else "/"


def category_location(category: str) -> str:
    return f"/?category={category}"


class RecipeCatalog:
    """Cached reads plus the delete action shared by cards and detail views."""

    def __init__(
        self,
        client: RecipeApiClient,
        cache: QueryCache,
        cache_sync: CacheSynchronizer,
        notifier: Notifier,
        navigator: Navigator,
    ):
        self.client = client
        self.cache = cache
        self.cache_sync = cache_sync
        self.notifier = notifier
        self.navigator = navigator
        self._deleting: Set[int] = set()

    async def list_recipes(self, search: str = "", category: str = ALL_CATEGORIES) -> List[Recipe]:
        query = build_query_string(search, category)
        return await self.cache.fetch(
            list_key(query),
            lambda: self.client.list_recipes(search=search, category=category),
        )

    async def get_recipe(self, recipe_id: int) -> Recipe:
        return await self.cache.fetch(detail_key(recipe_id), lambda: self.client.get_recipe(recipe_id))

    async def load_for_edit(self, recipe_id: int) -> Optional[Recipe]:
        """Fetch a recipe to seed an edit form; send the user home if that fails."""
        try:
            return await self.get_recipe(recipe_id)
        except NetworkFailure as exc:
            missing = isinstance(exc, NotFoundFailure)
            log.warning("Could not load recipe %s for editing (missing: %s)", recipe_id, missing)
            self.notifier.notify("Error Loading Recipe", exc.message, destructive=True)
        self.navigator.navigate("/")
        return None

    def is_deleting(self, recipe_id: int) -> bool:
        return recipe_id in self._deleting

    async def delete_recipe(self, recipe_id: int, redirect_to: Optional[str] = None) -> bool:
        if recipe_id in self._deleting:
            log.debug("Delete of recipe %s already in progress", recipe_id)
            return False

        self._deleting.add(recipe_id)
        try:
            await asyncio.to_thread(self.client.delete_recipe, recipe_id)
        except NetworkFailure as exc:
            self.notifier.notify("Error", f"Failed to delete recipe: {exc.message}", destructive=True)
            return False
        finally:
            self._deleting.discard(recipe_id)

        self.cache_sync.recipe_deleted(recipe_id)
        self.notifier.notify("Recipe deleted", "The recipe has been successfully deleted.")
        if redirect_to is not None:
            self.navigator.navigate(redirect_to)
        return True
