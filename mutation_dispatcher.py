import asyncio
import logging
from typing import Iterable, Optional, Union

from attachment_encoder import encode
from cache_sync import CacheSynchronizer
from constants import GENERIC_NETWORK_FAILURE, RECIPE_CATEGORIES
from recipe_client import RecipeApiClient
from recipe_errors import NetworkFailure, RecipeValidationError, SubmissionInProgress
from recipe_models import Failure, Recipe, RecipeFormDraft
from recipe_validator import validate

log = logging.getLogger(__name__)


class MutationDispatcher:
    """Sends one draft to the API as a create or an update.

    One dispatcher belongs to one form. While a submission is pending any
    further `submit` is rejected, never queued, and nothing is retried:
    creating a recipe twice is not harmless.
    """

    def __init__(
        self,
        client: RecipeApiClient,
        cache_sync: CacheSynchronizer,
        categories: Iterable[str] = RECIPE_CATEGORIES,
    ):
        self.client = client
        self.cache_sync = cache_sync
        self.categories = tuple(categories)
        self._pending = False

    @property
    def is_pending(self) -> bool:
        return self._pending

    async def submit(
        self,
        draft: RecipeFormDraft,
        existing_id: Optional[int] = None,
    ) -> Union[Recipe, Failure]:
        if self._pending:
            raise SubmissionInProgress()

        errors = validate(draft, self.categories)
        if errors:
            raise RecipeValidationError(errors)

        payload = encode(draft)
        self._pending = True
        try:
            if existing_id is None:
                log.debug("Creating recipe %r (image: %s)", draft.title, payload.has_image)
                recipe = await asyncio.to_thread(self.client.create_recipe, payload)
            else:
                log.debug("Updating recipe %s (image: %s)", existing_id, payload.has_image)
                recipe = await asyncio.to_thread(self.client.update_recipe, existing_id, payload)
        except NetworkFailure as exc:
            log.warning("Saving recipe failed: %s", exc.message)
            return Failure(reason=exc.message or GENERIC_NETWORK_FAILURE, status=exc.status)
        finally:
            self._pending = False

        if existing_id is None:
            self.cache_sync.recipe_created(recipe)
        else:
            self.cache_sync.recipe_updated(recipe)
        return recipe
