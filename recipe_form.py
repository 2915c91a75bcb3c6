import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Set, Union

from attachment_encoder import load_image
from capabilities import Navigator, Notifier
from constants import RECIPE_CATEGORIES
from list_field import ListFieldController
from mutation_dispatcher import MutationDispatcher
from recipe_errors import SubmissionInProgress
from recipe_models import Failure, ImageAttachment, Recipe, RecipeFormDraft
from recipe_validator import ErrorMap, ErrorTracker, validate

log = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "category": "category",
    "cookTimeMinutes": "cook_time_minutes",
    "cook_time_minutes": "cook_time_minutes",
    "notes": "notes",
}

ErrorListener = Callable[[Set[str], ErrorMap], None]


class RecipeForm:
    """Host for one add or edit session.

    Holds the draft, the two list controllers and the image state, re-runs
    validation on every change and hands valid drafts to its dispatcher.
    The draft is discarded once a submission succeeds or the user cancels.
    """

    def __init__(
        self,
        dispatcher: MutationDispatcher,
        notifier: Notifier,
        navigator: Navigator,
        recipe: Optional[Recipe] = None,
        on_success: Optional[Callable[[], None]] = None,
        on_errors: Optional[ErrorListener] = None,
        categories: Iterable[str] = RECIPE_CATEGORIES,
    ):
        self.dispatcher = dispatcher
        self.notifier = notifier
        self.navigator = navigator
        self.recipe = recipe
        self.on_success = on_success
        self.on_errors = on_errors
        self.categories = tuple(categories)

        self.existing_id: Optional[int] = recipe.id if recipe is not None else None
        self.draft: Optional[RecipeFormDraft] = (
            RecipeFormDraft.from_recipe(recipe) if recipe is not None else RecipeFormDraft.empty()
        )
        self.lists: Dict[str, ListFieldController] = {
            "ingredients": ListFieldController(self.draft.ingredients, "ingredients"),
            "steps": ListFieldController(self.draft.steps, "steps"),
        }
        self.tracker = ErrorTracker()
        self.mounted = True
        self._image_request = 0
        self._image_read: Optional["asyncio.Future[Optional[ImageAttachment]]"] = None
        self._submitting = False
        self._revalidate()

    @property
    def ingredients(self) -> ListFieldController:
        return self.lists["ingredients"]

    @property
    def steps(self) -> ListFieldController:
        return self.lists["steps"]

    @property
    def is_editing(self) -> bool:
        return self.existing_id is not None

    @property
    def is_submitting(self) -> bool:
        return self._submitting or self.dispatcher.is_pending

    @property
    def is_open(self) -> bool:
        return self.draft is not None

    @property
    def errors(self) -> ErrorMap:
        return dict(self.tracker.errors)

    def _require_draft(self) -> RecipeFormDraft:
        if self.draft is None:
            raise RuntimeError("The recipe form is closed")
        return self.draft

    def _revalidate(self) -> ErrorMap:
        errors = validate(self._require_draft(), self.categories)
        changed = self.tracker.update(errors)
        if changed and self.mounted and self.on_errors is not None:
            self.on_errors(changed, dict(errors))
        return errors

    # Field edits

    def set_field(self, name: str, value: Union[str, int, None]) -> None:
        draft = self._require_draft()
        try:
            attr = EDITABLE_FIELDS[name]
        except KeyError:
            raise KeyError(f"Unknown recipe field: {name}") from None
        setattr(draft, attr, value)
        self._revalidate()

    def append(self, field_name: str) -> int:
        draft = self._require_draft()
        controller = self.lists[field_name]
        index = controller.append()
        setattr(draft, field_name, controller.items)
        self._revalidate()
        return index

    def remove_at(self, field_name: str, index: int) -> bool:
        draft = self._require_draft()
        controller = self.lists[field_name]
        removed = controller.remove_at(index)
        if removed:
            setattr(draft, field_name, controller.items)
            self._revalidate()
        return removed

    def update_at(self, field_name: str, index: int, value: str) -> None:
        draft = self._require_draft()
        controller = self.lists[field_name]
        controller.update_at(index, value)
        setattr(draft, field_name, controller.items)
        self._revalidate()

    # Image

    def set_image(self, attachment: ImageAttachment) -> None:
        draft = self._require_draft()
        self._image_request += 1
        draft.image = attachment
        draft.image_preview = attachment.preview

    def clear_image(self) -> None:
        """Drop the chosen image; the recipe keeps whatever image it had."""
        draft = self._require_draft()
        self._image_request += 1
        draft.image = None
        draft.image_preview = self.recipe.image_url if self.recipe is not None else None

    async def choose_image(self, path: Union[str, Path]) -> Optional[ImageAttachment]:
        """Read an image off the event loop and attach it to the draft.

        A submit started while the read is pending waits for it, so the
        picked image goes out with that submission.
        """
        self._require_draft()
        self._image_request += 1
        read = asyncio.ensure_future(self._read_image(path, self._image_request))
        self._image_read = read
        return await read

    async def _read_image(self, path: Union[str, Path], request: int) -> Optional[ImageAttachment]:
        try:
            attachment = await load_image(path)
        except OSError as exc:
            log.warning("Could not read image %s: %s", path, exc)
            self.notifier.notify("Error", f"Failed to read image: {exc.strerror or exc}", destructive=True)
            return None
        if self.draft is None or request != self._image_request:
            # another pick, a clear or a close happened while reading
            log.debug("Discarding superseded image %s", path)
            return None
        self.draft.image = attachment
        self.draft.image_preview = attachment.preview
        return attachment

    async def _settle_image(self) -> None:
        read = self._image_read
        if read is not None and not read.done():
            log.debug("Waiting for the image read before submitting")
            await asyncio.wait([read])

    # Submission

    async def submit(self) -> Optional[Recipe]:
        self._require_draft()
        if self.is_submitting:
            log.debug("Ignoring submit while another is pending")
            return None
        self._submitting = True
        try:
            return await self._submit()
        finally:
            self._submitting = False

    async def _submit(self) -> Optional[Recipe]:
        await self._settle_image()
        draft = self._require_draft()

        errors = self._revalidate()
        if errors:
            log.debug("Submit blocked by %d validation errors", len(errors))
            return None

        action = "update" if self.is_editing else "create"
        try:
            result = await self.dispatcher.submit(replace(draft), self.existing_id)
        except SubmissionInProgress:
            log.debug("Ignoring submit while another is pending")
            return None

        if isinstance(result, Failure):
            self.notifier.notify("Error", f"Failed to {action} recipe: {result.reason}", destructive=True)
            return None

        self.notifier.notify(f"Recipe {action}d", f"Your recipe has been successfully {action}d.")
        self.draft = None
        if self.mounted:
            self._leave(f"/recipes/{result.id}")
        else:
            log.debug("Form unmounted before recipe %s was saved", result.id)
        return result

    def cancel(self) -> bool:
        if self.draft is None or self.is_submitting:
            return False
        self.draft = None
        if self.mounted:
            self._leave("/")
        return True

    def unmount(self) -> None:
        self.mounted = False

    def _leave(self, path: str) -> None:
        if self.on_success is not None:
            self.on_success()
        else:
            self.navigator.navigate(path)
