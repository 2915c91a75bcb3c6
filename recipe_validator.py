import math
from typing import Annotated, Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic_core import PydanticCustomError

from constants import RECIPE_CATEGORIES
from recipe_models import RecipeFormDraft

ErrorMap = Dict[str, str]

WHOLE_NUMBER = "Cook time must be a whole number"


def _whole_minutes(value: Any) -> Any:
    """Turn numeric text and whole floats into ints; leave anything else for the int check."""
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            return text
    if isinstance(value, float):
        if not math.isfinite(value):
            return value
        if not value.is_integer():
            raise PydanticCustomError("whole_number", WHOLE_NUMBER)
        return int(value)
    return value


NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
CookTimeMinutes = Annotated[int, Field(strict=True, gt=0), BeforeValidator(_whole_minutes)]


class RecipeSchema(BaseModel):
    """Submittable recipe fields, keyed by their wire names."""

    title: NonBlank
    description: str = ""
    category: str
    cook_time_minutes: CookTimeMinutes = Field(alias="cookTimeMinutes")
    ingredients: List[NonBlank] = Field(min_length=1)
    steps: List[NonBlank] = Field(min_length=1)
    notes: Optional[str] = None

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: str, info: ValidationInfo) -> str:
        allowed = tuple((info.context or {}).get("categories", RECIPE_CATEGORIES))
        if value not in allowed:
            raise PydanticCustomError("category", "Category must be one of: {allowed}", {"allowed": ", ".join(allowed)})
        return value


_FIELD_MESSAGES = {
    "title": "Title is required",
    "description": "Description must be text",
    "notes": "Notes must be text",
    "ingredients": "At least one ingredient is required",
    "steps": "At least one step is required",
}
_ITEM_MESSAGES = {
    "ingredients": "Ingredient cannot be empty",
    "steps": "Step cannot be empty",
}
_COOK_TIME_MESSAGES = {
    "greater_than": "Cook time must be a positive number",
    "whole_number": WHOLE_NUMBER,
}
_cook_time = TypeAdapter(CookTimeMinutes)


def _cook_time_message(error_type: str) -> str:
    return _COOK_TIME_MESSAGES.get(error_type, "Cook time must be a number")


def _message(loc: Tuple[Union[int, str], ...], error_type: str, allowed: Tuple[str, ...]) -> str:
    name = str(loc[0])
    if name == "cookTimeMinutes":
        return _cook_time_message(error_type)
    if name == "category":
        return f"Category must be one of: {', '.join(allowed)}"
    if len(loc) > 1 and name in _ITEM_MESSAGES:
        return _ITEM_MESSAGES[name]
    return _FIELD_MESSAGES[name]


def parse_cook_time(value: Union[int, float, str]) -> int:
    try:
        return _cook_time.validate_python(value)
    except ValidationError as exc:
        raise ValueError(_cook_time_message(exc.errors()[0]["type"])) from None


def validate(draft: RecipeFormDraft, categories: Iterable[str] = RECIPE_CATEGORIES) -> ErrorMap:
    """Check a draft and map each failing field path to a message.

    Array elements are addressed as ``ingredients.<index>`` and
    ``steps.<index>`` so an error can be shown next to its row. An empty
    mapping means the draft may be submitted.
    """
    allowed = tuple(categories)
    data = {
        "title": draft.title,
        "description": draft.description,
        "category": draft.category,
        "cookTimeMinutes": draft.cook_time_minutes,
        "ingredients": draft.ingredients,
        "steps": draft.steps,
        "notes": draft.notes,
    }
    try:
        RecipeSchema.model_validate(data, context={"categories": allowed})
    except ValidationError as exc:
        errors: ErrorMap = {}
        for error in exc.errors():
            loc = error["loc"]
            errors.setdefault(".".join(str(part) for part in loc), _message(loc, error["type"], allowed))
        return errors
    return {}


class ErrorTracker:
    """Remembers the last error map so a host only redraws what changed."""

    def __init__(self) -> None:
        self.errors: ErrorMap = {}

    def update(self, errors: Mapping[str, str]) -> Set[str]:
        previous = self.errors
        changed = {
            path
            for path in set(previous) | set(errors)
            if previous.get(path) != errors.get(path)
        }
        self.errors = dict(errors)
        return changed

    def error_for(self, path: str) -> Optional[str]:
        return self.errors.get(path)

    def clear(self) -> Set[str]:
        return self.update({})
