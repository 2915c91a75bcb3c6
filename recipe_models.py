import base64
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from constants import DEFAULT_CATEGORY, DEFAULT_COOK_TIME_MINUTES


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class Recipe(BaseModel):
    """A recipe as the server returns it.

    Built with ``Recipe.model_validate(body)`` from the camelCase wire names;
    the Python names work too.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    title: str = ""
    description: str = ""
    category: str = ""
    cook_time_minutes: int = Field(0, alias="cookTimeMinutes")
    ingredients: List[str] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    created_at: Optional[str] = Field(None, alias="createdAt")

    @field_validator("title", "description", "category", mode="before")
    @classmethod
    def _null_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("ingredients", "steps", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("cook_time_minutes", mode="before")
    @classmethod
    def _null_minutes(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("notes", "image_url", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        return value or None

    @field_validator("created_at", mode="before")
    @classmethod
    def _timestamp_text(cls, value: Any) -> Any:
        # the server owns this field; keep whatever it sent as text
        return None if value is None else str(value)


@dataclass(frozen=True)
class ImageAttachment:
    """Image bytes picked by the user, held in memory until submitted."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def preview(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


@dataclass
class RecipeFormDraft:
    """The recipe being edited. `cook_time_minutes` keeps raw user input."""

    title: str = ""
    description: str = ""
    category: str = DEFAULT_CATEGORY
    cook_time_minutes: Union[int, str, None] = DEFAULT_COOK_TIME_MINUTES
    ingredients: List[str] = field(default_factory=lambda: [""])
    steps: List[str] = field(default_factory=lambda: [""])
    notes: str = ""
    created_at: str = field(default_factory=utc_now_iso)
    image: Optional[ImageAttachment] = None
    image_preview: Optional[str] = None

    @classmethod
    def empty(
        cls,
        category: str = DEFAULT_CATEGORY,
        cook_time_minutes: int = DEFAULT_COOK_TIME_MINUTES,
    ) -> "RecipeFormDraft":
        return cls(category=category, cook_time_minutes=cook_time_minutes)

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> "RecipeFormDraft":
        return cls(
            title=recipe.title,
            description=recipe.description,
            category=recipe.category,
            cook_time_minutes=recipe.cook_time_minutes,
            ingredients=list(recipe.ingredients) or [""],
            steps=list(recipe.steps) or [""],
            notes=recipe.notes or "",
            created_at=recipe.created_at or utc_now_iso(),
            image=None,
            image_preview=recipe.image_url,
        )


@dataclass(frozen=True)
class Failure:
    """A mutation that did not succeed. The draft that produced it is kept."""

    reason: str
    status: Optional[int] = None
