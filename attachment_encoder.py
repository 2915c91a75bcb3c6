import asyncio
import json
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from constants import RECIPE_WIRE_FIELDS
from recipe_models import ImageAttachment, RecipeFormDraft
from recipe_validator import parse_cook_time

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Payload:
    """Wire form of a draft: a JSON blob plus the optional image part."""

    recipe_json: str
    image: Optional[ImageAttachment] = None

    @property
    def has_image(self) -> bool:
        return self.image is not None

    def multipart(self) -> Dict[str, Tuple[Any, ...]]:
        """Build the ``files=`` mapping for ``requests``.

        The recipe part carries no filename so the server sees it as a plain
        form field; the body stays multipart even without an image.
        """
        parts: Dict[str, Tuple[Any, ...]] = {"recipe": (None, self.recipe_json)}
        if self.image is not None:
            parts["image"] = (self.image.filename, self.image.content, self.image.content_type)
        return parts


def recipe_fields(draft: RecipeFormDraft) -> Dict[str, Any]:
    values = {
        "title": draft.title.strip(),
        "description": draft.description or "",
        "category": draft.category,
        "cookTimeMinutes": parse_cook_time(draft.cook_time_minutes),
        "ingredients": [item.strip() for item in draft.ingredients],
        "steps": [step.strip() for step in draft.steps],
        "notes": draft.notes or "",
        "createdAt": draft.created_at,
    }
    return {name: values[name] for name in RECIPE_WIRE_FIELDS}


def encode(draft: RecipeFormDraft) -> Payload:
    """Encode a validated draft. Only an image chosen in this session is sent."""
    blob = json.dumps(recipe_fields(draft), ensure_ascii=False)
    return Payload(recipe_json=blob, image=draft.image)


def _read_image(path: Path) -> ImageAttachment:
    content_type, _ = mimetypes.guess_type(path.name)
    return ImageAttachment(
        filename=path.name,
        content=path.read_bytes(),
        content_type=content_type or "application/octet-stream",
    )


async def load_image(path: Union[str, Path]) -> ImageAttachment:
    path = Path(path)
    attachment = await asyncio.to_thread(_read_image, path)
    log.debug("Loaded image %s (%d bytes)", path.name, len(attachment.content))
    return attachment
