import re
from typing import Pattern, Tuple

RECIPE_CATEGORIES: Tuple[str, ...] = ("breakfast", "lunch", "dinner", "dessert", "snack")
ALL_CATEGORIES = "all"

DEFAULT_CATEGORY = "dinner"
DEFAULT_COOK_TIME_MINUTES = 30

API_BASE_URL = "http://localhost:5000"
RECIPES_PATH = "/api/recipes"
REQUEST_TIMEOUT = 30

# Fields sent in the JSON blob, in wire order.
RECIPE_WIRE_FIELDS: Tuple[str, ...] = (
    "title",
    "description",
    "category",
    "cookTimeMinutes",
    "ingredients",
    "steps",
    "notes",
    "createdAt",
)

GENERIC_NETWORK_FAILURE = "Network error, please check your connection and try again"

LIST_PREFIX_RE: Pattern[str] = re.compile(r"^\s*(?:[-\*•]|\d+[\).])\s*")
