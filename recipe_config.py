import os
from dataclasses import dataclass
from typing import Optional, Tuple

from constants import API_BASE_URL, RECIPE_CATEGORIES, REQUEST_TIMEOUT


@dataclass(frozen=True)
class Settings:
    api_url: str = API_BASE_URL
    timeout: float = REQUEST_TIMEOUT
    categories: Tuple[str, ...] = RECIPE_CATEGORIES

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from the environment (call `load_dotenv` first)."""
        api_url = os.getenv("RECIPES_API_URL") or API_BASE_URL
        timeout = _parse_timeout(os.getenv("RECIPES_API_TIMEOUT"))
        categories = _parse_categories(os.getenv("RECIPE_CATEGORIES"))
        return cls(api_url=api_url.rstrip("/"), timeout=timeout, categories=categories)


def _parse_timeout(raw: Optional[str]) -> float:
    if not raw:
        return REQUEST_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        raise ValueError(f"RECIPES_API_TIMEOUT must be a number of seconds, got {raw!r}") from None
    if timeout <= 0:
        raise ValueError("RECIPES_API_TIMEOUT must be positive")
    return timeout


def _parse_categories(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return RECIPE_CATEGORIES
    categories = tuple(dict.fromkeys(c.strip().lower() for c in raw.split(",") if c.strip()))
    if not categories:
        raise ValueError("RECIPE_CATEGORIES must list at least one category")
    if "all" in categories:
        raise ValueError("'all' is reserved and cannot be a recipe category")
    return categories
