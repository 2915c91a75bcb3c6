from datetime import datetime
from typing import Dict, Union
from urllib.parse import quote

from constants import ALL_CATEGORIES
from recipe_models import Recipe


def category_label(category: str) -> str:
    return category[:1].upper() + category[1:]


def page_title(search: str = "", category: str = ALL_CATEGORIES) -> str:
    if search:
        return f"Search Results: {search}"
    if not category or category == ALL_CATEGORIES:
        return "All Recipes"
    return f"{category_label(category)} Recipes"


def empty_state(search: str = "", category: str = ALL_CATEGORIES) -> Dict[str, Union[str, bool]]:
    if search:
        return {
            "title": "No matching recipes found",
            "description": f'No recipes found matching "{search}". Try a different search term.',
            "show_add_button": True,
        }
    if category and category != ALL_CATEGORIES:
        description = f"You haven't added any {category} recipes yet."
    else:
        description = "You haven't added any recipes yet. Add your first recipe to get started!"
    return {"title": "No recipes found", "description": description, "show_add_button": True}


def format_date(value: str) -> str:
    """Format an ISO timestamp as e.g. ``March 4, 2024``; other text is shown as-is."""
    try:
        date = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return str(value)
    return f"{date.strftime('%B')} {date.day}, {date.year}"


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def placeholder_image(text: str, width: int = 800, height: int = 500) -> str:
    return f"https://via.placeholder.com/{width}x{height}?text={quote(text, safe='')}"


def image_for(recipe: Recipe, width: int = 800, height: int = 500) -> str:
    return recipe.image_url or placeholder_image("No Image", width, height)


def render_markdown(recipe: Recipe) -> str:
    md = [f"# {recipe.title}", ""]
    meta = [category_label(recipe.category), f"{recipe.cook_time_minutes} mins"]
    if recipe.created_at:
        meta.append(f"added {format_date(recipe.created_at)}")
    md.append("_" + " · ".join(meta) + "_")
    md.append("")
    if recipe.description:
        md.append(recipe.description)
        md.append("")
    md.append(f"![{recipe.title}]({image_for(recipe)})")
    md.append("")
    if recipe.ingredients:
        md.append("## Ingredients")
        for ing in recipe.ingredients:
            md.append(f"- {ing}")
        md.append("")
    if recipe.steps:
        md.append("## Instructions")
        for i, s in enumerate(recipe.steps, 1):
            md.append(f"{i}. {s}")
        md.append("")
    if recipe.notes:
        md.append("## Notes")
        md.append(f"_{recipe.notes}_")
        md.append("")
    return "\n".join(md).strip() + "\n"
