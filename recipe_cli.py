import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from cache_sync import CacheSynchronizer
from capabilities import RecordingNavigator
from constants import ALL_CATEGORIES, LIST_PREFIX_RE
from mutation_dispatcher import MutationDispatcher
from query_cache import QueryCache
from recipe_catalog import RecipeCatalog
from recipe_client import RecipeApiClient
from recipe_config import Settings
from recipe_display import empty_state, page_title, render_markdown, truncate_text
from recipe_errors import NetworkFailure
from recipe_form import RecipeForm

log = logging.getLogger(__name__)


class PrintNotifier:
    def notify(self, title: str, description: str, destructive: bool = False) -> None:
        stream = sys.stderr if destructive else sys.stdout
        print(f"{title}: {description}", file=stream)


def read_list_file(path: Path) -> List[str]:
    """Read one item per line, dropping blank lines and bullet/number prefixes."""
    items = []
    for line in path.read_text(encoding="utf-8").splitlines():
        text = LIST_PREFIX_RE.sub("", line).strip()
        if text:
            items.append(text)
    return items


class App:
    """Wires one cache, client and set of capabilities for a CLI run."""

    def __init__(self, settings: Settings, client: Optional[RecipeApiClient] = None):
        self.settings = settings
        self.client = client or RecipeApiClient(settings.api_url, settings.timeout)
        self.cache = QueryCache()
        self.cache_sync = CacheSynchronizer(self.cache)
        self.notifier = PrintNotifier()
        self.navigator = RecordingNavigator()
        self.catalog = RecipeCatalog(self.client, self.cache, self.cache_sync, self.notifier, self.navigator)

    def form(self, recipe=None) -> RecipeForm:
        dispatcher = MutationDispatcher(self.client, self.cache_sync, self.settings.categories)
        return RecipeForm(
            dispatcher,
            self.notifier,
            self.navigator,
            recipe=recipe,
            categories=self.settings.categories,
        )


def _fill_form(form: RecipeForm, args: argparse.Namespace) -> None:
    for name, value in (
        ("title", args.title),
        ("description", args.description),
        ("category", args.category),
        ("cookTimeMinutes", args.cook_time),
        ("notes", args.notes),
    ):
        if value is not None:
            form.set_field(name, value)

    for field_name, values, list_file in (
        ("ingredients", args.ingredient, args.ingredients_file),
        ("steps", args.step, args.steps_file),
    ):
        items = list(values or [])
        if list_file:
            items.extend(read_list_file(Path(list_file)))
        if not items:
            continue
        controller = form.lists[field_name]
        while len(controller) > len(items):
            form.remove_at(field_name, len(controller) - 1)
        while len(controller) < len(items):
            form.append(field_name)
        for index, item in enumerate(items):
            form.update_at(field_name, index, item)


async def cmd_list(app: App, args: argparse.Namespace) -> int:
    recipes = await app.catalog.list_recipes(search=args.search or "", category=args.category)
    print(page_title(args.search or "", args.category))
    if not recipes:
        state = empty_state(args.search or "", args.category)
        print(f"{state['title']}. {state['description']}")
        return 0
    for recipe in recipes:
        print(f"[{recipe.id}] {recipe.title} ({recipe.category}, {recipe.cook_time_minutes} mins)")
        if recipe.description:
            print(f"    {truncate_text(recipe.description, 80)}")
    return 0


async def cmd_show(app: App, args: argparse.Namespace) -> int:
    recipe = await app.catalog.get_recipe(args.id)
    print(render_markdown(recipe), end="")
    return 0


async def _save(app: App, form: RecipeForm, args: argparse.Namespace) -> int:
    _fill_form(form, args)
    if args.image:
        if await form.choose_image(args.image) is None:
            return 1
    recipe = await form.submit()
    if recipe is None:
        for path, message in sorted(form.errors.items()):
            print(f"{path}: {message}", file=sys.stderr)
        return 1
    print(render_markdown(recipe), end="")
    return 0


async def cmd_add(app: App, args: argparse.Namespace) -> int:
    return await _save(app, app.form(), args)


async def cmd_edit(app: App, args: argparse.Namespace) -> int:
    recipe = await app.catalog.load_for_edit(args.id)
    if recipe is None:
        return 1
    return await _save(app, app.form(recipe), args)


async def cmd_delete(app: App, args: argparse.Namespace) -> int:
    return 0 if await app.catalog.delete_recipe(args.id) else 1


def _add_recipe_fields(parser: argparse.ArgumentParser, categories) -> None:
    parser.add_argument("--title", help="Recipe title")
    parser.add_argument("--description", help="Short description")
    parser.add_argument("--category", choices=categories, help="Recipe category")
    parser.add_argument("--cook-time", help="Cook time in minutes")
    parser.add_argument("--ingredient", action="append", help="Ingredient (repeat for several)")
    parser.add_argument("--ingredients-file", help="File with one ingredient per line")
    parser.add_argument("--step", action="append", help="Preparation step (repeat for several)")
    parser.add_argument("--steps-file", help="File with one step per line")
    parser.add_argument("--notes", help="Optional notes")
    parser.add_argument("--image", help="Path to an image to upload")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="recipes", description="Browse and edit your recipe catalog.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log requests and cache activity")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List recipes")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--search", help="Search by title or ingredients")
    group.add_argument("--category", default=ALL_CATEGORIES, choices=(ALL_CATEGORIES,) + settings.categories)
    p.set_defaults(handler=cmd_list)

    p = sub.add_parser("show", help="Print a recipe as Markdown")
    p.add_argument("id", type=int)
    p.set_defaults(handler=cmd_show)

    p = sub.add_parser("add", help="Create a recipe")
    _add_recipe_fields(p, settings.categories)
    p.set_defaults(handler=cmd_add)

    p = sub.add_parser("edit", help="Update a recipe; unspecified fields keep their value")
    p.add_argument("id", type=int)
    _add_recipe_fields(p, settings.categories)
    p.set_defaults(handler=cmd_edit)

    p = sub.add_parser("delete", help="Delete a recipe")
    p.add_argument("id", type=int)
    p.set_defaults(handler=cmd_delete)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}")

    args = build_parser(settings).parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    app = App(settings)
    try:
        return asyncio.run(args.handler(app, args))
    except NetworkFailure as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
