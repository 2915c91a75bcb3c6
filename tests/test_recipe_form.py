import asyncio
import json

import pytest

from cache_sync import CacheSynchronizer
from capabilities import RecordingNavigator
from mutation_dispatcher import MutationDispatcher
from query_cache import QueryCache, detail_key, list_key
from recipe_errors import NetworkFailure
import recipe_form
from recipe_form import RecipeForm
from recipe_models import ImageAttachment


@pytest.fixture
def cache():
    return QueryCache()


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def build_form(fake_client, cache, notifier, navigator):
    def factory(recipe=None, **kwargs):
        dispatcher = MutationDispatcher(fake_client, CacheSynchronizer(cache))
        return RecipeForm(dispatcher, notifier, navigator, recipe=recipe, **kwargs)

    return factory


def _fill_tea(form):
    form.set_field("title", "Tea")
    form.set_field("description", "A calming cup")
    form.update_at("ingredients", 0, "water")
    form.update_at("steps", 0, "boil")


def test_new_form_starts_with_defaults(build_form):
    form = build_form()

    assert form.is_editing is False
    assert form.draft.category == "dinner"
    assert form.draft.cook_time_minutes == 30
    assert form.ingredients.items == [""]
    assert form.steps.items == [""]
    assert form.errors["title"] == "Title is required"


def test_edit_form_is_seeded_from_recipe(build_form, make_recipe):
    form = build_form(make_recipe())

    assert form.existing_id == 7
    assert form.draft.title == "Pancakes"
    assert form.draft.image is None
    assert form.draft.image_preview == "/uploads/pancakes.jpg"
    assert form.ingredients.items == ["2 cups flour", "2 eggs", "1 cup milk"]
    assert form.errors == {}


def test_error_listener_gets_changed_paths(build_form):
    seen = []
    form = build_form(on_errors=lambda changed, errors: seen.append(changed))
    seen.clear()

    form.set_field("title", "Tea")
    form.append("steps")

    assert seen[0] == {"title"}
    assert seen[1] == {"steps.1"}


def test_list_edits_flow_into_the_draft(build_form, make_recipe):
    form = build_form(make_recipe())

    form.remove_at("ingredients", 0)
    form.append("steps")
    form.update_at("steps", 2, "Serve with syrup")

    assert form.draft.ingredients == ["2 eggs", "1 cup milk"]
    assert form.draft.steps == ["Whisk everything", "Fry in a hot pan", "Serve with syrup"]


def test_unknown_field_is_rejected(build_form):
    with pytest.raises(KeyError):
        build_form().set_field("imageUrl", "x")


@pytest.mark.asyncio
async def test_tea_with_zero_cook_time_is_blocked(build_form, fake_client):
    form = build_form()
    _fill_tea(form)
    form.set_field("cookTimeMinutes", 0)

    assert await form.submit() is None

    assert form.errors == {"cookTimeMinutes": "Cook time must be a positive number"}
    assert fake_client.calls == []
    assert form.is_open


@pytest.mark.asyncio
async def test_non_numeric_cook_time_is_blocked(build_form, fake_client):
    form = build_form()
    _fill_tea(form)
    form.set_field("cookTimeMinutes", "ten")

    assert await form.submit() is None
    assert form.errors["cookTimeMinutes"] == "Cook time must be a number"
    assert fake_client.calls == []


@pytest.mark.asyncio
async def test_create_without_image(build_form, fake_client, cache, notifier, navigator):
    cache.set(list_key(""), [])
    form = build_form()
    _fill_tea(form)

    recipe = await form.submit()

    assert recipe.id == 42
    (call,) = fake_client.network_calls("create")
    assert set(call[1].multipart()) == {"recipe"}
    assert json.loads(call[1].recipe_json)["title"] == "Tea"
    assert cache.is_stale(list_key(""))
    assert detail_key(42) not in cache
    assert notifier.messages == [("Recipe created", "Your recipe has been successfully created.", False)]
    assert navigator.history == ["/recipes/42"]
    assert form.is_open is False


@pytest.mark.asyncio
async def test_edit_title_only_puts_without_image(build_form, fake_client, cache, make_recipe):
    cache.set(detail_key(7), make_recipe())
    closed = []
    form = build_form(make_recipe(), on_success=lambda: closed.append(True))
    form.set_field("title", "Lemon pancakes")

    recipe = await form.submit()

    (call,) = fake_client.network_calls("update")
    assert call[1] == 7
    assert "image" not in call[2].multipart()
    assert recipe.image_url == "/uploads/pancakes.jpg"
    assert cache.is_stale(detail_key(7))
    assert closed == [True]


@pytest.mark.asyncio
async def test_double_submit_makes_one_call(build_form, fake_client):
    form = build_form()
    _fill_tea(form)

    first, second = await asyncio.gather(form.submit(), form.submit())

    assert first.id == 42
    assert second is None
    assert len(fake_client.network_calls("create")) == 1


@pytest.mark.asyncio
async def test_failure_notifies_once_and_keeps_draft(build_form, fake_client, notifier, navigator):
    fake_client.error = NetworkFailure("Failed to create recipe", status=500)
    form = build_form()
    _fill_tea(form)
    form.set_image(ImageAttachment("tea.png", b"png", "image/png"))

    assert await form.submit() is None

    assert notifier.messages == [
        ("Error", "Failed to create recipe: Failed to create recipe", True),
    ]
    assert navigator.history == []
    assert form.draft.title == "Tea"
    assert form.draft.image.filename == "tea.png"

    fake_client.error = None
    recipe = await form.submit()
    assert recipe is not None
    assert fake_client.network_calls("create")[-1][1].image.filename == "tea.png"


@pytest.mark.asyncio
async def test_choose_and_clear_image(build_form, make_recipe, tmp_path):
    path = tmp_path / "stack.png"
    path.write_bytes(b"\x89PNG")
    form = build_form(make_recipe())

    image = await form.choose_image(path)

    assert form.draft.image == image
    assert form.draft.image_preview.startswith("data:image/png;base64,")

    form.clear_image()

    assert form.draft.image is None
    assert form.draft.image_preview == "/uploads/pancakes.jpg"


@pytest.mark.asyncio
async def test_unreadable_image_is_reported(build_form, notifier, tmp_path):
    form = build_form()

    assert await form.choose_image(tmp_path / "missing.png") is None

    assert len(notifier.messages) == 1
    assert notifier.messages[0][2] is True
    assert form.draft.image is None


@pytest.mark.asyncio
async def test_later_image_pick_wins(build_form, tmp_path):
    first = tmp_path / "first.png"
    second = tmp_path / "second.png"
    first.write_bytes(b"1")
    second.write_bytes(b"2")
    form = build_form()

    await asyncio.gather(form.choose_image(first), form.choose_image(second))

    assert form.draft.image.filename == "second.png"


@pytest.mark.asyncio
async def test_unmounted_form_still_syncs_cache(build_form, cache, navigator, make_recipe):
    cache.set(detail_key(7), make_recipe())
    form = build_form(make_recipe())

    task = asyncio.ensure_future(form.submit())
    await asyncio.sleep(0)
    form.unmount()
    recipe = await task

    assert recipe.id == 7
    assert cache.is_stale(detail_key(7))
    assert navigator.history == []


def test_cancel_discards_draft(build_form, navigator):
    form = build_form()

    assert form.cancel() is True
    assert form.is_open is False
    assert navigator.history == ["/"]
    with pytest.raises(RuntimeError):
        form.set_field("title", "late")


@pytest.fixture
def slow_image(monkeypatch):
    async def load(path):
        await asyncio.sleep(0.05)
        return ImageAttachment("tea.png", b"png", "image/png")

    monkeypatch.setattr(recipe_form, "load_image", load)


@pytest.mark.asyncio
async def test_submit_waits_for_image_being_read(build_form, fake_client, slow_image, tmp_path):
    form = build_form()
    _fill_tea(form)

    picking = asyncio.ensure_future(form.choose_image(tmp_path / "tea.png"))
    await asyncio.sleep(0)
    recipe = await form.submit()
    picked = await picking

    assert recipe.id == 42
    assert picked is not None
    (call,) = fake_client.network_calls("create")
    assert call[1].has_image
    assert call[1].image == picked


@pytest.mark.asyncio
async def test_second_submit_during_image_read_is_ignored(build_form, fake_client, slow_image, tmp_path):
    form = build_form()
    _fill_tea(form)

    picking = asyncio.ensure_future(form.choose_image(tmp_path / "tea.png"))
    await asyncio.sleep(0)
    first = asyncio.ensure_future(form.submit())
    await asyncio.sleep(0)

    assert form.is_submitting
    assert form.cancel() is False
    assert await form.submit() is None
    assert (await first).id == 42
    await picking
    assert len(fake_client.network_calls("create")) == 1


def test_non_text_notes_are_reported(build_form):
    form = build_form()
    _fill_tea(form)

    form.set_field("notes", 5)

    assert form.errors == {"notes": "Notes must be text"}
