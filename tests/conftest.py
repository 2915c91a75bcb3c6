import pytest

from recipe_models import Recipe, RecipeFormDraft


def recipe_data(**overrides):
    data = {
        "id": 7,
        "title": "Pancakes",
        "description": "Fluffy weekend pancakes",
        "category": "breakfast",
        "cookTimeMinutes": 20,
        "ingredients": ["2 cups flour", "2 eggs", "1 cup milk"],
        "steps": ["Whisk everything", "Fry in a hot pan"],
        "notes": "Rest the batter 10 minutes",
        "imageUrl": "/uploads/pancakes.jpg",
        "createdAt": "2024-03-04T09:30:00.000Z",
    }
    data.update(overrides)
    return data


class FakeRecipeClient:
    """Stands in for RecipeApiClient and records every call."""

    def __init__(self, recipes=None, error=None):
        self.recipes = {r.id: r for r in (recipes or [])}
        self.error = error
        self.calls = []
        self.next_id = 42

    def _fail(self):
        if self.error is not None:
            raise self.error

    def list_recipes(self, search=None, category=None):
        self.calls.append(("list", search, category))
        self._fail()
        return list(self.recipes.values())

    def get_recipe(self, recipe_id):
        self.calls.append(("get", recipe_id))
        self._fail()
        return self.recipes[recipe_id]

    def create_recipe(self, payload):
        self.calls.append(("create", payload))
        self._fail()
        recipe = Recipe.model_validate(recipe_data(id=self.next_id, imageUrl=None, **_fields(payload)))
        self.recipes[recipe.id] = recipe
        return recipe

    def update_recipe(self, recipe_id, payload):
        self.calls.append(("update", recipe_id, payload))
        self._fail()
        image_url = self.recipes[recipe_id].image_url if recipe_id in self.recipes else None
        if payload.image is not None:
            image_url = f"/uploads/{payload.image.filename}"
        recipe = Recipe.model_validate(recipe_data(id=recipe_id, imageUrl=image_url, **_fields(payload)))
        self.recipes[recipe_id] = recipe
        return recipe

    def delete_recipe(self, recipe_id):
        self.calls.append(("delete", recipe_id))
        self._fail()
        self.recipes.pop(recipe_id, None)

    def network_calls(self, kind):
        return [call for call in self.calls if call[0] == kind]


def _fields(payload):
    import json

    return json.loads(payload.recipe_json)


class CollectingNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, title, description, destructive=False):
        self.messages.append((title, description, destructive))


@pytest.fixture
def make_recipe():
    def factory(**overrides):
        return Recipe.model_validate(recipe_data(**overrides))

    return factory


@pytest.fixture
def valid_draft():
    return RecipeFormDraft(
        title="Tea",
        description="A calming cup",
        category="dinner",
        cook_time_minutes=5,
        ingredients=["water", "tea leaves"],
        steps=["boil", "steep"],
        notes="",
        created_at="2024-03-04T09:30:00.000Z",
    )


@pytest.fixture
def fake_client(make_recipe):
    return FakeRecipeClient(recipes=[make_recipe()])


@pytest.fixture
def notifier():
    return CollectingNotifier()
