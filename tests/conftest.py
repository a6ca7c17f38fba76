"""
Pytest configuration and shared fixtures.

Fixtures are reusable test setup that can be injected into tests.
"""

import shutil
import tempfile

import pytest

from cooking_assistant.data.database import DatabaseInterface
from cooking_assistant.data.models import (
    Ingredient,
    MealPlan,
    Recipe,
    RecipeIngredient,
    RecipeStep,
)


@pytest.fixture
def temp_db_dir():
    """
    Create a temporary database directory for testing.

    This fixture is automatically cleaned up after each test.
    """
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def db(temp_db_dir):
    """
    Create a fresh DatabaseInterface for each test.

    Usage in tests:
        def test_something(db):
            db.create_ingredient(...)
    """
    return DatabaseInterface(db_dir=temp_db_dir)


@pytest.fixture
def ingredients(db):
    """Ingredient catalogue saved in the test database, keyed by name."""
    catalogue = {}
    for name, category in [
        ("Flour", "pantry"),
        ("Butter", "dairy"),
        ("Milk", "dairy"),
        ("Eggs", "dairy"),
        ("Tomato", "produce"),
        ("Basil", "produce"),
    ]:
        ingredient = Ingredient(name=name, category=category)
        db.create_ingredient(ingredient)
        catalogue[name] = ingredient
    return catalogue


@pytest.fixture
def bechamel(db, ingredients):
    """Sauce recipe (serves 4) used as a nested recipe."""
    recipe = Recipe(
        title="Bechamel",
        servings=4,
        author_id=1,
        ingredients=[
            RecipeIngredient(ingredients["Butter"].id, 50, "g"),
            RecipeIngredient(ingredients["Flour"].id, 50, "g"),
            RecipeIngredient(ingredients["Milk"].id, 500, "ml"),
        ],
        steps=[
            RecipeStep(1, "Melt the butter and whisk in the flour"),
            RecipeStep(2, "Add the milk slowly and stir until thick"),
        ],
    )
    db.create_recipe(recipe)
    return recipe


@pytest.fixture
def lasagne(db, ingredients, bechamel):
    """Main dish (serves 4) whose second step uses the bechamel."""
    recipe = Recipe(
        title="Lasagne",
        servings=4,
        author_id=1,
        ingredients=[
            RecipeIngredient(ingredients["Flour"].id, 400, "g"),
            RecipeIngredient(ingredients["Eggs"].id, 4, "unit"),
            RecipeIngredient(ingredients["Tomato"].id, 800, "g"),
            RecipeIngredient(ingredients["Basil"].id, 10, "g", is_optional=True),
        ],
        steps=[
            RecipeStep(1, "Make the pasta sheets"),
            RecipeStep(2, "Prepare the bechamel", referenced_recipe_id=bechamel.id),
            RecipeStep(3, "Layer and bake", duration=45, temperature=180),
        ],
    )
    db.create_recipe(recipe)
    return recipe


@pytest.fixture
def sample_meal_plan(lasagne):
    """Unsaved meal plan for the lasagne."""
    return MealPlan(
        user_id=1,
        recipe_id=lasagne.id,
        planned_date="2025-01-06",
        meal_type="dinner",
        servings=2,
        notes="Family dinner",
    )
