"""
Unit tests for the data models.
"""

import pytest

from cooking_assistant.data.models import (
    Ingredient,
    IngredientContribution,
    MealPlan,
    Recipe,
    RecipeIngredient,
    RecipeStep,
    ShoppingListItem,
    WeeklyShoppingList,
)


def contribution(recipe_name, quantity, recipe_id=1, date="2025-01-06", meal_type="dinner"):
    return IngredientContribution(
        recipe_id=recipe_id,
        recipe_name=recipe_name,
        quantity=quantity,
        date=date,
        meal_type=meal_type,
    )


class TestRecipe:
    """Test Recipe scaling helpers."""

    def test_servings_ratio(self):
        """Test ratio between planned and recipe servings."""
        recipe = Recipe(title="Lasagne", servings=4)

        assert recipe.servings_ratio(2) == 0.5
        assert recipe.servings_ratio(8) == 2.0

    @pytest.mark.parametrize("servings", [0, -1, None])
    def test_non_positive_servings_count_as_one(self, servings):
        """Test degenerate servings fall back to 1."""
        recipe = Recipe(title="Odd", servings=servings)

        assert recipe.effective_servings == 1
        assert recipe.servings_ratio(3) == 3

    def test_referenced_recipe_ids_in_step_order(self):
        """Test referenced IDs keep step order and duplicates."""
        recipe = Recipe(
            title="Menu",
            servings=2,
            steps=[
                RecipeStep(1, "Start", referenced_recipe_id=7),
                RecipeStep(2, "Plain step"),
                RecipeStep(3, "Again", referenced_recipe_id=7),
                RecipeStep(4, "Other", referenced_recipe_id=3),
            ],
        )

        assert recipe.referenced_recipe_ids() == [7, 7, 3]

    def test_non_positive_references_ignored(self):
        """Test references to ID 0 or below are not real recipes."""
        recipe = Recipe(
            title="Menu",
            servings=2,
            steps=[
                RecipeStep(1, "Zero", referenced_recipe_id=0),
                RecipeStep(2, "Negative", referenced_recipe_id=-4),
            ],
        )

        assert recipe.referenced_recipe_ids() == []

    def test_round_trip_keeps_lines_and_steps(self):
        """Test to_dict/from_dict preserves nested data."""
        flour = Ingredient(id=1, name="Flour", category="pantry")
        recipe = Recipe(
            id=5,
            title="Bread",
            servings=2,
            author_id=9,
            ingredients=[RecipeIngredient(1, 500, "g", notes="sifted", ingredient=flour)],
            steps=[RecipeStep(1, "Knead", duration=10, referenced_recipe_id=3)],
        )

        restored = Recipe.from_dict(recipe.to_dict())

        assert restored.id == 5
        assert restored.author_id == 9
        assert restored.ingredients[0].name == "Flour"
        assert restored.ingredients[0].notes == "sifted"
        assert restored.steps[0].referenced_recipe_id == 3
        assert restored.created_at == recipe.created_at


class TestRecipeIngredient:
    """Test RecipeIngredient."""

    def test_name_without_loaded_ingredient(self):
        """Test fallback name and category when the ingredient is not loaded."""
        line = RecipeIngredient(12, 1, "unit")

        assert line.name == "ingredient #12"
        assert line.category == "other"


class TestMealPlan:
    """Test MealPlan validation and serialization."""

    def test_invalid_meal_type(self):
        """Test unknown meal slot is rejected."""
        with pytest.raises(ValueError):
            MealPlan(user_id=1, recipe_id=1, planned_date="2025-01-06", meal_type="brunch")

    def test_summary_uses_recipe_title(self):
        """Test summary with and without embedded recipe."""
        plan = MealPlan(user_id=1, recipe_id=3, planned_date="2025-01-06", servings=2)
        assert plan.get_summary() == "2025-01-06 - Dinner: recipe #3 (serves 2)"

        plan.recipe = Recipe(id=3, title="Lasagne", servings=4)
        assert plan.get_summary() == "2025-01-06 - Dinner: Lasagne (serves 2)"

    def test_round_trip(self):
        """Test to_dict/from_dict with an embedded recipe."""
        plan = MealPlan(
            id=4,
            user_id=1,
            recipe_id=3,
            planned_date="2025-01-06",
            meal_type="lunch",
            servings=3,
            notes="Leftovers",
            recipe=Recipe(id=3, title="Soup", servings=2),
        )

        restored = MealPlan.from_dict(plan.to_dict())

        assert restored.id == 4
        assert restored.meal_type == "lunch"
        assert restored.notes == "Leftovers"
        assert restored.recipe.title == "Soup"
        assert restored.completed_at is None


class TestShoppingListItem:
    """Test ShoppingListItem contribution tracking."""

    def test_add_contributions(self):
        """Test total follows contributions."""
        item = ShoppingListItem(ingredient_id=1, ingredient_name="Flour", unit="g")

        item.add_contribution(contribution("Lasagne", 200))
        item.add_contribution(contribution("Bechamel", 25, recipe_id=2))

        assert item.total_quantity == 225
        assert len(item.contributions) == 2

    def test_recipe_sources_are_distinct(self):
        """Test the same recipe on two days is listed once."""
        item = ShoppingListItem(ingredient_id=1, ingredient_name="Flour", unit="g")
        item.add_contribution(contribution("Bread", 100, date="2025-01-06"))
        item.add_contribution(contribution("Cake", 50, recipe_id=2))
        item.add_contribution(contribution("Bread", 100, date="2025-01-08"))

        assert item.recipe_sources == ["Bread", "Cake"]

    @pytest.mark.parametrize(
        "quantity,unit,expected",
        [
            (200.0, "g", "200 g"),
            (1.5, "cups", "1.5 cups"),
            (0.3333333, "l", "0.33 l"),
            (4.0, "", "4"),
        ],
    )
    def test_format_quantity(self, quantity, unit, expected):
        """Test display of whole and fractional totals."""
        item = ShoppingListItem(
            ingredient_id=1, ingredient_name="X", unit=unit, total_quantity=quantity
        )

        assert item.format_quantity() == expected


class TestWeeklyShoppingList:
    """Test WeeklyShoppingList lookups and grouping."""

    def make_list(self):
        return WeeklyShoppingList(
            start_date="2025-01-06",
            end_date="2025-01-12",
            items=[
                ShoppingListItem(3, "tomato", "g", category="produce", total_quantity=400),
                ShoppingListItem(1, "Milk", "ml", category="dairy", total_quantity=250),
                ShoppingListItem(2, "Basil", "g", category="produce", total_quantity=5),
                ShoppingListItem(4, "Butter", "g", category="dairy", total_quantity=25),
            ],
            total_recipe_count=2,
        )

    def test_get_item(self):
        """Test lookup by ingredient ID."""
        shopping_list = self.make_list()

        assert shopping_list.get_item(2).ingredient_name == "Basil"
        assert shopping_list.get_item(99) is None

    def test_by_category_sorted(self):
        """Test categories and names are sorted for display."""
        grouped = self.make_list().by_category()

        assert list(grouped) == ["dairy", "produce"]
        assert [i.ingredient_name for i in grouped["dairy"]] == ["Butter", "Milk"]
        assert [i.ingredient_name for i in grouped["produce"]] == ["Basil", "tomato"]

    def test_round_trip(self):
        """Test to_dict/from_dict with contributions."""
        shopping_list = self.make_list()
        shopping_list.items[0].contributions.append(contribution("Lasagne", 400))

        restored = WeeklyShoppingList.from_dict(shopping_list.to_dict())

        assert restored.to_dict() == shopping_list.to_dict()
        assert restored.items[0].contributions[0].recipe_name == "Lasagne"

    def test_summary(self):
        """Test summary counts items and recipes."""
        assert self.make_list().get_summary() == (
            "Shopping list: 2025-01-06 to 2025-01-12 (4 items from 2 recipes)"
        )
