"""
Shopping list aggregation.

Builds a shopping list from a user's meal plans over a date range. Recipes
can reference other recipes from their steps (a sauce, a dough...), so each
planned recipe is expanded recursively into a flat list of ingredient
contributions, scaled by the meal's servings ratio and merged per ingredient.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Protocol, Set

from .data.errors import RepositoryError
from .data.models import (
    IngredientContribution,
    MealPlan,
    Recipe,
    RecipeIngredient,
    ShoppingListItem,
    WeeklyShoppingList,
)

logger = logging.getLogger(__name__)

# Nesting levels below a planned recipe that are still expanded
MAX_NESTED_RECIPE_DEPTH = 3


class MealPlanStore(Protocol):
    def get_meal_plans_in_range(
        self, user_id: int, start_date: str, end_date: str
    ) -> List[MealPlan]:
        ...


class RecipeStore(Protocol):
    def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        ...


class ShoppingListError(Exception):
    """The shopping list could not be built."""


@dataclass
class CollectedIngredient:
    """An ingredient line reached during expansion, with its source recipe."""

    line: RecipeIngredient
    source_recipe_id: int
    source_recipe_name: str
    ratio: float

    @property
    def quantity(self) -> float:
        return self.line.quantity * self.ratio


class ShoppingListAggregator:
    """Aggregate meal plan ingredients into a WeeklyShoppingList."""

    def __init__(
        self,
        meal_plans: MealPlanStore,
        recipes: RecipeStore,
        max_depth: int = MAX_NESTED_RECIPE_DEPTH,
    ):
        """
        Initialize the aggregator.

        Args:
            meal_plans: Store returning meal plans with their recipes embedded
            recipes: Store used to load nested recipes by ID
            max_depth: Deepest nesting level still expanded
        """
        self.meal_plans = meal_plans
        self.recipes = recipes
        self.max_depth = max_depth

    def build_shopping_list(
        self, user_id: int, start_date: str, end_date: str
    ) -> WeeklyShoppingList:
        """
        Build the shopping list for one user over [start_date, end_date].

        Args:
            user_id: Owner of the meal plans
            start_date: First day, ISO format (inclusive)
            end_date: Last day, ISO format (inclusive)

        Returns:
            WeeklyShoppingList with one item per ingredient

        Raises:
            ValueError: If a date is malformed or start_date > end_date
            ShoppingListError: If meal plans or a recipe could not be read
        """
        start = date.fromisoformat(start_date)
        end = date.fromisoformat(end_date)
        if end < start:
            raise ValueError(f"end_date {end_date} is before start_date {start_date}")

        try:
            meal_plans = self.meal_plans.get_meal_plans_in_range(
                user_id, start.isoformat(), end.isoformat()
            )
        except RepositoryError as e:
            raise ShoppingListError(
                f"Failed to load meal plans for user {user_id}"
            ) from e

        logger.info(
            f"Building shopping list for user {user_id} from {start_date} to {end_date} "
            f"({len(meal_plans)} meal plans)"
        )

        # State below lives for this call only
        cache: Dict[int, Recipe] = {}
        items: Dict[int, ShoppingListItem] = {}

        for meal_plan in meal_plans:
            recipe = self._planned_recipe(meal_plan, cache)
            ratio = recipe.servings_ratio(meal_plan.servings)

            collected: List[CollectedIngredient] = []
            self._collect(recipe, ratio, 0, set(), cache, collected)

            for entry in collected:
                self._merge(items, entry, meal_plan)

        return WeeklyShoppingList(
            start_date=start.isoformat(),
            end_date=end.isoformat(),
            items=list(items.values()),
            total_recipe_count=len(cache),
        )

    def _planned_recipe(self, meal_plan: MealPlan, cache: Dict[int, Recipe]) -> Recipe:
        """Get the top-level recipe of a meal plan. A missing recipe is fatal."""
        recipe = meal_plan.recipe
        if recipe is None:
            recipe = cache.get(meal_plan.recipe_id)
        if recipe is None:
            try:
                recipe = self.recipes.get_recipe(meal_plan.recipe_id)
            except RepositoryError as e:
                raise ShoppingListError(
                    f"Failed to load recipe {meal_plan.recipe_id} of meal plan {meal_plan.id}"
                ) from e
            if recipe is None:
                raise ShoppingListError(
                    f"Recipe {meal_plan.recipe_id} of meal plan {meal_plan.id} not found"
                )

        if recipe.servings is None or recipe.servings <= 0:
            logger.warning(f"Recipe {recipe.id} has {recipe.servings} servings, using 1")

        cache.setdefault(recipe.id, recipe)
        return recipe

    def _collect(
        self,
        recipe: Recipe,
        ratio: float,
        depth: int,
        path: Set[int],
        cache: Dict[int, Recipe],
        collected: List[CollectedIngredient],
    ):
        """
        Recursively collect a recipe's ingredients and those of the recipes
        its steps reference.

        A nested recipe is used in full once per reference, scaled by the
        same ratio as the recipe referencing it.

        Args:
            recipe: Recipe to expand
            ratio: Servings ratio of the planned meal
            depth: Nesting level, 0 for the planned recipe
            path: Recipe IDs on the current branch
            cache: Recipes loaded during this aggregation, by ID (also the recipe count)
            collected: Output list
        """
        if depth > self.max_depth:
            logger.debug(f"Max depth reached at recipe {recipe.id}, not expanding")
            return
        if recipe.id in path:
            logger.debug(f"Recipe cycle detected at recipe {recipe.id}, not expanding")
            return

        path.add(recipe.id)
        try:
            for line in recipe.ingredients:
                collected.append(
                    CollectedIngredient(
                        line=line,
                        source_recipe_id=recipe.id,
                        source_recipe_name=recipe.title,
                        ratio=ratio,
                    )
                )

            for referenced_id in recipe.referenced_recipe_ids():
                nested = self._nested_recipe(referenced_id, cache)
                if nested is None:
                    continue
                self._collect(nested, ratio, depth + 1, path, cache, collected)
        finally:
            path.discard(recipe.id)

    def _nested_recipe(self, recipe_id: int, cache: Dict[int, Recipe]) -> Optional[Recipe]:
        """Load a referenced recipe through the cache. Dangling references give None."""
        if recipe_id in cache:
            return cache[recipe_id]

        try:
            recipe = self.recipes.get_recipe(recipe_id)
        except RepositoryError as e:
            raise ShoppingListError(f"Failed to load referenced recipe {recipe_id}") from e

        if recipe is None:
            logger.warning(f"Referenced recipe {recipe_id} not found, skipping")
            return None

        cache[recipe_id] = recipe
        return recipe

    def _merge(
        self,
        items: Dict[int, ShoppingListItem],
        entry: CollectedIngredient,
        meal_plan: MealPlan,
    ):
        """Add one collected ingredient to the accumulator."""
        line = entry.line
        item = items.get(line.ingredient_id)
        if item is None:
            item = ShoppingListItem(
                ingredient_id=line.ingredient_id,
                ingredient_name=line.name,
                unit=line.unit,
                category=line.category,
            )
            items[line.ingredient_id] = item
        elif line.unit != item.unit:
            # Summed as-is, there is no unit conversion
            logger.warning(
                f"Ingredient {item.ingredient_name} uses '{line.unit}' in recipe "
                f"{entry.source_recipe_id} but '{item.unit}' elsewhere, summing anyway"
            )

        item.add_contribution(
            IngredientContribution(
                recipe_id=entry.source_recipe_id,
                recipe_name=entry.source_recipe_name,
                quantity=entry.quantity,
                date=meal_plan.planned_date,
                meal_type=meal_plan.meal_type,
            )
        )
