"""
Data models for the Cooking Assistant.

These models define the core entities used throughout the system:
- Ingredient / RecipeIngredient: canonical ingredients and per-recipe quantities
- Recipe / RecipeStep: recipes whose steps may reference other recipes
- MealPlan: a recipe planned for a date and meal slot
- WeeklyShoppingList: aggregated shopping list with per-source contributions
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Dict

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")


@dataclass
class Ingredient:
    """Canonical ingredient referenced by recipes."""

    name: str
    category: str = "other"  # Shopping category (e.g., "produce", "dairy")
    description: Optional[str] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Ingredient":
        """Create Ingredient from dictionary."""
        return cls(
            id=data.get("id"),
            name=data["name"],
            category=data.get("category") or "other",
            description=data.get("description"),
        )


@dataclass
class RecipeIngredient:
    """Quantity of one ingredient used by a recipe."""

    ingredient_id: int
    quantity: float
    unit: str
    is_optional: bool = False
    notes: Optional[str] = None
    ingredient: Optional[Ingredient] = None  # Loaded with the recipe

    @property
    def name(self) -> str:
        if self.ingredient is not None:
            return self.ingredient.name
        return f"ingredient #{self.ingredient_id}"

    @property
    def category(self) -> str:
        if self.ingredient is not None:
            return self.ingredient.category
        return "other"

    def to_dict(self) -> Dict:
        data = {
            "ingredient_id": self.ingredient_id,
            "quantity": self.quantity,
            "unit": self.unit,
            "is_optional": self.is_optional,
            "notes": self.notes,
        }
        if self.ingredient is not None:
            data["ingredient"] = self.ingredient.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "RecipeIngredient":
        ingredient = None
        if data.get("ingredient"):
            ingredient = Ingredient.from_dict(data["ingredient"])
        return cls(
            ingredient_id=data["ingredient_id"],
            quantity=float(data.get("quantity") or 0.0),
            unit=data.get("unit", ""),
            is_optional=bool(data.get("is_optional", False)),
            notes=data.get("notes"),
            ingredient=ingredient,
        )


@dataclass
class RecipeStep:
    """One instruction step.

    A step may point at another recipe (a sauce, a dough...) through
    ``referenced_recipe_id``; that recipe's ingredients are needed too.
    """

    step_number: int
    description: str
    title: Optional[str] = None
    duration: Optional[int] = None  # Minutes
    temperature: Optional[int] = None  # Degrees Celsius
    tips: Optional[str] = None
    referenced_recipe_id: Optional[int] = None

    def to_dict(self) -> Dict:
        return {
            "step_number": self.step_number,
            "title": self.title,
            "description": self.description,
            "duration": self.duration,
            "temperature": self.temperature,
            "tips": self.tips,
            "referenced_recipe_id": self.referenced_recipe_id,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "RecipeStep":
        return cls(
            step_number=data["step_number"],
            description=data.get("description", ""),
            title=data.get("title"),
            duration=data.get("duration"),
            temperature=data.get("temperature"),
            tips=data.get("tips"),
            referenced_recipe_id=data.get("referenced_recipe_id"),
        )


@dataclass
class Recipe:
    """Recipe with ordered ingredient lines and steps."""

    title: str
    servings: int
    ingredients: List[RecipeIngredient] = field(default_factory=list)
    steps: List[RecipeStep] = field(default_factory=list)
    description: str = ""
    author_id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    id: Optional[int] = None

    @property
    def effective_servings(self) -> int:
        """Baseline servings used for scaling. Non-positive values count as 1."""
        return self.servings if self.servings and self.servings > 0 else 1

    def referenced_recipe_ids(self) -> List[int]:
        """
        Get the recipe IDs referenced from this recipe's steps, in step order.

        Returns:
            List of referenced recipe IDs (duplicates kept)
        """
        return [
            step.referenced_recipe_id
            for step in self.steps
            if step.referenced_recipe_id is not None and step.referenced_recipe_id > 0
        ]

    def servings_ratio(self, planned_servings: int) -> float:
        """Scale factor turning this recipe's quantities into planned_servings."""
        return planned_servings / self.effective_servings

    def __str__(self) -> str:
        return f"{self.title} (serves {self.servings})"

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "servings": self.servings,
            "author_id": self.author_id,
            "ingredients": [ing.to_dict() for ing in self.ingredients],
            "steps": [step.to_dict() for step in self.steps],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Recipe":
        """Create Recipe from dictionary."""
        now = datetime.now().isoformat()
        return cls(
            id=data.get("id"),
            title=data["title"],
            description=data.get("description", ""),
            servings=data.get("servings", 1),
            author_id=data.get("author_id"),
            ingredients=[RecipeIngredient.from_dict(i) for i in data.get("ingredients", [])],
            steps=[RecipeStep.from_dict(s) for s in data.get("steps", [])],
            created_at=datetime.fromisoformat(data.get("created_at", now)),
            updated_at=datetime.fromisoformat(data.get("updated_at", now)),
        )


@dataclass
class MealPlan:
    """A recipe planned by a user for a specific date and meal slot."""

    user_id: int
    recipe_id: int
    planned_date: str  # ISO format: "2025-01-20"
    meal_type: str = "dinner"  # "breakfast", "lunch", "dinner", "snack"
    servings: int = 1  # May differ from recipe.servings
    notes: Optional[str] = None
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    id: Optional[int] = None
    recipe: Optional[Recipe] = None  # Embedded when loaded from the store

    def __post_init__(self):
        if self.meal_type not in MEAL_TYPES:
            raise ValueError(
                f"Invalid meal type '{self.meal_type}', expected one of {', '.join(MEAL_TYPES)}"
            )

    def get_summary(self) -> str:
        """
        Get a concise summary of the meal.

        Returns:
            Summary string with key details
        """
        name = self.recipe.title if self.recipe else f"recipe #{self.recipe_id}"
        return f"{self.planned_date} - {self.meal_type.title()}: {name} (serves {self.servings})"

    def __str__(self) -> str:
        return self.get_summary()

    def to_dict(self) -> Dict:
        """
        Serialize to dictionary.

        Returns:
            Dictionary with all fields, recipe as nested dict when loaded
        """
        return {
            "id": self.id,
            "user_id": self.user_id,
            "recipe_id": self.recipe_id,
            "planned_date": self.planned_date,
            "meal_type": self.meal_type,
            "servings": self.servings,
            "notes": self.notes,
            "is_completed": self.is_completed,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "recipe": self.recipe.to_dict() if self.recipe else None,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "MealPlan":
        """Create MealPlan from dictionary."""
        now = datetime.now().isoformat()
        completed_at = data.get("completed_at")
        return cls(
            id=data.get("id"),
            user_id=data["user_id"],
            recipe_id=data["recipe_id"],
            planned_date=data["planned_date"],
            meal_type=data.get("meal_type", "dinner"),
            servings=data.get("servings", 1),
            notes=data.get("notes"),
            is_completed=bool(data.get("is_completed", False)),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            created_at=datetime.fromisoformat(data.get("created_at", now)),
            updated_at=datetime.fromisoformat(data.get("updated_at", now)),
            recipe=Recipe.from_dict(data["recipe"]) if data.get("recipe") else None,
        )


@dataclass
class IngredientContribution:
    """Track a single recipe's contribution to a shopping list item."""

    recipe_id: int
    recipe_name: str
    quantity: float  # Already scaled by the meal's servings ratio
    date: str  # Planned date of the meal that needs it
    meal_type: str

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "recipe_id": self.recipe_id,
            "recipe_name": self.recipe_name,
            "quantity": self.quantity,
            "date": self.date,
            "meal_type": self.meal_type,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "IngredientContribution":
        """Create IngredientContribution from dictionary."""
        return cls(**data)


@dataclass
class ShoppingListItem:
    """Single ingredient on a shopping list with contribution tracking."""

    ingredient_id: int
    ingredient_name: str
    unit: str  # Unit of the first contribution, no conversion is done
    category: str = "other"
    total_quantity: float = 0.0
    contributions: List[IngredientContribution] = field(default_factory=list)

    def add_contribution(self, contribution: IngredientContribution):
        """
        Add a contribution from a recipe.

        Args:
            contribution: Scaled quantity and its provenance
        """
        self.contributions.append(contribution)
        self.total_quantity += contribution.quantity

    @property
    def recipe_sources(self) -> List[str]:
        """Distinct recipe names that need this ingredient, in first-seen order."""
        seen = []
        for c in self.contributions:
            if c.recipe_name not in seen:
                seen.append(c.recipe_name)
        return seen

    def format_quantity(self) -> str:
        """Display string such as "200 g" or "1.5 cups"."""
        if self.total_quantity == int(self.total_quantity):
            return f"{int(self.total_quantity)} {self.unit}".strip()
        return f"{self.total_quantity:.2f}".rstrip("0").rstrip(".") + f" {self.unit}".rstrip()

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "ingredient_id": self.ingredient_id,
            "ingredient_name": self.ingredient_name,
            "category": self.category,
            "total_quantity": self.total_quantity,
            "unit": self.unit,
            "contributions": [c.to_dict() for c in self.contributions],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ShoppingListItem":
        """Create ShoppingListItem from dictionary."""
        return cls(
            ingredient_id=data["ingredient_id"],
            ingredient_name=data["ingredient_name"],
            unit=data.get("unit", ""),
            category=data.get("category", "other"),
            total_quantity=data.get("total_quantity", 0.0),
            contributions=[
                IngredientContribution.from_dict(c) for c in data.get("contributions", [])
            ],
        )


@dataclass
class WeeklyShoppingList:
    """Shopping list aggregated over the meal plans of a date range."""

    start_date: str
    end_date: str
    items: List[ShoppingListItem] = field(default_factory=list)
    total_recipe_count: int = 0

    def get_item(self, ingredient_id: int) -> Optional[ShoppingListItem]:
        """
        Find an item by ingredient ID.

        Args:
            ingredient_id: Ingredient to look up

        Returns:
            ShoppingListItem if present, None otherwise
        """
        for item in self.items:
            if item.ingredient_id == ingredient_id:
                return item
        return None

    def by_category(self) -> Dict[str, List[ShoppingListItem]]:
        """
        Get items grouped by ingredient category for shopping.

        Returns:
            Dictionary mapping category to items sorted by name
            Example: {"produce": [ShoppingListItem(...), ...], "dairy": [...], ...}
        """
        sections: Dict[str, List[ShoppingListItem]] = {}
        for item in self.items:
            sections.setdefault(item.category, []).append(item)
        for items in sections.values():
            items.sort(key=lambda i: i.ingredient_name.lower())
        return dict(sorted(sections.items()))

    def get_summary(self) -> str:
        return (
            f"Shopping list: {self.start_date} to {self.end_date} "
            f"({len(self.items)} items from {self.total_recipe_count} recipes)"
        )

    def __str__(self) -> str:
        return self.get_summary()

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "items": [item.to_dict() for item in self.items],
            "total_recipe_count": self.total_recipe_count,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "WeeklyShoppingList":
        """Create WeeklyShoppingList from dictionary."""
        return cls(
            start_date=data["start_date"],
            end_date=data["end_date"],
            items=[ShoppingListItem.from_dict(i) for i in data.get("items", [])],
            total_recipe_count=data.get("total_recipe_count", 0),
        )
