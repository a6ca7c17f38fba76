"""
Database interface for the Cooking Assistant.

Manages a single SQLite database (cooking.db) holding:
- ingredients: canonical ingredient catalogue
- recipes / recipe_ingredients: recipes, their steps (JSON) and quantities
- meal_plans: recipes planned by users for a date and meal slot
"""

import sqlite3
import json
import logging
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import DatabaseError, DuplicateError, NotFoundError
from .models import Ingredient, MealPlan, Recipe, RecipeIngredient, RecipeStep

logger = logging.getLogger(__name__)

# Orders meal slots within a day
MEAL_TYPE_ORDER = """
    CASE meal_type
        WHEN 'breakfast' THEN 0
        WHEN 'lunch' THEN 1
        WHEN 'dinner' THEN 2
        ELSE 3
    END
"""


class DatabaseInterface:
    """Interface for interacting with the SQLite database."""

    def __init__(self, db_dir: str = "data"):
        """
        Initialize database interface.

        Args:
            db_dir: Directory containing the database file
        """
        self.db_dir = Path(db_dir)
        self.db_dir.mkdir(parents=True, exist_ok=True)

        self.db_path = self.db_dir / "cooking.db"

        self._init_database()

    @contextmanager
    def _connect(self, operation: str) -> Iterator[sqlite3.Connection]:
        """
        Open a connection for one operation.

        Commits on success, rolls back and raises DatabaseError on sqlite
        failures. The connection is always closed.
        """
        conn = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            if conn is not None:
                conn.rollback()
            logger.error(f"Database error during {operation}: {e}")
            raise DatabaseError(operation, e) from e
        except Exception:
            if conn is not None:
                conn.rollback()
            raise
        finally:
            if conn is not None:
                conn.close()

    def _init_database(self):
        """Initialize database schema."""
        with self._connect("initialize schema") as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS ingredients (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    description TEXT,
                    category TEXT NOT NULL DEFAULT 'other',
                    created_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS recipes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT,
                    servings INTEGER NOT NULL DEFAULT 1,
                    steps_json TEXT NOT NULL DEFAULT '[]',
                    author_id INTEGER,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS recipe_ingredients (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    recipe_id INTEGER NOT NULL,
                    ingredient_id INTEGER NOT NULL,
                    position INTEGER NOT NULL DEFAULT 0,
                    quantity REAL NOT NULL DEFAULT 0,
                    unit TEXT NOT NULL DEFAULT '',
                    notes TEXT,
                    is_optional BOOLEAN DEFAULT 0,

                    FOREIGN KEY (recipe_id) REFERENCES recipes(id) ON DELETE CASCADE,
                    FOREIGN KEY (ingredient_id) REFERENCES ingredients(id)
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_recipe_ingredients_recipe
                ON recipe_ingredients(recipe_id)
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS meal_plans (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    recipe_id INTEGER NOT NULL,
                    planned_date TEXT NOT NULL,
                    meal_type TEXT NOT NULL DEFAULT 'dinner'
                        CHECK (meal_type IN ('breakfast', 'lunch', 'dinner', 'snack')),
                    servings INTEGER NOT NULL DEFAULT 1,
                    notes TEXT,
                    is_completed BOOLEAN DEFAULT 0,
                    completed_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,

                    FOREIGN KEY (recipe_id) REFERENCES recipes(id) ON DELETE CASCADE
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_meal_plans_user_date
                ON meal_plans(user_id, planned_date)
            """)

        logger.info(f"Database initialized at {self.db_path}")

    # ==================== Ingredient Operations ====================

    def create_ingredient(self, ingredient: Ingredient) -> int:
        """
        Save a new ingredient.

        Args:
            ingredient: Ingredient to save (id is assigned)

        Returns:
            ID of the new ingredient

        Raises:
            DuplicateError: If an ingredient with the same name exists
        """
        with self._connect("create ingredient") as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO ingredients (name, description, category, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        ingredient.name,
                        ingredient.description,
                        ingredient.category or "other",
                        datetime.now().isoformat(),
                    ),
                )
            except sqlite3.IntegrityError:
                raise DuplicateError("ingredient", "name", ingredient.name)
            ingredient.id = cursor.lastrowid

        logger.debug(f"Created ingredient {ingredient.id} ({ingredient.name})")
        return ingredient.id

    def get_ingredient(self, ingredient_id: int) -> Optional[Ingredient]:
        """Get an ingredient by ID, or None if it does not exist."""
        with self._connect("get ingredient") as conn:
            row = conn.execute(
                "SELECT * FROM ingredients WHERE id = ?", (ingredient_id,)
            ).fetchone()
            return self._row_to_ingredient(row) if row else None

    def list_ingredients(self, category: Optional[str] = None) -> List[Ingredient]:
        """
        List ingredients ordered by name.

        Args:
            category: Optional category filter

        Returns:
            List of Ingredient objects
        """
        with self._connect("list ingredients") as conn:
            if category:
                rows = conn.execute(
                    "SELECT * FROM ingredients WHERE category = ? ORDER BY name",
                    (category,),
                ).fetchall()
            else:
                rows = conn.execute("SELECT * FROM ingredients ORDER BY name").fetchall()
            return [self._row_to_ingredient(row) for row in rows]

    def _row_to_ingredient(self, row: sqlite3.Row) -> Ingredient:
        return Ingredient(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            category=row["category"],
        )

    # ==================== Recipe Operations ====================

    def create_recipe(self, recipe: Recipe) -> int:
        """
        Save a new recipe with its ingredient lines.

        Args:
            recipe: Recipe to save (id is assigned)

        Returns:
            ID of the new recipe

        Raises:
            NotFoundError: If an ingredient line references an unknown ingredient
        """
        with self._connect("create recipe") as conn:
            for line in recipe.ingredients:
                exists = conn.execute(
                    "SELECT 1 FROM ingredients WHERE id = ?", (line.ingredient_id,)
                ).fetchone()
                if not exists:
                    raise NotFoundError("ingredient", line.ingredient_id)

            now = datetime.now()
            cursor = conn.execute(
                """
                INSERT INTO recipes
                (title, description, servings, steps_json, author_id, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    recipe.title,
                    recipe.description,
                    recipe.servings,
                    json.dumps([step.to_dict() for step in recipe.steps]),
                    recipe.author_id,
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            recipe.id = cursor.lastrowid
            recipe.created_at = now
            recipe.updated_at = now

            conn.executemany(
                """
                INSERT INTO recipe_ingredients
                (recipe_id, ingredient_id, position, quantity, unit, notes, is_optional)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        recipe.id,
                        line.ingredient_id,
                        position,
                        line.quantity,
                        line.unit,
                        line.notes,
                        line.is_optional,
                    )
                    for position, line in enumerate(recipe.ingredients)
                ],
            )

        logger.info(f"Saved recipe {recipe.id} ({recipe.title}) with {len(recipe.ingredients)} ingredients")
        return recipe.id

    def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        """
        Get a specific recipe by ID.

        Args:
            recipe_id: Recipe ID

        Returns:
            Recipe with ingredients and steps loaded, or None if not found
        """
        with self._connect("get recipe") as conn:
            return self._load_recipe(conn, recipe_id)

    def delete_recipe(self, recipe_id: int) -> bool:
        """
        Delete a recipe.

        Its ingredient lines and the meal plans planning it are removed too.
        Steps of other recipes that reference it are left as they are.

        Returns:
            True if a recipe was deleted
        """
        with self._connect("delete recipe") as conn:
            cursor = conn.execute("DELETE FROM recipes WHERE id = ?", (recipe_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info(f"Deleted recipe {recipe_id}")
        return deleted

    def _load_recipe(self, conn: sqlite3.Connection, recipe_id: int) -> Optional[Recipe]:
        row = conn.execute("SELECT * FROM recipes WHERE id = ?", (recipe_id,)).fetchone()
        if not row:
            return None

        lines = conn.execute(
            """
            SELECT ri.ingredient_id, ri.quantity, ri.unit, ri.notes, ri.is_optional,
                   i.name, i.category, i.description
            FROM recipe_ingredients ri
            JOIN ingredients i ON i.id = ri.ingredient_id
            WHERE ri.recipe_id = ?
            ORDER BY ri.position, ri.id
            """,
            (recipe_id,),
        ).fetchall()

        return self._row_to_recipe(row, lines)

    def _row_to_recipe(self, row: sqlite3.Row, lines: List[sqlite3.Row]) -> Recipe:
        """Convert database rows to a Recipe object."""
        steps = []
        if row["steps_json"]:
            try:
                steps = [RecipeStep.from_dict(s) for s in json.loads(row["steps_json"])]
            except (json.JSONDecodeError, KeyError, TypeError) as e:
                logger.warning(f"Failed to parse steps for recipe {row['id']}: {e}")

        ingredients = [
            RecipeIngredient(
                ingredient_id=line["ingredient_id"],
                quantity=line["quantity"],
                unit=line["unit"],
                notes=line["notes"],
                is_optional=bool(line["is_optional"]),
                ingredient=Ingredient(
                    id=line["ingredient_id"],
                    name=line["name"],
                    category=line["category"],
                    description=line["description"],
                ),
            )
            for line in lines
        ]

        return Recipe(
            id=row["id"],
            title=row["title"],
            description=row["description"] or "",
            servings=row["servings"],
            author_id=row["author_id"],
            ingredients=ingredients,
            steps=steps,
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    # ==================== Meal Plan Operations ====================

    def create_meal_plan(self, meal_plan: MealPlan) -> int:
        """
        Save a new meal plan.

        Args:
            meal_plan: MealPlan to save (id is assigned)

        Returns:
            ID of the new meal plan

        Raises:
            NotFoundError: If the planned recipe does not exist
        """
        with self._connect("create meal plan") as conn:
            exists = conn.execute(
                "SELECT 1 FROM recipes WHERE id = ?", (meal_plan.recipe_id,)
            ).fetchone()
            if not exists:
                raise NotFoundError("recipe", meal_plan.recipe_id)

            now = datetime.now()
            cursor = conn.execute(
                """
                INSERT INTO meal_plans
                (user_id, recipe_id, planned_date, meal_type, servings, notes,
                 is_completed, completed_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    meal_plan.user_id,
                    meal_plan.recipe_id,
                    meal_plan.planned_date,
                    meal_plan.meal_type,
                    meal_plan.servings,
                    meal_plan.notes,
                    meal_plan.is_completed,
                    meal_plan.completed_at.isoformat() if meal_plan.completed_at else None,
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            meal_plan.id = cursor.lastrowid
            meal_plan.created_at = now
            meal_plan.updated_at = now

        logger.info(
            f"Saved meal plan {meal_plan.id} for user {meal_plan.user_id} "
            f"({meal_plan.planned_date} {meal_plan.meal_type})"
        )
        return meal_plan.id

    def get_meal_plan(self, plan_id: int, user_id: Optional[int] = None) -> Optional[MealPlan]:
        """
        Get a meal plan by ID.

        Args:
            plan_id: Meal plan ID
            user_id: Optional user ID filter (for security)

        Returns:
            MealPlan with its recipe embedded, or None
        """
        with self._connect("get meal plan") as conn:
            if user_id is not None:
                row = conn.execute(
                    "SELECT * FROM meal_plans WHERE id = ? AND user_id = ?", (plan_id, user_id)
                ).fetchone()
            else:
                row = conn.execute("SELECT * FROM meal_plans WHERE id = ?", (plan_id,)).fetchone()

            if not row:
                return None
            return self._rows_to_meal_plans(conn, [row])[0]

    def get_meal_plans_by_user(
        self, user_id: int, limit: int = 10, offset: int = 0
    ) -> Tuple[List[MealPlan], int]:
        """
        Get a user's meal plans ordered by date.

        Args:
            user_id: Owner of the plans
            limit: Maximum number of plans to return
            offset: Number of plans to skip

        Returns:
            Tuple of (meal plans, total number of plans for the user)
        """
        with self._connect("list meal plans by user") as conn:
            total = conn.execute(
                "SELECT COUNT(*) FROM meal_plans WHERE user_id = ?", (user_id,)
            ).fetchone()[0]

            rows = conn.execute(
                f"""
                SELECT * FROM meal_plans WHERE user_id = ?
                ORDER BY planned_date ASC, {MEAL_TYPE_ORDER}, id
                LIMIT ? OFFSET ?
                """,
                (user_id, limit, offset),
            ).fetchall()

            return self._rows_to_meal_plans(conn, rows), total

    def get_meal_plans_in_range(
        self, user_id: int, start_date: str, end_date: str
    ) -> List[MealPlan]:
        """
        Get a user's meal plans whose planned date falls in a date range.

        Args:
            user_id: Owner of the plans
            start_date: First day, ISO format (inclusive)
            end_date: Last day, ISO format (inclusive)

        Returns:
            MealPlans ordered by date then meal slot, recipes embedded
        """
        with self._connect("get meal plans by date range") as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM meal_plans
                WHERE user_id = ? AND planned_date >= ? AND planned_date <= ?
                ORDER BY planned_date ASC, {MEAL_TYPE_ORDER}, id
                """,
                (user_id, start_date, end_date),
            ).fetchall()

            return self._rows_to_meal_plans(conn, rows)

    def get_meal_plans_for_date(self, user_id: int, planned_date: str) -> List[MealPlan]:
        """Get a user's meal plans for a single day."""
        return self.get_meal_plans_in_range(user_id, planned_date, planned_date)

    def get_upcoming_meals(
        self, user_id: int, days: int = 7, today: Optional[date] = None
    ) -> List[MealPlan]:
        """
        Get meals planned in the next few days that are not completed yet.

        Args:
            user_id: Owner of the plans
            days: Number of days to look ahead
            today: Reference day (defaults to today)

        Returns:
            List of MealPlan objects ordered by date
        """
        today = today or date.today()
        end = today + timedelta(days=days)

        with self._connect("get upcoming meals") as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM meal_plans
                WHERE user_id = ? AND planned_date >= ? AND planned_date <= ?
                  AND is_completed = 0
                ORDER BY planned_date ASC, {MEAL_TYPE_ORDER}, id
                """,
                (user_id, today.isoformat(), end.isoformat()),
            ).fetchall()

            return self._rows_to_meal_plans(conn, rows)

    def update_meal_plan(self, meal_plan: MealPlan) -> bool:
        """
        Update an existing meal plan.

        Args:
            meal_plan: MealPlan with id set and new field values

        Returns:
            True if the plan was updated, False if it does not exist

        Raises:
            NotFoundError: If the new recipe does not exist
        """
        with self._connect("update meal plan") as conn:
            exists = conn.execute(
                "SELECT 1 FROM recipes WHERE id = ?", (meal_plan.recipe_id,)
            ).fetchone()
            if not exists:
                raise NotFoundError("recipe", meal_plan.recipe_id)

            meal_plan.updated_at = datetime.now()
            cursor = conn.execute(
                """
                UPDATE meal_plans
                SET recipe_id = ?, planned_date = ?, meal_type = ?, servings = ?,
                    notes = ?, is_completed = ?, completed_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    meal_plan.recipe_id,
                    meal_plan.planned_date,
                    meal_plan.meal_type,
                    meal_plan.servings,
                    meal_plan.notes,
                    meal_plan.is_completed,
                    meal_plan.completed_at.isoformat() if meal_plan.completed_at else None,
                    meal_plan.updated_at.isoformat(),
                    meal_plan.id,
                ),
            )
            updated = cursor.rowcount > 0

        logger.info(f"Updated meal plan {meal_plan.id}: {updated}")
        return updated

    def delete_meal_plan(self, plan_id: int) -> bool:
        """Delete a meal plan. Returns True if it existed."""
        with self._connect("delete meal plan") as conn:
            cursor = conn.execute("DELETE FROM meal_plans WHERE id = ?", (plan_id,))
            return cursor.rowcount > 0

    def mark_meal_plan_completed(self, plan_id: int) -> bool:
        """
        Mark a meal plan as cooked.

        Returns:
            True if the plan exists
        """
        now = datetime.now().isoformat()
        with self._connect("mark meal plan as completed") as conn:
            cursor = conn.execute(
                """
                UPDATE meal_plans SET is_completed = 1, completed_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (now, now, plan_id),
            )
            return cursor.rowcount > 0

    def _rows_to_meal_plans(
        self, conn: sqlite3.Connection, rows: List[sqlite3.Row]
    ) -> List[MealPlan]:
        """Convert meal plan rows, embedding each distinct recipe once."""
        recipes: Dict[int, Optional[Recipe]] = {}
        meal_plans = []

        for row in rows:
            recipe_id = row["recipe_id"]
            if recipe_id not in recipes:
                recipes[recipe_id] = self._load_recipe(conn, recipe_id)

            meal_plans.append(
                MealPlan(
                    id=row["id"],
                    user_id=row["user_id"],
                    recipe_id=recipe_id,
                    planned_date=row["planned_date"],
                    meal_type=row["meal_type"],
                    servings=row["servings"],
                    notes=row["notes"],
                    is_completed=bool(row["is_completed"]),
                    completed_at=(
                        datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None
                    ),
                    created_at=datetime.fromisoformat(row["created_at"]),
                    updated_at=datetime.fromisoformat(row["updated_at"]),
                    recipe=recipes[recipe_id],
                )
            )

        return meal_plans
