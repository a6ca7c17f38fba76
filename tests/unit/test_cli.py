"""
Tests for the command line interface.
"""

import json

import pytest

from cooking_assistant.cli import format_shopping_list, main
from cooking_assistant.data.models import (
    IngredientContribution,
    ShoppingListItem,
    WeeklyShoppingList,
)


class TestFormatShoppingList:
    """Test text rendering of shopping lists."""

    def test_empty(self):
        """Test a list without items."""
        text = format_shopping_list(WeeklyShoppingList("2025-01-06", "2025-01-12"))

        assert text.splitlines() == [
            "Shopping list 2025-01-06 to 2025-01-12",
            "0 items from 0 recipes",
            "",
            "Nothing planned in this range.",
        ]

    def test_grouped_by_category(self):
        """Test sections and recipe sources."""
        flour = ShoppingListItem(1, "Flour", "g", category="pantry")
        flour.add_contribution(IngredientContribution(1, "Lasagne", 200, "2025-01-06", "dinner"))
        flour.add_contribution(IngredientContribution(2, "Bechamel", 25, "2025-01-06", "dinner"))
        milk = ShoppingListItem(2, "Milk", "ml", category="dairy")
        milk.add_contribution(IngredientContribution(2, "Bechamel", 250, "2025-01-06", "dinner"))
        shopping_list = WeeklyShoppingList("2025-01-06", "2025-01-12", [flour, milk], 2)

        text = format_shopping_list(shopping_list)

        assert text.splitlines()[2:] == [
            "",
            "## Dairy",
            "  - Milk: 250 ml (Bechamel)",
            "",
            "## Pantry",
            "  - Flour: 225 g (Lasagne, Bechamel)",
        ]


class TestShoppingListCommand:
    """Test the shopping-list subcommand against a real database."""

    @pytest.fixture
    def planned_db(self, db, sample_meal_plan):
        db.create_meal_plan(sample_meal_plan)
        return db

    def test_text_output(self, planned_db, temp_db_dir, capsys):
        """Test printing the grouped list."""
        code = main([
            "shopping-list", "--user-id", "1", "--start", "2025-01-06", "--db-dir", temp_db_dir,
        ])

        out = capsys.readouterr().out
        assert code == 0
        assert "Shopping list 2025-01-06 to 2025-01-12" in out
        assert "6 items from 2 recipes" in out
        assert "  - Flour: 225 g (Lasagne, Bechamel)" in out

    def test_json_output(self, planned_db, temp_db_dir, capsys):
        """Test --json prints the serialized list."""
        code = main([
            "shopping-list", "--user-id", "1", "--start", "2025-01-06",
            "--end", "2025-01-06", "--db-dir", temp_db_dir, "--json",
        ])

        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["end_date"] == "2025-01-06"
        assert data["total_recipe_count"] == 2

    @pytest.mark.parametrize(
        "dates",
        [
            ["--start", "not-a-date"],
            ["--start", "2025-01-12", "--end", "2025-01-06"],
        ],
    )
    def test_bad_dates(self, temp_db_dir, capsys, dates):
        """Test invalid ranges exit with status 1."""
        code = main(["shopping-list", "--user-id", "1", "--db-dir", temp_db_dir] + dates)

        assert code == 1
        assert capsys.readouterr().out == ""

    def test_subcommand_required(self):
        """Test argparse rejects a missing command."""
        with pytest.raises(SystemExit):
            main([])

    def test_unusable_database(self, tmp_path, capsys):
        """Test a database that cannot be opened exits with status 1."""
        (tmp_path / "cooking.db").mkdir()

        code = main([
            "shopping-list", "--user-id", "1", "--start", "2025-01-06",
            "--db-dir", str(tmp_path),
        ])

        assert code == 1
        assert capsys.readouterr().out == ""
