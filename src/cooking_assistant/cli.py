#!/usr/bin/env python3
"""
Command line entry point for the Cooking Assistant.

    cooking-assistant serve --port 5000
    cooking-assistant shopping-list --user-id 1 --start 2025-01-06
"""

import argparse
import json
import logging
import sys
from datetime import date, timedelta
from typing import List, Optional

from .config import Settings, configure_logging
from .data.database import DatabaseInterface
from .data.errors import RepositoryError
from .data.models import WeeklyShoppingList
from .shopping import ShoppingListAggregator, ShoppingListError

logger = logging.getLogger(__name__)


def format_shopping_list(shopping_list: WeeklyShoppingList) -> str:
    """
    Render a shopping list as text, grouped by category.

    Args:
        shopping_list: Aggregated list

    Returns:
        Multi-line string ready to print
    """
    lines = [
        f"Shopping list {shopping_list.start_date} to {shopping_list.end_date}",
        f"{len(shopping_list.items)} items from {shopping_list.total_recipe_count} recipes",
    ]
    if not shopping_list.items:
        lines.append("")
        lines.append("Nothing planned in this range.")
        return "\n".join(lines)

    for category, items in shopping_list.by_category().items():
        lines.append("")
        lines.append(f"## {category.title()}")
        for item in items:
            sources = ", ".join(item.recipe_sources)
            lines.append(f"  - {item.ingredient_name}: {item.format_quantity()} ({sources})")

    return "\n".join(lines)


def cmd_shopping_list(args, settings: Settings) -> int:
    try:
        db = DatabaseInterface(db_dir=args.db_dir or settings.db_dir)
        aggregator = ShoppingListAggregator(meal_plans=db, recipes=db)
        start = date.fromisoformat(args.start)
        end = date.fromisoformat(args.end) if args.end else start + timedelta(days=6)
        shopping_list = aggregator.build_shopping_list(
            args.user_id, start.isoformat(), end.isoformat()
        )
    except (ValueError, RepositoryError, ShoppingListError) as e:
        logger.error(f"Could not build shopping list: {e}")
        return 1

    if args.json:
        print(json.dumps(shopping_list.to_dict(), indent=2))
    else:
        print(format_shopping_list(shopping_list))
    return 0


def cmd_serve(args, settings: Settings) -> int:
    import uvicorn

    uvicorn.run(
        "cooking_assistant.api.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level="debug" if settings.debug else "info",
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    settings = Settings()
    configure_logging(settings.debug)

    parser = argparse.ArgumentParser(description="Cooking Assistant")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    shop = subparsers.add_parser("shopping-list", help="Print a user's shopping list")
    shop.add_argument("--user-id", type=int, required=True)
    shop.add_argument("--start", type=str, required=True, help="First day (YYYY-MM-DD)")
    shop.add_argument("--end", type=str, default=None, help="Last day (default: start + 6 days)")
    shop.add_argument("--db-dir", type=str, default=None, help="Database directory")
    shop.add_argument("--json", action="store_true", help="Print JSON instead of text")

    args = parser.parse_args(argv)

    if args.command == "serve":
        return cmd_serve(args, settings)
    return cmd_shopping_list(args, settings)


if __name__ == "__main__":
    sys.exit(main())
