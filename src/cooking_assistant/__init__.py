"""Cooking Assistant: recipes, meal planning and shopping lists."""

__version__ = "1.0.0"
