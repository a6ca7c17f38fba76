"""
Shared FastAPI dependencies.
"""
from typing import Optional

from fastapi import Header, HTTPException, Request

from ..data.database import DatabaseInterface
from ..shopping import ShoppingListAggregator


def get_db(request: Request) -> DatabaseInterface:
    """Dependency to get the database attached to the app."""
    return request.app.state.db


def get_aggregator(request: Request) -> ShoppingListAggregator:
    """Dependency to get a shopping list aggregator backed by the app database."""
    db = get_db(request)
    return ShoppingListAggregator(meal_plans=db, recipes=db)


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> int:
    """
    Identify the caller from the X-User-Id header.

    Token validation happens upstream; this only reads the resolved user ID.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="User not authenticated")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user ID")
    if user_id <= 0:
        raise HTTPException(status_code=401, detail="Invalid user ID")
    return user_id
