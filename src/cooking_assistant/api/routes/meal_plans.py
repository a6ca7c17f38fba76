"""
Meal plan routes for the FastAPI application.

Provides endpoints for:
- Creating, reading, updating and deleting meal plans
- Weekly, daily and upcoming views of a user's plans
- The aggregated shopping list for a date range
"""
import logging
import math
from datetime import date, datetime, timedelta
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ...data.database import DatabaseInterface
from ...data.errors import NotFoundError
from ...data.models import MEAL_TYPES, MealPlan
from ...shopping import ShoppingListAggregator, ShoppingListError
from ..dependencies import get_aggregator, get_current_user_id, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meal-plans")

MealType = Literal["breakfast", "lunch", "dinner", "snack"]


# Request models
class CreateMealPlanRequest(BaseModel):
    """Request body for planning a recipe."""
    recipe_id: int
    planned_date: date
    meal_type: MealType
    servings: int = Field(default=1, ge=1)
    notes: Optional[str] = Field(default=None, max_length=500)


class UpdateMealPlanRequest(BaseModel):
    """Request body for editing a meal plan. Omitted fields are unchanged."""
    recipe_id: Optional[int] = None
    planned_date: Optional[date] = None
    meal_type: Optional[MealType] = None
    servings: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = Field(default=None, max_length=500)
    is_completed: Optional[bool] = None


def _parse_date(value: Optional[str], name: str, default: Optional[date] = None) -> date:
    """Parse a YYYY-MM-DD query parameter, answering 400 when malformed."""
    if not value:
        if default is None:
            raise HTTPException(
                status_code=400,
                detail=f"{name} parameter is required (format: YYYY-MM-DD)",
            )
        return default
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{name} must be in format YYYY-MM-DD")


def _get_owned_plan(db: DatabaseInterface, plan_id: int, user_id: int) -> MealPlan:
    meal_plan = db.get_meal_plan(plan_id, user_id=user_id)
    if meal_plan is None:
        raise HTTPException(status_code=404, detail="Meal plan not found")
    return meal_plan


@router.post("", status_code=201)
def create_meal_plan(
    body: CreateMealPlanRequest,
    user_id: int = Depends(get_current_user_id),
    db: DatabaseInterface = Depends(get_db),
):
    """
    Plan a recipe for a date and meal slot.

    Returns:
        The created meal plan with its recipe
    """
    meal_plan = MealPlan(
        user_id=user_id,
        recipe_id=body.recipe_id,
        planned_date=body.planned_date.isoformat(),
        meal_type=body.meal_type,
        servings=body.servings,
        notes=body.notes,
    )
    try:
        plan_id = db.create_meal_plan(meal_plan)
    except NotFoundError:
        raise HTTPException(status_code=400, detail="The specified recipe does not exist")

    created = db.get_meal_plan(plan_id)
    return {
        "success": True,
        "message": "Meal plan created successfully",
        "data": created.to_dict(),
    }


@router.get("")
def list_meal_plans(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    db: DatabaseInterface = Depends(get_db),
):
    """List the caller's meal plans, oldest date first."""
    meal_plans, total = db.get_meal_plans_by_user(
        user_id, limit=limit, offset=(page - 1) * limit
    )
    total_pages = math.ceil(total / limit) if total else 0
    return {
        "success": True,
        "data": {
            "meal_plans": [mp.to_dict() for mp in meal_plans],
            "total_count": total,
            "current_page": page,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


@router.get("/weekly")
def get_weekly_meal_plan(
    date_param: Optional[str] = Query(default=None, alias="date"),
    user_id: int = Depends(get_current_user_id),
    db: DatabaseInterface = Depends(get_db),
):
    """
    Get the Monday to Sunday week containing a date (default: today).

    Returns:
        Meal plans grouped by ISO date
    """
    reference = _parse_date(date_param, "date", default=date.today())
    start_of_week = reference - timedelta(days=reference.weekday())
    end_of_week = start_of_week + timedelta(days=6)

    meal_plans = db.get_meal_plans_in_range(
        user_id, start_of_week.isoformat(), end_of_week.isoformat()
    )

    by_date: Dict[str, List[dict]] = {}
    for meal_plan in meal_plans:
        by_date.setdefault(meal_plan.planned_date, []).append(meal_plan.to_dict())

    return {
        "success": True,
        "data": {
            "start_date": start_of_week.isoformat(),
            "end_date": end_of_week.isoformat(),
            "meal_plans": by_date,
        },
    }


@router.get("/daily")
def get_daily_meal_plan(
    date_param: Optional[str] = Query(default=None, alias="date"),
    user_id: int = Depends(get_current_user_id),
    db: DatabaseInterface = Depends(get_db),
):
    """Get one day's meal plans grouped by meal type."""
    target = _parse_date(date_param, "date", default=date.today())
    meal_plans = db.get_meal_plans_for_date(user_id, target.isoformat())

    daily: Dict[str, object] = {"date": target.isoformat()}
    for meal_type in MEAL_TYPES:
        daily[meal_type] = [mp.to_dict() for mp in meal_plans if mp.meal_type == meal_type]

    return {"success": True, "data": daily}


@router.get("/upcoming")
def get_upcoming_meals(
    days: int = Query(default=7, ge=1, le=30),
    user_id: int = Depends(get_current_user_id),
    db: DatabaseInterface = Depends(get_db),
):
    """Get meals planned in the next few days that have not been cooked yet."""
    meal_plans = db.get_upcoming_meals(user_id, days=days)
    return {
        "success": True,
        "data": {
            "upcoming_meals": [mp.to_dict() for mp in meal_plans],
            "days_ahead": days,
            "total_count": len(meal_plans),
        },
    }


@router.get("/shopping-list")
def get_shopping_list(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    user_id: int = Depends(get_current_user_id),
    aggregator: ShoppingListAggregator = Depends(get_aggregator),
):
    """
    Get the shopping list for every meal planned between two dates.

    Args:
        start_date: First day (YYYY-MM-DD), required
        end_date: Last day (YYYY-MM-DD), defaults to start_date + 6 days

    Returns:
        Aggregated ingredients with the recipes and meals they come from
    """
    start = _parse_date(start_date, "start_date")
    end = _parse_date(end_date, "end_date", default=start + timedelta(days=6))
    if end < start:
        raise HTTPException(
            status_code=400, detail="end_date must be after or equal to start_date"
        )

    try:
        shopping_list = aggregator.build_shopping_list(
            user_id, start.isoformat(), end.isoformat()
        )
    except ShoppingListError as e:
        logger.exception(f"Error building shopping list for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate shopping list")

    return {"success": True, "data": shopping_list.to_dict()}


@router.get("/{plan_id}")
def get_meal_plan(
    plan_id: int,
    user_id: int = Depends(get_current_user_id),
    db: DatabaseInterface = Depends(get_db),
):
    """Get one of the caller's meal plans."""
    meal_plan = _get_owned_plan(db, plan_id, user_id)
    return {"success": True, "data": meal_plan.to_dict()}


@router.put("/{plan_id}")
def update_meal_plan(
    plan_id: int,
    body: UpdateMealPlanRequest,
    user_id: int = Depends(get_current_user_id),
    db: DatabaseInterface = Depends(get_db),
):
    """Update the given fields of one of the caller's meal plans."""
    meal_plan = _get_owned_plan(db, plan_id, user_id)

    if body.recipe_id is not None:
        meal_plan.recipe_id = body.recipe_id
    if body.planned_date is not None:
        meal_plan.planned_date = body.planned_date.isoformat()
    if body.meal_type is not None:
        meal_plan.meal_type = body.meal_type
    if body.servings is not None:
        meal_plan.servings = body.servings
    if body.notes is not None:
        meal_plan.notes = body.notes
    if body.is_completed is not None:
        meal_plan.is_completed = body.is_completed
        meal_plan.completed_at = datetime.now() if body.is_completed else None

    try:
        db.update_meal_plan(meal_plan)
    except NotFoundError:
        raise HTTPException(status_code=400, detail="The specified recipe does not exist")

    updated = db.get_meal_plan(plan_id)
    return {
        "success": True,
        "message": "Meal plan updated successfully",
        "data": updated.to_dict(),
    }


@router.delete("/{plan_id}")
def delete_meal_plan(
    plan_id: int,
    user_id: int = Depends(get_current_user_id),
    db: DatabaseInterface = Depends(get_db),
):
    """Delete one of the caller's meal plans."""
    _get_owned_plan(db, plan_id, user_id)
    db.delete_meal_plan(plan_id)
    return {"success": True, "message": "Meal plan deleted successfully"}


@router.patch("/{plan_id}/complete")
def mark_meal_plan_completed(
    plan_id: int,
    user_id: int = Depends(get_current_user_id),
    db: DatabaseInterface = Depends(get_db),
):
    """Mark one of the caller's meal plans as cooked."""
    _get_owned_plan(db, plan_id, user_id)
    db.mark_meal_plan_completed(plan_id)
    return {"success": True, "message": "Meal plan marked as completed"}
