"""
Recipe and ingredient routes for the FastAPI application.

Provides endpoints for:
- Creating and listing ingredients
- Creating, reading and deleting recipes (steps may reference other recipes)
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...data.database import DatabaseInterface
from ...data.errors import DuplicateError, NotFoundError
from ...data.models import Ingredient, Recipe, RecipeIngredient, RecipeStep
from ..dependencies import get_current_user_id, get_db

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateIngredientRequest(BaseModel):
    """Request body for adding an ingredient to the catalogue."""
    name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: str = Field(default="other", max_length=50)


class RecipeIngredientRequest(BaseModel):
    ingredient_id: int
    quantity: float = Field(ge=0)
    unit: str
    notes: Optional[str] = None
    is_optional: bool = False


class RecipeStepRequest(BaseModel):
    step_number: int = Field(ge=1)
    title: Optional[str] = Field(default=None, max_length=100)
    description: str = Field(max_length=1000)
    duration: Optional[int] = Field(default=None, ge=0)
    temperature: Optional[int] = Field(default=None, ge=0)
    tips: Optional[str] = Field(default=None, max_length=500)
    referenced_recipe_id: Optional[int] = None


class CreateRecipeRequest(BaseModel):
    """Request body for creating a recipe."""
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(default="", max_length=1000)
    servings: int = Field(default=1, ge=1)
    ingredients: List[RecipeIngredientRequest] = Field(default_factory=list)
    steps: List[RecipeStepRequest] = Field(min_length=1)


@router.post("/ingredients", status_code=201)
def create_ingredient(
    body: CreateIngredientRequest,
    db: DatabaseInterface = Depends(get_db),
):
    """Add an ingredient to the catalogue. Names are unique."""
    ingredient = Ingredient(
        name=body.name,
        description=body.description,
        category=body.category,
    )
    try:
        db.create_ingredient(ingredient)
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"success": True, "data": ingredient.to_dict()}


@router.get("/ingredients")
def list_ingredients(
    category: Optional[str] = None,
    db: DatabaseInterface = Depends(get_db),
):
    """List ingredients, optionally filtered by category."""
    ingredients = db.list_ingredients(category=category)
    return {"success": True, "data": [i.to_dict() for i in ingredients]}


@router.post("/recipes", status_code=201)
def create_recipe(
    body: CreateRecipeRequest,
    user_id: int = Depends(get_current_user_id),
    db: DatabaseInterface = Depends(get_db),
):
    """
    Create a recipe authored by the caller.

    Returns:
        The stored recipe with ingredient details
    """
    recipe = Recipe(
        title=body.title,
        description=body.description,
        servings=body.servings,
        author_id=user_id,
        ingredients=[
            RecipeIngredient(
                ingredient_id=line.ingredient_id,
                quantity=line.quantity,
                unit=line.unit,
                notes=line.notes,
                is_optional=line.is_optional,
            )
            for line in body.ingredients
        ],
        steps=[RecipeStep(**step.model_dump()) for step in body.steps],
    )

    try:
        recipe_id = db.create_recipe(recipe)
    except NotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "message": "Recipe created successfully",
        "data": db.get_recipe(recipe_id).to_dict(),
    }


@router.get("/recipes/{recipe_id}")
def get_recipe(
    recipe_id: int,
    db: DatabaseInterface = Depends(get_db),
):
    """Get a recipe by ID."""
    recipe = db.get_recipe(recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return {"success": True, "data": recipe.to_dict()}


@router.delete("/recipes/{recipe_id}")
def delete_recipe(
    recipe_id: int,
    user_id: int = Depends(get_current_user_id),
    db: DatabaseInterface = Depends(get_db),
):
    """Delete one of the caller's recipes, along with the meal plans using it."""
    recipe = db.get_recipe(recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404, detail="Recipe not found")
    if recipe.author_id != user_id:
        raise HTTPException(status_code=403, detail="Only the author can delete this recipe")

    db.delete_recipe(recipe_id)
    return {"success": True, "message": "Recipe deleted successfully"}
