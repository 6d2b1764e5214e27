"""
Recipe CRUD endpoints.
"""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from db.session import get_session
from routers.common import get_user_id
from services.recipes import RecipeDetail, RecipeService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/recipes", tags=["recipes"])


class RecipeIngredientRequest(BaseModel):
    """Ingredient with quantity."""

    id: int
    quantity: int = Field(..., description="Quantity, at least 1")


class RecipeCreateRequest(BaseModel):
    """Request body for creating a recipe."""

    name: str = Field(..., min_length=1)
    ingredients: List[RecipeIngredientRequest] = []


class RecipeUpdateRequest(BaseModel):
    """Request body for updating a recipe. Ingredients, when given, replace the current set."""

    name: Optional[str] = Field(None, min_length=1)
    ingredients: Optional[List[RecipeIngredientRequest]] = None


class RecipeSummaryResponse(BaseModel):
    """Recipe listing row."""

    id: int
    name: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    ingredients: int


class RecipeIngredientResponse(BaseModel):
    id: int
    name: str
    unit: str
    quantity: int


class RecipeResponse(BaseModel):
    """Recipe with ingredients in the user's ingredient order."""

    id: int
    name: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    ingredients: List[RecipeIngredientResponse]

    @staticmethod
    def from_detail(detail: RecipeDetail) -> "RecipeResponse":
        """Convert service result to response model."""
        return RecipeResponse(
            id=detail.recipe.id,
            name=detail.recipe.name,
            created_at=detail.recipe.created_at,
            updated_at=detail.recipe.updated_at,
            ingredients=[
                RecipeIngredientResponse(
                    id=ingredient.id,
                    name=ingredient.name,
                    unit=ingredient.unit.name,
                    quantity=quantity,
                )
                for ingredient, quantity in detail.ingredients
            ],
        )


@router.get("", response_model=List[RecipeSummaryResponse])
def list_recipes(
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> List[RecipeSummaryResponse]:
    """Get all recipes for a user with ingredient counts."""
    return [
        RecipeSummaryResponse(
            id=recipe.id,
            name=recipe.name,
            created_at=recipe.created_at,
            updated_at=recipe.updated_at,
            ingredients=count,
        )
        for recipe, count in RecipeService(db).list(user_id)
    ]


@router.post("", response_model=RecipeResponse, status_code=201)
def create_recipe(
    payload: RecipeCreateRequest,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> RecipeResponse:
    """Create a recipe from owned ingredients."""
    service = RecipeService(db)
    recipe = service.create(
        user_id, payload.name, [(item.id, item.quantity) for item in payload.ingredients]
    )
    return RecipeResponse.from_detail(service.get(user_id, recipe.id))


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_recipe(
    recipe_id: int,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> RecipeResponse:
    """Get a recipe by ID."""
    return RecipeResponse.from_detail(RecipeService(db).get(user_id, recipe_id))


@router.put("/{recipe_id}", response_model=RecipeResponse)
def update_recipe(
    recipe_id: int,
    payload: RecipeUpdateRequest,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> RecipeResponse:
    """Rename a recipe and/or replace its ingredients."""
    service = RecipeService(db)
    items = None
    if payload.ingredients is not None:
        items = [(item.id, item.quantity) for item in payload.ingredients]
    service.update(user_id, recipe_id, name=payload.name, items=items)
    return RecipeResponse.from_detail(service.get(user_id, recipe_id))


@router.delete("/{recipe_id}", status_code=204)
def delete_recipe(
    recipe_id: int,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> None:
    """Delete a recipe and its contributions to the user's shopping lists."""
    RecipeService(db).delete(user_id, recipe_id)
    logger.debug(f"Recipe {recipe_id} deleted via API")
