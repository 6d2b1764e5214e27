"""
Ingredient endpoints: CRUD plus repositioning within the user's ordering.
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from db.models import Ingredient
from db.session import get_session
from routers.common import get_user_id
from services.sequencer import IngredientSequencer

router = APIRouter(prefix="/ingredients", tags=["ingredients"])


# ============================================================================
# Pydantic Models
# ============================================================================


class IngredientCreateRequest(BaseModel):
    """Request body for creating an ingredient."""

    name: str = Field(..., min_length=1, description="Ingredient name")
    unit_id: int = Field(..., description="Unit ID")
    sort: Optional[int] = Field(None, description="Desired position; omitted appends")


class IngredientUpdateRequest(BaseModel):
    """Request body for updating an ingredient. Position is changed via /sort."""

    name: Optional[str] = Field(None, min_length=1)
    unit_id: Optional[int] = None


class IngredientSortRequest(BaseModel):
    """Request body for moving an ingredient."""

    id: int
    new_sort: int


class IngredientSortResponse(BaseModel):
    id: int
    sort: int


class IngredientResponse(BaseModel):
    """Ingredient with unit name and position."""

    id: int
    name: str
    unit_id: int
    unit: str
    sort: int

    @staticmethod
    def from_model(ingredient: Ingredient) -> "IngredientResponse":
        """Convert ORM model to response model."""
        return IngredientResponse(
            id=ingredient.id,
            name=ingredient.name,
            unit_id=ingredient.unit_id,
            unit=ingredient.unit.name,
            sort=ingredient.sort,
        )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("", response_model=List[IngredientResponse])
def list_ingredients(
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> List[IngredientResponse]:
    """Get all of the user's ingredients in sort order."""
    return [IngredientResponse.from_model(i) for i in IngredientSequencer(db).list(user_id)]


@router.post("", response_model=IngredientResponse, status_code=201)
def create_ingredient(
    payload: IngredientCreateRequest,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> IngredientResponse:
    """
    Create an ingredient.

    Ingredients at or after the assigned position shift down by one.
    """
    ingredient = IngredientSequencer(db).insert(user_id, payload.name, payload.unit_id, payload.sort)
    return IngredientResponse.from_model(ingredient)


@router.patch("/sort", response_model=IngredientSortResponse)
def sort_ingredient(
    payload: IngredientSortRequest,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> IngredientSortResponse:
    """Move an ingredient to a new position. Returns 400 when nothing would change."""
    new_sort = IngredientSequencer(db).move(user_id, payload.id, payload.new_sort)
    return IngredientSortResponse(id=payload.id, sort=new_sort)


@router.put("/{ingredient_id}", response_model=IngredientResponse)
def update_ingredient(
    ingredient_id: int,
    payload: IngredientUpdateRequest,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> IngredientResponse:
    """Update an ingredient's name and/or unit."""
    ingredient = IngredientSequencer(db).update(
        user_id, ingredient_id, name=payload.name, unit_id=payload.unit_id
    )
    return IngredientResponse.from_model(ingredient)


@router.delete("/{ingredient_id}", status_code=204)
def delete_ingredient(
    ingredient_id: int,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> None:
    """Delete an ingredient; later ingredients move up by one."""
    IngredientSequencer(db).delete(user_id, ingredient_id)
