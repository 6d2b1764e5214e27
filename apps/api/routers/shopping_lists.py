"""
Shopping list endpoints.

Quantities are tracked per source: manual additions, and one source per
recipe added to the list. Removing the last quantity of an ingredient removes
the ingredient from the list.
"""
from typing import List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from db.models import QuantityEntry
from db.session import get_session
from routers.common import get_user_id
from services.ledger import MANUAL, QuantityLedger, ShoppingListDetail, source_of

router = APIRouter(prefix="/shopping-lists", tags=["shopping-lists"])


# ============================================================================
# Pydantic Models
# ============================================================================


class ShoppingListRequest(BaseModel):
    name: str = Field(..., min_length=1)


class ShoppingListSummaryResponse(BaseModel):
    """Shopping list with ingredient and checked counts."""

    id: int
    name: str
    ingredients: int
    checked: int


class QuantityResponse(BaseModel):
    """Quantity contributed by one source."""

    id: int
    source: Union[int, str]
    quantity: int

    @staticmethod
    def from_model(entry: QuantityEntry) -> "QuantityResponse":
        return QuantityResponse(id=entry.id, source=source_of(entry), quantity=entry.quantity)


class ShoppingItemResponse(BaseModel):
    """Ingredient on a shopping list with its quantities and their total."""

    id: int
    ingredient_id: int
    name: str
    unit: str
    checked: bool
    total: int
    quantities: List[QuantityResponse]


class ShoppingListResponse(BaseModel):
    id: int
    name: str
    ingredients: List[ShoppingItemResponse]

    @staticmethod
    def from_detail(detail: ShoppingListDetail) -> "ShoppingListResponse":
        """Convert service result to response model."""
        return ShoppingListResponse(
            id=detail.id,
            name=detail.name,
            ingredients=[
                ShoppingItemResponse(
                    id=item.id,
                    ingredient_id=item.ingredient_id,
                    name=item.name,
                    unit=item.unit,
                    checked=item.checked,
                    total=item.total,
                    quantities=[QuantityResponse.from_model(e) for e in item.entries],
                )
                for item in detail.items
            ],
        )


class AddIngredientRequest(BaseModel):
    quantity: int = Field(..., description="Quantity, at least 1")


class RecipeIngredientQuantity(BaseModel):
    id: int
    quantity: int = Field(..., description="Quantity, at least 1")


class AddRecipeRequest(BaseModel):
    """Ingredients to add for a recipe; omitted uses the recipe's stored quantities."""

    ingredients: Optional[List[RecipeIngredientQuantity]] = None


class UpdateQuantityRequest(BaseModel):
    quantity: int = Field(..., description="Quantity, at least 1")


class CheckedResponse(BaseModel):
    ingredient_id: int
    checked: bool


class RemovedResponse(BaseModel):
    removed: int


# ============================================================================
# Shopping lists
# ============================================================================


@router.get("", response_model=List[ShoppingListSummaryResponse])
def list_shopping_lists(
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> List[ShoppingListSummaryResponse]:
    """Get all shopping lists for a user with ingredient and checked counts."""
    return [
        ShoppingListSummaryResponse(id=s.id, name=s.name, ingredients=s.ingredients, checked=s.checked)
        for s in QuantityLedger(db).list_summaries(user_id)
    ]


@router.post("", response_model=ShoppingListResponse, status_code=201)
def create_shopping_list(
    payload: ShoppingListRequest,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> ShoppingListResponse:
    """Create an empty shopping list."""
    ledger = QuantityLedger(db)
    shopping_list = ledger.create_list(user_id, payload.name)
    return ShoppingListResponse.from_detail(ledger.get_list(user_id, shopping_list.id))


@router.get("/{list_id}", response_model=ShoppingListResponse)
def get_shopping_list(
    list_id: int,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> ShoppingListResponse:
    """Get a shopping list with all its ingredients and quantities."""
    return ShoppingListResponse.from_detail(QuantityLedger(db).get_list(user_id, list_id))


@router.put("/{list_id}", response_model=ShoppingListResponse)
def rename_shopping_list(
    list_id: int,
    payload: ShoppingListRequest,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> ShoppingListResponse:
    """Rename a shopping list."""
    ledger = QuantityLedger(db)
    ledger.rename_list(user_id, list_id, payload.name)
    return ShoppingListResponse.from_detail(ledger.get_list(user_id, list_id))


@router.delete("/{list_id}", status_code=204)
def delete_shopping_list(
    list_id: int,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> None:
    """Delete a shopping list."""
    QuantityLedger(db).delete_list(user_id, list_id)


# ============================================================================
# Ingredients
# ============================================================================


@router.post("/{list_id}/ingredients/{ingredient_id}", response_model=QuantityResponse, status_code=201)
def add_ingredient(
    list_id: int,
    ingredient_id: int,
    payload: AddIngredientRequest,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> QuantityResponse:
    """Add a manual quantity of an ingredient; adds to any earlier manual quantity."""
    entry = QuantityLedger(db).add_quantity(user_id, list_id, ingredient_id, MANUAL, payload.quantity)
    return QuantityResponse.from_model(entry)


@router.patch("/{list_id}/ingredients/{ingredient_id}/check", response_model=CheckedResponse)
def check_ingredient(
    list_id: int,
    ingredient_id: int,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> CheckedResponse:
    """Toggle the checked flag of a shopping list ingredient."""
    checked = QuantityLedger(db).toggle_checked(user_id, list_id, ingredient_id)
    return CheckedResponse(ingredient_id=ingredient_id, checked=checked)


@router.delete("/{list_id}/ingredients/{ingredient_id}", status_code=204)
def delete_ingredient(
    list_id: int,
    ingredient_id: int,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> None:
    """Remove an ingredient and all of its quantities from a shopping list."""
    QuantityLedger(db).remove_ingredient(user_id, list_id, ingredient_id)


# ============================================================================
# Recipes
# ============================================================================


@router.post("/{list_id}/recipes/{recipe_id}", response_model=List[QuantityResponse], status_code=201)
def add_recipe(
    list_id: int,
    recipe_id: int,
    payload: Optional[AddRecipeRequest] = None,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> List[QuantityResponse]:
    """Add a recipe's ingredients to a shopping list."""
    items = None
    if payload is not None and payload.ingredients is not None:
        items = {}
        for item in payload.ingredients:
            items[item.id] = items.get(item.id, 0) + item.quantity
    entries = QuantityLedger(db).add_recipe(user_id, list_id, recipe_id, items)
    return [QuantityResponse.from_model(entry) for entry in entries]


@router.delete("/{list_id}/recipes/{recipe_id}", response_model=RemovedResponse)
def delete_recipe(
    list_id: int,
    recipe_id: int,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> RemovedResponse:
    """Remove every quantity a recipe contributed to a shopping list."""
    removed = QuantityLedger(db).remove_all_for_source(user_id, list_id, recipe_id)
    return RemovedResponse(removed=removed)


# ============================================================================
# Quantities
# ============================================================================


@router.put("/{list_id}/quantities/{entry_id}", response_model=QuantityResponse)
def update_quantity(
    list_id: int,
    entry_id: int,
    payload: UpdateQuantityRequest,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> QuantityResponse:
    """Overwrite a single quantity."""
    entry = QuantityLedger(db).update_quantity(user_id, list_id, entry_id, payload.quantity)
    return QuantityResponse.from_model(entry)


@router.delete("/{list_id}/quantities/{entry_id}", status_code=204)
def delete_quantity(
    list_id: int,
    entry_id: int,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> None:
    """Delete a single quantity; the ingredient leaves the list with its last quantity."""
    QuantityLedger(db).remove_quantity(user_id, list_id, entry_id)
