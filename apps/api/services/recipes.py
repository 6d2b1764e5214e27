"""
Recipe service: CRUD over recipes and their ingredient quantities.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from db.models import Ingredient, Recipe
from db.session import transaction
from repositories.ingredients import IngredientRepository
from repositories.recipes import RecipeRepository
from services.exceptions import NotFoundError, ValidationError
from services.ledger import QuantityLedger

logger = logging.getLogger(__name__)


@dataclass
class RecipeDetail:
    """Recipe with its ingredients in the owner's sort order."""

    recipe: Recipe
    ingredients: List[Tuple[Ingredient, int]]


class RecipeService:
    """Service for recipe CRUD with user isolation."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db
        self.repo = RecipeRepository(db)
        self.ingredient_repo = IngredientRepository(db)
        self.ledger = QuantityLedger(db)

    def _validated_quantities(self, user_id: UUID, items: Iterable[Tuple[int, int]]) -> Dict[int, int]:
        """Check ownership and quantities of (ingredient ID, quantity) pairs."""
        quantities: Dict[int, int] = {}
        for ingredient_id, quantity in items:
            if quantity < 1:
                raise ValidationError("Quantity has to be at least 1", ingredient_id)
            if ingredient_id in quantities:
                raise ValidationError(f"Ingredient {ingredient_id} is listed more than once", ingredient_id)
            quantities[ingredient_id] = quantity

        owned = {i.id for i in self.ingredient_repo.get_by_ids(user_id, list(quantities))}
        for ingredient_id in quantities:
            if ingredient_id not in owned:
                raise NotFoundError("Ingredient", ingredient_id)
        return quantities

    def _get(self, user_id: UUID, recipe_id: int) -> Recipe:
        recipe = self.repo.get_by_id(user_id, recipe_id)
        if recipe is None:
            raise NotFoundError("Recipe", recipe_id)
        return recipe

    def create(self, user_id: UUID, name: str, items: Iterable[Tuple[int, int]]) -> Recipe:
        """
        Create a recipe.

        Args:
            user_id: User UUID
            name: Recipe name
            items: (ingredient ID, quantity) pairs

        Returns:
            Created Recipe
        """
        with transaction(self.db, "creating recipe"):
            quantities = self._validated_quantities(user_id, items)
            recipe = self.repo.create(user_id, name, quantities)
        logger.info(f"Created recipe {recipe.id}", extra={"user_id": str(user_id)})
        return recipe

    def get(self, user_id: UUID, recipe_id: int) -> RecipeDetail:
        """Get a recipe with its ingredients."""
        recipe = self._get(user_id, recipe_id)
        return RecipeDetail(recipe=recipe, ingredients=self.repo.get_ingredient_details(recipe.id))

    def list(self, user_id: UUID) -> List[Tuple[Recipe, int]]:
        """Get the user's recipes with ingredient counts."""
        return self.repo.get_all(user_id)

    def update(
        self,
        user_id: UUID,
        recipe_id: int,
        name: Optional[str] = None,
        items: Optional[Iterable[Tuple[int, int]]] = None,
    ) -> Recipe:
        """Rename a recipe and/or replace its ingredient quantities."""
        with transaction(self.db, "updating recipe"):
            recipe = self._get(user_id, recipe_id)
            quantities = None if items is None else self._validated_quantities(user_id, items)
            self.repo.update(recipe, name=name, ingredients=quantities)
        return recipe

    def delete(self, user_id: UUID, recipe_id: int) -> None:
        """
        Delete a recipe.

        Its contributions are removed from every shopping list first, in the
        same transaction, so no list ingredient is left without quantities.
        """
        with transaction(self.db, "deleting recipe"):
            recipe = self._get(user_id, recipe_id)
            removed = self.ledger.remove_recipe_everywhere(user_id, recipe_id)
            self.repo.delete(recipe)
        logger.info(
            f"Deleted recipe {recipe_id} ({removed} shopping quantities removed)",
            extra={"user_id": str(user_id)},
        )
