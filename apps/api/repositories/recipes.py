"""
Recipe repository for CRUD operations with user isolation.
Writes are flushed, never committed; the calling service owns the transaction.
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from db.models import Ingredient, Recipe, RecipeIngredient


class RecipeRepository:
    """Repository for Recipe CRUD operations."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def create(self, user_id: UUID, name: str, ingredients: Dict[int, int]) -> Recipe:
        """
        Create a new recipe.

        Args:
            user_id: User UUID
            name: Recipe name
            ingredients: Mapping of ingredient ID to quantity

        Returns:
            Created Recipe object
        """
        recipe = Recipe(
            user_id=user_id,
            name=name,
            ingredients=[
                RecipeIngredient(ingredient_id=ingredient_id, quantity=quantity)
                for ingredient_id, quantity in ingredients.items()
            ],
        )
        self.db.add(recipe)
        self.db.flush()
        self.db.refresh(recipe)
        return recipe

    def get_by_id(self, user_id: UUID, recipe_id: int) -> Optional[Recipe]:
        """
        Get recipe by ID with user isolation.

        Args:
            user_id: User UUID
            recipe_id: Recipe ID

        Returns:
            Recipe object or None
        """
        return self.db.execute(
            select(Recipe)
            .options(selectinload(Recipe.ingredients))
            .where(Recipe.id == recipe_id, Recipe.user_id == user_id)
        ).scalar_one_or_none()

    def get_all(self, user_id: UUID) -> List[Tuple[Recipe, int]]:
        """
        Get all recipes for user with their ingredient counts.

        Args:
            user_id: User UUID

        Returns:
            List of (Recipe, ingredient count) tuples
        """
        stmt = (
            select(Recipe, func.count(RecipeIngredient.id))
            .outerjoin(RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id)
            .where(Recipe.user_id == user_id)
            .group_by(Recipe.id)
            .order_by(Recipe.id)
        )
        return [(recipe, count) for recipe, count in self.db.execute(stmt)]

    def get_ingredient_details(self, recipe_id: int) -> List[Tuple[Ingredient, int]]:
        """Get (Ingredient, quantity) pairs for a recipe in the owner's sort order."""
        stmt = (
            select(Ingredient, RecipeIngredient.quantity)
            .join(RecipeIngredient, RecipeIngredient.ingredient_id == Ingredient.id)
            .where(RecipeIngredient.recipe_id == recipe_id)
            .order_by(Ingredient.sort)
        )
        return [(ingredient, quantity) for ingredient, quantity in self.db.execute(stmt)]

    def update(
        self,
        recipe: Recipe,
        name: Optional[str] = None,
        ingredients: Optional[Dict[int, int]] = None,
    ) -> Recipe:
        """
        Update a recipe's name and/or replace its ingredients.

        Args:
            recipe: Recipe to update
            name: New name
            ingredients: Mapping of ingredient ID to quantity replacing the current set

        Returns:
            Updated Recipe
        """
        if name is not None:
            recipe.name = name
        if ingredients is not None:
            recipe.ingredients.clear()
            self.db.flush()
            recipe.ingredients.extend(
                RecipeIngredient(ingredient_id=ingredient_id, quantity=quantity)
                for ingredient_id, quantity in ingredients.items()
            )
            recipe.updated_at = datetime.utcnow()
        self.db.flush()
        self.db.refresh(recipe)
        return recipe

    def delete(self, recipe: Recipe) -> None:
        """Delete a recipe and its ingredient quantities."""
        self.db.delete(recipe)
        self.db.flush()
