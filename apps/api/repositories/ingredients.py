"""
Ingredient repository for user ingredients and their sort positions.
Writes are flushed, never committed; the calling service owns the transaction.
"""
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from db.models import Ingredient


class IngredientRepository:
    """Repository for Ingredient reads and single-row writes."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def get_by_id(self, user_id: UUID, ingredient_id: int) -> Optional[Ingredient]:
        """
        Get ingredient by ID with user isolation.

        Args:
            user_id: User UUID
            ingredient_id: Ingredient ID

        Returns:
            Ingredient object or None
        """
        return self.db.execute(
            select(Ingredient).where(Ingredient.id == ingredient_id, Ingredient.user_id == user_id)
        ).scalar_one_or_none()

    def get_by_ids(self, user_id: UUID, ingredient_ids: List[int]) -> List[Ingredient]:
        """Get the user's ingredients among the given IDs."""
        if not ingredient_ids:
            return []
        return list(
            self.db.execute(
                select(Ingredient).where(
                    Ingredient.user_id == user_id, Ingredient.id.in_(ingredient_ids)
                )
            ).scalars()
        )

    def get_all(self, user_id: UUID) -> List[Ingredient]:
        """
        Get all ingredients for user in sort order.

        Args:
            user_id: User UUID

        Returns:
            List of Ingredient objects ordered by sort
        """
        return list(
            self.db.execute(
                select(Ingredient).where(Ingredient.user_id == user_id).order_by(Ingredient.sort)
            ).scalars()
        )

    def sort_values(self, user_id: UUID) -> List[int]:
        """Ordered read of every sort value owned by the user."""
        return list(
            self.db.execute(
                select(Ingredient.sort).where(Ingredient.user_id == user_id).order_by(Ingredient.sort)
            ).scalars()
        )

    def max_sort(self, user_id: UUID) -> int:
        """Highest sort value for the user, 0 when the user has no ingredients."""
        return self.db.execute(
            select(func.coalesce(func.max(Ingredient.sort), 0)).where(Ingredient.user_id == user_id)
        ).scalar_one()

    def positions_between(
        self,
        user_id: UUID,
        lower: int,
        upper: Optional[int] = None,
        descending: bool = False,
    ) -> List[Tuple[int, int]]:
        """
        Get (id, sort) pairs with lower <= sort < upper.

        Args:
            user_id: User UUID
            lower: Inclusive lower bound
            upper: Exclusive upper bound, None for no bound
            descending: Return highest sort first

        Returns:
            List of (ingredient id, sort) tuples
        """
        stmt = select(Ingredient.id, Ingredient.sort).where(
            Ingredient.user_id == user_id, Ingredient.sort >= lower
        )
        if upper is not None:
            stmt = stmt.where(Ingredient.sort < upper)
        stmt = stmt.order_by(Ingredient.sort.desc() if descending else Ingredient.sort)
        return [(row.id, row.sort) for row in self.db.execute(stmt)]

    def create(self, user_id: UUID, name: str, unit_id: int, sort: int) -> Ingredient:
        """
        Insert a new ingredient at the given sort position.

        Args:
            user_id: User UUID
            name: Ingredient name
            unit_id: Unit ID
            sort: Position already made free by the caller

        Returns:
            Created Ingredient object
        """
        ingredient = Ingredient(user_id=user_id, name=name, unit_id=unit_id, sort=sort)
        self.db.add(ingredient)
        self.db.flush()
        self.db.refresh(ingredient)
        return ingredient

    def set_sort(self, ingredient_id: int, sort: int) -> None:
        """Single-column update of one ingredient's sort."""
        self.db.execute(update(Ingredient).where(Ingredient.id == ingredient_id).values(sort=sort))

    def update(
        self,
        ingredient: Ingredient,
        name: Optional[str] = None,
        unit_id: Optional[int] = None,
    ) -> Ingredient:
        """Update name and/or unit of an ingredient. Never touches sort."""
        if name is not None:
            ingredient.name = name
        if unit_id is not None:
            ingredient.unit_id = unit_id
        self.db.flush()
        self.db.refresh(ingredient)
        return ingredient

    def delete(self, ingredient: Ingredient) -> None:
        """Delete an ingredient along with its recipe and shopping list rows."""
        self.db.delete(ingredient)
        self.db.flush()
