"""
Position sequencer for user ingredients.

Every user's ingredients carry a `sort` value, and for each user the set of
sort values is exactly {1..N}. Insert, move and delete renumber only the
contiguous range they affect, one row at a time and in an order that never
produces two rows with the same (user_id, sort).
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from db.models import Ingredient
from db.session import transaction
from repositories.ingredients import IngredientRepository
from repositories.units import UnitRepository
from services.exceptions import NotFoundError, NothingToSortError

logger = logging.getLogger(__name__)

# Slot outside 1..N used while a moved ingredient's neighbours shift
PARKING_SORT = 0


def clamp_insert_position(desired: Optional[int], current_max: int) -> int:
    """Position a new ingredient lands on: append when omitted, else clamped to 1..max+1."""
    if desired is None or desired > current_max + 1:
        return current_max + 1
    if desired < 1:
        return 1
    return desired


class IngredientSequencer:
    """Maintains a dense 1..N ordering of each user's ingredients."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db
        self.repo = IngredientRepository(db)
        self.unit_repo = UnitRepository(db)

    def list(self, user_id: UUID) -> List[Ingredient]:
        """Get the user's ingredients in sort order."""
        return self.repo.get_all(user_id)

    def get(self, user_id: UUID, ingredient_id: int) -> Ingredient:
        """Get one ingredient or raise NotFoundError."""
        ingredient = self.repo.get_by_id(user_id, ingredient_id)
        if ingredient is None:
            raise NotFoundError("Ingredient", ingredient_id)
        return ingredient

    def insert(
        self,
        user_id: UUID,
        name: str,
        unit_id: int,
        position: Optional[int] = None,
    ) -> Ingredient:
        """
        Create an ingredient at a position in the user's ordering.

        Args:
            user_id: User UUID
            name: Ingredient name
            unit_id: Unit ID
            position: Desired sort; omitted appends. Values below 1 clamp to 1,
                values past the end clamp to max + 1.

        Returns:
            Created Ingredient; its sort is the assigned position
        """
        with transaction(self.db, "creating ingredient"):
            if self.unit_repo.get_by_id(unit_id) is None:
                raise NotFoundError("Unit", unit_id)

            assigned = clamp_insert_position(position, self.repo.max_sort(user_id))

            # Highest first, so each +1 lands on a slot already vacated
            for ingredient_id, sort in self.repo.positions_between(user_id, assigned, descending=True):
                self.repo.set_sort(ingredient_id, sort + 1)

            ingredient = self.repo.create(user_id, name, unit_id, assigned)

        logger.info(
            f"Created ingredient {ingredient.id} at position {assigned}",
            extra={"user_id": str(user_id), "ingredient_id": ingredient.id},
        )
        return ingredient

    def move(self, user_id: UUID, ingredient_id: int, position: int) -> int:
        """
        Move an ingredient to a new position.

        `position` is expressed in the numbering before the move. Moving
        towards the end places the ingredient just before whatever currently
        holds `position`, so its final sort is `position - 1`.

        Args:
            user_id: User UUID
            ingredient_id: Ingredient ID
            position: Desired position

        Returns:
            The ingredient's new sort

        Raises:
            NotFoundError: Ingredient missing or owned by someone else
            NothingToSortError: The move would not change the order
        """
        with transaction(self.db, "sorting ingredient"):
            ingredient = self.get(user_id, ingredient_id)
            old = ingredient.sort
            current_max = self.repo.max_sort(user_id)

            desired = position
            if desired < 1:
                desired = 1
            elif desired > current_max + 1:
                if old == current_max:
                    raise NothingToSortError(ingredient_id)
                desired = current_max + 1

            if desired == old:
                raise NothingToSortError(ingredient_id)

            self.repo.set_sort(ingredient_id, PARKING_SORT)

            if desired < old:
                for other_id, sort in self.repo.positions_between(user_id, desired, old, descending=True):
                    self.repo.set_sort(other_id, sort + 1)
                new_sort = desired
            else:
                for other_id, sort in self.repo.positions_between(user_id, old + 1, desired):
                    self.repo.set_sort(other_id, sort - 1)
                new_sort = desired - 1

            self.repo.set_sort(ingredient_id, new_sort)

        logger.info(
            f"Moved ingredient {ingredient_id} from {old} to {new_sort}",
            extra={"user_id": str(user_id), "ingredient_id": ingredient_id},
        )
        return new_sort

    def update(
        self,
        user_id: UUID,
        ingredient_id: int,
        name: Optional[str] = None,
        unit_id: Optional[int] = None,
    ) -> Ingredient:
        """Rename an ingredient or change its unit. Position is unchanged."""
        with transaction(self.db, "updating ingredient"):
            ingredient = self.get(user_id, ingredient_id)
            if unit_id is not None and self.unit_repo.get_by_id(unit_id) is None:
                raise NotFoundError("Unit", unit_id)
            self.repo.update(ingredient, name=name, unit_id=unit_id)
        return ingredient

    def delete(self, user_id: UUID, ingredient_id: int) -> None:
        """
        Delete an ingredient and close the gap it leaves.

        Recipe quantities and shopping list rows for the ingredient go with it.
        """
        with transaction(self.db, "deleting ingredient"):
            ingredient = self.get(user_id, ingredient_id)
            deleted_sort = ingredient.sort
            self.repo.delete(ingredient)

            # Lowest first, so each -1 lands on a slot already vacated
            for other_id, sort in self.repo.positions_between(user_id, deleted_sort + 1):
                self.repo.set_sort(other_id, sort - 1)

        logger.info(
            f"Deleted ingredient {ingredient_id} from position {deleted_sort}",
            extra={"user_id": str(user_id), "ingredient_id": ingredient_id},
        )
