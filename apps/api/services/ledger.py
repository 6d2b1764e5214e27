"""
Quantity ledger for shopping lists.

Each shopping list holds at most one link row per ingredient, and under it at
most one quantity entry per source. A source is either the manual tag or a
recipe ID. Contributions from the same source are merged by adding, never by
overwriting. Every removal path hands its bookkeeping to the cleanup
coordinator so no link row outlives its last entry.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from db.models import QuantityEntry, ShoppingList
from db.session import transaction
from repositories.ingredients import IngredientRepository
from repositories.recipes import RecipeRepository
from repositories.shopping import ShoppingListRepository, ShoppingQuantityRepository
from services.cleanup import CleanupCoordinator
from services.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

MANUAL = "manual"

Source = Union[Literal["manual"], int]


def source_of(entry: QuantityEntry) -> Source:
    """Source tag of a stored entry."""
    return MANUAL if entry.recipe_id is None else entry.recipe_id


@dataclass
class ShoppingListSummary:
    """Shopping list with ingredient and checked counts."""

    id: int
    name: str
    ingredients: int
    checked: int


@dataclass
class ShoppingListItem:
    """One ingredient on a shopping list with its per-source entries."""

    id: int
    ingredient_id: int
    name: str
    unit: str
    checked: bool
    entries: List[QuantityEntry] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(entry.quantity for entry in self.entries)


@dataclass
class ShoppingListDetail:
    """Shopping list with its items in ingredient sort order."""

    id: int
    name: str
    items: List[ShoppingListItem]


class QuantityLedger:
    """Consolidates quantity contributions per shopping list, ingredient and source."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db
        self.lists = ShoppingListRepository(db)
        self.quantities = ShoppingQuantityRepository(db)
        self.ingredients = IngredientRepository(db)
        self.recipes = RecipeRepository(db)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _get_list(self, user_id: UUID, list_id: int) -> ShoppingList:
        shopping_list = self.lists.get_by_id(user_id, list_id)
        if shopping_list is None:
            raise NotFoundError("Shopping list", list_id)
        return shopping_list

    def _recipe_id(self, user_id: UUID, source: Source) -> Optional[int]:
        """Resolve a source to the stored recipe_id (None for manual), checking ownership."""
        if source == MANUAL:
            return None
        if isinstance(source, bool) or not isinstance(source, int):
            raise ValidationError(f"Invalid quantity source: {source!r}")
        if self.recipes.get_by_id(user_id, source) is None:
            raise NotFoundError("Recipe", source)
        return source

    @staticmethod
    def _check_amount(amount: int) -> None:
        if amount < 1:
            raise ValidationError("Quantity has to be at least 1")

    # ------------------------------------------------------------------
    # Contributions
    # ------------------------------------------------------------------

    def _add(
        self,
        user_id: UUID,
        list_id: int,
        ingredient_id: int,
        recipe_id: Optional[int],
        amount: int,
    ) -> QuantityEntry:
        """Merge one contribution. Caller owns the transaction and has validated list/source."""
        self._check_amount(amount)
        if self.ingredients.get_by_id(user_id, ingredient_id) is None:
            raise NotFoundError("Ingredient", ingredient_id)

        link = self.quantities.get_link(list_id, ingredient_id)
        if link is None:
            link = self.quantities.create_link(list_id, ingredient_id)

        entry = self.quantities.get_entry(link.id, recipe_id)
        if entry is None:
            return self.quantities.create_entry(link.id, recipe_id, amount)
        return self.quantities.set_quantity(entry, entry.quantity + amount)

    def add_quantity(
        self,
        user_id: UUID,
        list_id: int,
        ingredient_id: int,
        source: Source,
        amount: int,
    ) -> QuantityEntry:
        """
        Add a quantity of an ingredient to a shopping list.

        Creates the list's link row for the ingredient on first contribution.
        An existing entry for the same source is increased by `amount`.

        Args:
            user_id: User UUID
            list_id: ShoppingList ID
            ingredient_id: Ingredient ID
            source: "manual" or a recipe ID
            amount: Quantity to add, at least 1

        Returns:
            The entry holding the merged quantity
        """
        with transaction(self.db, "adding ingredient to shopping list"):
            self._get_list(user_id, list_id)
            recipe_id = self._recipe_id(user_id, source)
            entry = self._add(user_id, list_id, ingredient_id, recipe_id, amount)

        logger.info(
            f"Added {amount} of ingredient {ingredient_id} to shopping list {list_id} "
            f"from {source} (now {entry.quantity})",
            extra={"user_id": str(user_id), "shopping_list_id": list_id},
        )
        return entry

    def add_recipe(
        self,
        user_id: UUID,
        list_id: int,
        recipe_id: int,
        items: Optional[Dict[int, int]] = None,
    ) -> List[QuantityEntry]:
        """
        Add every ingredient of a recipe to a shopping list.

        Args:
            user_id: User UUID
            list_id: ShoppingList ID
            recipe_id: Recipe ID (the source of every contribution)
            items: Ingredient ID to quantity overrides; defaults to the recipe's
                stored ingredients

        Returns:
            Entries touched, one per ingredient
        """
        with transaction(self.db, "adding recipe to shopping list"):
            self._get_list(user_id, list_id)
            self._recipe_id(user_id, recipe_id)
            if items is None:
                items = {
                    ingredient.id: quantity
                    for ingredient, quantity in self.recipes.get_ingredient_details(recipe_id)
                }
            entries = [
                self._add(user_id, list_id, ingredient_id, recipe_id, quantity)
                for ingredient_id, quantity in items.items()
            ]

        logger.info(
            f"Added recipe {recipe_id} to shopping list {list_id} ({len(entries)} ingredients)",
            extra={"user_id": str(user_id), "shopping_list_id": list_id},
        )
        return entries

    def update_quantity(self, user_id: UUID, list_id: int, entry_id: int, amount: int) -> QuantityEntry:
        """Overwrite one entry's quantity (manual correction)."""
        with transaction(self.db, "updating shopping quantity"):
            self._check_amount(amount)
            self._get_list(user_id, list_id)
            entry = self.quantities.get_entry_in_list(list_id, entry_id)
            if entry is None:
                raise NotFoundError("Shopping quantity", entry_id)
            self.quantities.set_quantity(entry, amount)
        return entry

    def toggle_checked(self, user_id: UUID, list_id: int, ingredient_id: int) -> bool:
        """
        Flip the checked flag of a list ingredient.

        Returns:
            The new checked value
        """
        with transaction(self.db, "checking shopping ingredient"):
            self._get_list(user_id, list_id)
            checked = self.quantities.toggle_checked(list_id, ingredient_id)
            if checked is None:
                raise NotFoundError("Shopping ingredient", ingredient_id)
        return checked

    # ------------------------------------------------------------------
    # Removals
    # ------------------------------------------------------------------

    def _remove_entries(self, entries: List[QuantityEntry]) -> int:
        """
        Delete entries and any link row they leave empty.

        Counts siblings first (the entries being removed still count), then
        deletes the entries, then the now-empty parents.
        """
        if not entries:
            return 0
        link_ids = sorted({entry.shopping_list_ingredient_id for entry in entries})
        cleanup = CleanupCoordinator(self.quantities)
        cleanup.record(self.quantities.count_entries(link_ids))

        deleted = self.quantities.delete_entries([entry.id for entry in entries])
        for entry in entries:
            cleanup.release(entry.shopping_list_ingredient_id)

        cleanup.flush()
        return deleted

    def remove_quantity(self, user_id: UUID, list_id: int, entry_id: int) -> None:
        """Delete one entry; its link row goes too when it was the last one."""
        with transaction(self.db, "deleting shopping quantity"):
            self._get_list(user_id, list_id)
            entry = self.quantities.get_entry_in_list(list_id, entry_id)
            if entry is None:
                raise NotFoundError("Shopping quantity", entry_id)
            self._remove_entries([entry])

        logger.info(
            f"Removed quantity {entry_id} from shopping list {list_id}",
            extra={"user_id": str(user_id), "shopping_list_id": list_id},
        )

    def remove_all_for_source(self, user_id: UUID, list_id: int, source: Source) -> int:
        """
        Delete every entry a source contributed to a shopping list.

        Returns:
            Number of entries deleted
        """
        with transaction(self.db, "deleting shopping recipe"):
            self._get_list(user_id, list_id)
            recipe_id = self._recipe_id(user_id, source)
            entries = self.quantities.get_entries_for_source(list_id, recipe_id)
            deleted = self._remove_entries(entries)

        logger.info(
            f"Removed {deleted} quantities from {source} on shopping list {list_id}",
            extra={"user_id": str(user_id), "shopping_list_id": list_id},
        )
        return deleted

    def remove_recipe_everywhere(self, user_id: UUID, recipe_id: int) -> int:
        """
        Delete a recipe's entries from all of the user's shopping lists.

        Joins the caller's transaction instead of opening one, so a recipe
        delete and its ledger cleanup commit together.

        Returns:
            Number of entries deleted
        """
        deleted = 0
        for list_id in self.lists.get_ids(user_id):
            deleted += self._remove_entries(self.quantities.get_entries_for_source(list_id, recipe_id))
        return deleted

    def remove_ingredient(self, user_id: UUID, list_id: int, ingredient_id: int) -> None:
        """Delete a list ingredient together with all of its entries."""
        with transaction(self.db, "deleting shopping ingredient"):
            self._get_list(user_id, list_id)
            link = self.quantities.get_link(list_id, ingredient_id)
            if link is None:
                raise NotFoundError("Shopping ingredient", ingredient_id)
            entries = self.quantities.get_entries_for_links([link.id])[link.id]
            self.quantities.delete_entries([entry.id for entry in entries])
            self.quantities.delete_links([link.id])

    # ------------------------------------------------------------------
    # Shopping lists
    # ------------------------------------------------------------------

    def create_list(self, user_id: UUID, name: str) -> ShoppingList:
        """Create an empty shopping list."""
        with transaction(self.db, "creating shopping list"):
            shopping_list = self.lists.create(user_id, name)
        logger.info(f"Created shopping list {shopping_list.id}", extra={"user_id": str(user_id)})
        return shopping_list

    def rename_list(self, user_id: UUID, list_id: int, name: str) -> ShoppingList:
        """Rename a shopping list."""
        with transaction(self.db, "updating shopping list"):
            shopping_list = self.lists.rename(self._get_list(user_id, list_id), name)
        return shopping_list

    def delete_list(self, user_id: UUID, list_id: int) -> None:
        """Delete a shopping list with all its ingredients and entries."""
        with transaction(self.db, "deleting shopping list"):
            self.lists.delete(self._get_list(user_id, list_id))
        logger.info(f"Deleted shopping list {list_id}", extra={"user_id": str(user_id)})

    def list_summaries(self, user_id: UUID) -> List[ShoppingListSummary]:
        """Get the user's shopping lists with ingredient and checked counts."""
        return [
            ShoppingListSummary(id=sl.id, name=sl.name, ingredients=count, checked=checked)
            for sl, count, checked in self.lists.get_all_with_counts(user_id)
        ]

    def get_list(self, user_id: UUID, list_id: int) -> ShoppingListDetail:
        """Read a shopping list with every item, its entries and their total."""
        shopping_list = self._get_list(user_id, list_id)
        rows = self.quantities.get_links_with_ingredients(list_id)
        grouped = self.quantities.get_entries_for_links([link.id for link, _ in rows])
        items = [
            ShoppingListItem(
                id=link.id,
                ingredient_id=ingredient.id,
                name=ingredient.name,
                unit=ingredient.unit.name,
                checked=link.checked,
                entries=grouped[link.id],
            )
            for link, ingredient in rows
        ]
        return ShoppingListDetail(id=shopping_list.id, name=shopping_list.name, items=items)
