"""
Shopping list repositories: lists, ingredient link rows and quantity entries.
Writes are flushed, never committed; the calling service owns the transaction.
"""
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.orm import Session

from db.models import Ingredient, QuantityEntry, ShoppingList, ShoppingListIngredient


class ShoppingListRepository:
    """Repository for ShoppingList CRUD operations."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def create(self, user_id: UUID, name: str) -> ShoppingList:
        """Create a new shopping list."""
        shopping_list = ShoppingList(user_id=user_id, name=name)
        self.db.add(shopping_list)
        self.db.flush()
        return shopping_list

    def get_by_id(self, user_id: UUID, list_id: int) -> Optional[ShoppingList]:
        """
        Get shopping list by ID with user isolation.

        Args:
            user_id: User UUID
            list_id: ShoppingList ID

        Returns:
            ShoppingList object or None
        """
        return self.db.execute(
            select(ShoppingList).where(ShoppingList.id == list_id, ShoppingList.user_id == user_id)
        ).scalar_one_or_none()

    def get_ids(self, user_id: UUID) -> List[int]:
        """Get every shopping list ID owned by the user."""
        return list(
            self.db.execute(
                select(ShoppingList.id).where(ShoppingList.user_id == user_id).order_by(ShoppingList.id)
            ).scalars()
        )

    def get_all_with_counts(self, user_id: UUID) -> List[Tuple[ShoppingList, int, int]]:
        """
        Get all shopping lists for user with ingredient and checked counts.

        Args:
            user_id: User UUID

        Returns:
            List of (ShoppingList, ingredient count, checked count) tuples
        """
        checked = func.coalesce(
            func.sum(case((ShoppingListIngredient.checked, 1), else_=0)), 0
        )
        stmt = (
            select(ShoppingList, func.count(ShoppingListIngredient.id), checked)
            .outerjoin(
                ShoppingListIngredient, ShoppingListIngredient.shopping_list_id == ShoppingList.id
            )
            .where(ShoppingList.user_id == user_id)
            .group_by(ShoppingList.id)
            .order_by(ShoppingList.id)
        )
        return [(row[0], row[1], row[2]) for row in self.db.execute(stmt)]

    def rename(self, shopping_list: ShoppingList, name: str) -> ShoppingList:
        """Rename a shopping list."""
        shopping_list.name = name
        self.db.flush()
        return shopping_list

    def delete(self, shopping_list: ShoppingList) -> None:
        """Delete a shopping list with its ingredients and quantities."""
        self.db.delete(shopping_list)
        self.db.flush()


class ShoppingQuantityRepository:
    """Repository for ShoppingListIngredient link rows and their QuantityEntry rows."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    # ------------------------------------------------------------------
    # Link rows
    # ------------------------------------------------------------------

    def get_link(self, list_id: int, ingredient_id: int) -> Optional[ShoppingListIngredient]:
        """Get the link row for (shopping list, ingredient)."""
        return self.db.execute(
            select(ShoppingListIngredient).where(
                ShoppingListIngredient.shopping_list_id == list_id,
                ShoppingListIngredient.ingredient_id == ingredient_id,
            )
        ).scalar_one_or_none()

    def create_link(self, list_id: int, ingredient_id: int) -> ShoppingListIngredient:
        """Insert an unchecked link row."""
        link = ShoppingListIngredient(shopping_list_id=list_id, ingredient_id=ingredient_id, checked=False)
        self.db.add(link)
        self.db.flush()
        return link

    def toggle_checked(self, list_id: int, ingredient_id: int) -> Optional[bool]:
        """
        Flip the checked flag of a link row.

        Args:
            list_id: ShoppingList ID
            ingredient_id: Ingredient ID

        Returns:
            New checked value, or None if the row does not exist
        """
        link = self.get_link(list_id, ingredient_id)
        if link is None:
            return None
        self.db.execute(
            update(ShoppingListIngredient)
            .where(ShoppingListIngredient.id == link.id)
            .values(checked=~ShoppingListIngredient.checked)
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(link)
        return link.checked

    def delete_links(self, link_ids: List[int]) -> int:
        """Predicate delete of link rows by ID. Returns rows deleted."""
        if not link_ids:
            return 0
        result = self.db.execute(
            delete(ShoppingListIngredient).where(ShoppingListIngredient.id.in_(link_ids))
        )
        return result.rowcount

    def get_links_with_ingredients(
        self, list_id: int
    ) -> List[Tuple[ShoppingListIngredient, Ingredient]]:
        """Get the list's link rows with their ingredients, in ingredient sort order."""
        stmt = (
            select(ShoppingListIngredient, Ingredient)
            .join(Ingredient, Ingredient.id == ShoppingListIngredient.ingredient_id)
            .where(ShoppingListIngredient.shopping_list_id == list_id)
            .order_by(Ingredient.sort)
        )
        return [(link, ingredient) for link, ingredient in self.db.execute(stmt)]

    # ------------------------------------------------------------------
    # Quantity entries
    # ------------------------------------------------------------------

    def get_entry(self, link_id: int, recipe_id: Optional[int]) -> Optional[QuantityEntry]:
        """
        Point read of the entry for (link row, source).

        Args:
            link_id: ShoppingListIngredient ID
            recipe_id: Recipe ID, or None for the manual source

        Returns:
            QuantityEntry or None
        """
        if recipe_id is None:
            source_clause = QuantityEntry.recipe_id.is_(None)
        else:
            source_clause = QuantityEntry.recipe_id == recipe_id
        return self.db.execute(
            select(QuantityEntry).where(
                QuantityEntry.shopping_list_ingredient_id == link_id, source_clause
            )
        ).scalar_one_or_none()

    def get_entry_in_list(self, list_id: int, entry_id: int) -> Optional[QuantityEntry]:
        """Get an entry by ID only if it belongs to the given shopping list."""
        return self.db.execute(
            select(QuantityEntry)
            .join(
                ShoppingListIngredient,
                ShoppingListIngredient.id == QuantityEntry.shopping_list_ingredient_id,
            )
            .where(QuantityEntry.id == entry_id, ShoppingListIngredient.shopping_list_id == list_id)
        ).scalar_one_or_none()

    def get_entries_for_source(self, list_id: int, recipe_id: Optional[int]) -> List[QuantityEntry]:
        """Get every entry a source (recipe ID, or None for manual) contributed to a shopping list."""
        if recipe_id is None:
            source_clause = QuantityEntry.recipe_id.is_(None)
        else:
            source_clause = QuantityEntry.recipe_id == recipe_id
        return list(
            self.db.execute(
                select(QuantityEntry)
                .join(
                    ShoppingListIngredient,
                    ShoppingListIngredient.id == QuantityEntry.shopping_list_ingredient_id,
                )
                .where(
                    source_clause,
                    ShoppingListIngredient.shopping_list_id == list_id,
                )
                .order_by(QuantityEntry.id)
            ).scalars()
        )

    def get_entries_for_links(self, link_ids: List[int]) -> Dict[int, List[QuantityEntry]]:
        """Get entries grouped by link row ID."""
        grouped: Dict[int, List[QuantityEntry]] = {link_id: [] for link_id in link_ids}
        if not link_ids:
            return grouped
        entries = self.db.execute(
            select(QuantityEntry)
            .where(QuantityEntry.shopping_list_ingredient_id.in_(link_ids))
            .order_by(QuantityEntry.id)
        ).scalars()
        for entry in entries:
            grouped[entry.shopping_list_ingredient_id].append(entry)
        return grouped

    def count_entries(self, link_ids: List[int]) -> Dict[int, int]:
        """Count entries per link row. Link rows with no entries map to 0."""
        counts = {link_id: 0 for link_id in link_ids}
        if not link_ids:
            return counts
        stmt = (
            select(QuantityEntry.shopping_list_ingredient_id, func.count(QuantityEntry.id))
            .where(QuantityEntry.shopping_list_ingredient_id.in_(link_ids))
            .group_by(QuantityEntry.shopping_list_ingredient_id)
        )
        for link_id, count in self.db.execute(stmt):
            counts[link_id] = count
        return counts

    def create_entry(self, link_id: int, recipe_id: Optional[int], quantity: int) -> QuantityEntry:
        """Insert a quantity entry."""
        entry = QuantityEntry(shopping_list_ingredient_id=link_id, recipe_id=recipe_id, quantity=quantity)
        self.db.add(entry)
        self.db.flush()
        return entry

    def set_quantity(self, entry: QuantityEntry, quantity: int) -> QuantityEntry:
        """Single-column update of an entry's quantity."""
        self.db.execute(update(QuantityEntry).where(QuantityEntry.id == entry.id).values(quantity=quantity))
        self.db.refresh(entry)
        return entry

    def delete_entries(self, entry_ids: List[int]) -> int:
        """Predicate delete of entries by ID. Returns rows deleted."""
        if not entry_ids:
            return 0
        result = self.db.execute(delete(QuantityEntry).where(QuantityEntry.id.in_(entry_ids)))
        return result.rowcount
