"""
Cleanup coordinator for shopping list ingredient link rows.

A ShoppingListIngredient row must never exist without at least one
QuantityEntry. Removal paths record how many entries each affected link row
had before anything was deleted, release the entries they delete, and flush
the coordinator before the transaction commits. Link rows whose remaining
count reaches zero are deleted in that same transaction.
"""
import logging
from typing import Dict, List

from repositories.shopping import ShoppingQuantityRepository

logger = logging.getLogger(__name__)


class CleanupCoordinator:
    """Tracks entry counts per link row and deletes the rows left empty."""

    def __init__(self, repo: ShoppingQuantityRepository):
        self.repo = repo
        self._counts: Dict[int, int] = {}
        self._released: Dict[int, int] = {}

    def record(self, counts: Dict[int, int]) -> None:
        """
        Record pre-deletion entry counts.

        Args:
            counts: Mapping of link row ID to its entry count, counted before
                any entry is deleted (the entries about to go still count)
        """
        for link_id, count in counts.items():
            self._counts.setdefault(link_id, count)

    def release(self, link_id: int, deleted: int = 1) -> None:
        """Note that `deleted` entries under a recorded link row were removed."""
        if link_id not in self._counts:
            raise KeyError(f"Link row {link_id} was not recorded before deletion")
        self._released[link_id] = self._released.get(link_id, 0) + deleted

    def empty_links(self) -> List[int]:
        """Link row IDs whose count minus released entries is zero."""
        return [
            link_id
            for link_id, count in self._counts.items()
            if count - self._released.get(link_id, 0) <= 0
        ]

    def flush(self) -> List[int]:
        """
        Delete every link row left without entries.

        Returns:
            IDs of the deleted link rows
        """
        empty = self.empty_links()
        if empty:
            self.repo.delete_links(empty)
            logger.debug(f"Removed empty shopping list ingredients: {empty}")
        self._counts.clear()
        self._released.clear()
        return empty
