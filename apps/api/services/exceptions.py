"""
Domain exceptions for the ingredient sequencer and the shopping list ledger.
"""
from typing import Optional


class PlannerError(Exception):
    """Base exception for planner domain errors."""

    def __init__(self, message: str, resource_id: Optional[int] = None) -> None:
        self.message = message
        self.resource_id = resource_id
        super().__init__(message)


class NotFoundError(PlannerError):
    """Raised when an entity is missing or not owned by the caller."""

    def __init__(self, resource: str, resource_id: Optional[int] = None) -> None:
        self.resource = resource
        super().__init__(f"{resource} not found", resource_id)


class NothingToSortError(PlannerError):
    """Raised when a move would not change the ingredient order.

    This is a benign rejection, not a server error.
    """

    def __init__(self, resource_id: Optional[int] = None) -> None:
        super().__init__("Nothing to sort", resource_id)


class ValidationError(PlannerError):
    """Raised for invalid quantities."""


class StoreError(PlannerError):
    """Raised when a transaction fails in the persistent store."""
