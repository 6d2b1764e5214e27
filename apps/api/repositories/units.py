"""
Unit repository (read-only lookup).
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models import Unit


class UnitRepository:
    """Repository for Unit lookups."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def get_all(self) -> List[Unit]:
        """Get all units ordered by ID."""
        return list(self.db.execute(select(Unit).order_by(Unit.id)).scalars())

    def get_by_id(self, unit_id: int) -> Optional[Unit]:
        """Get unit by ID."""
        return self.db.get(Unit, unit_id)
