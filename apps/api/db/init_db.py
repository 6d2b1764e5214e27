"""
Initialize the database schema by creating all tables and seeding units.
This should be run once on deployment or development setup.
"""
import logging

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from db.models import DEFAULT_UNITS, Base, Unit

logger = logging.getLogger(__name__)


def seed_units(db: Session) -> int:
    """Insert any missing default units. Returns the number of units added."""
    existing = set(db.execute(select(Unit.name)).scalars().all())
    missing = [name for name in DEFAULT_UNITS if name not in existing]
    for name in missing:
        db.add(Unit(name=name))
    db.commit()
    return len(missing)


def init_db(bind: Engine) -> None:
    """Create all tables defined in models and seed lookup data."""
    logger.info("Initializing database schema...")
    Base.metadata.create_all(bind=bind)
    with Session(bind) as db:
        added = seed_units(db)
    logger.info(f"Database schema initialized ({added} units seeded)")


if __name__ == "__main__":
    from db.session import engine
    from logging_config import setup_logging

    setup_logging()
    init_db(engine)
