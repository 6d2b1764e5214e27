"""
Unit lookup endpoint.
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from db.session import get_session
from repositories.units import UnitRepository
from routers.common import get_user_id

router = APIRouter(prefix="/units", tags=["units"])


class UnitResponse(BaseModel):
    id: int
    name: str


@router.get("", response_model=List[UnitResponse])
def list_units(
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_session),
) -> List[UnitResponse]:
    """Get all measurement units."""
    return [UnitResponse(id=unit.id, name=unit.name) for unit in UnitRepository(db).get_all()]
