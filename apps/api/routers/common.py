"""
Shared request dependencies for the API routers.
"""
from uuid import UUID

from fastapi import HTTPException, Query


def get_user_id(user_id: str = Query(..., description="User UUID")) -> UUID:
    """Parse the caller's user_id query parameter."""
    try:
        return UUID(user_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid user_id format")
