"""
Error handling utilities for the Recipe Planner API.
Maps domain errors to HTTP responses with standardized logging.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from services.exceptions import (
    NotFoundError,
    NothingToSortError,
    PlannerError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class APIError:
    """Standardized API error handler."""

    @staticmethod
    def handle_store_error(
        operation: str,
        error: Exception,
        user_id: Optional[str] = None,
        extra_context: Optional[Dict[str, Any]] = None,
    ) -> HTTPException:
        """
        Handle store failures. The detail stays opaque to the caller.

        Args:
            operation: Description of the database operation
            error: The exception that occurred
            user_id: Optional user ID for context
            extra_context: Additional context to log

        Returns:
            HTTPException with status 500
        """
        context = {
            "operation": operation,
            "user_id": user_id,
            **(extra_context or {}),
        }

        logger.error(
            f"Store error during {operation}: {str(error)}",
            extra=context,
        )

        return HTTPException(status_code=500, detail=str(error) or "Internal server error")

    @staticmethod
    def handle_validation_error(
        operation: str,
        error: Exception,
        user_id: Optional[str] = None,
    ) -> HTTPException:
        """
        Handle rejected input (bad quantities, no-op moves).

        Args:
            operation: Description of the operation
            error: The validation error
            user_id: Optional user ID for context

        Returns:
            HTTPException with status 400
        """
        logger.warning(
            f"Validation error during {operation}: {str(error)}",
            extra={"operation": operation, "user_id": user_id},
        )

        return HTTPException(status_code=400, detail=str(error))

    @staticmethod
    def handle_not_found_error(
        resource: str,
        resource_id: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> HTTPException:
        """
        Handle not found errors with detailed logging.

        Args:
            resource: Type of resource (e.g., 'Ingredient', 'Shopping list')
            resource_id: ID of the resource
            user_id: Optional user ID for context

        Returns:
            HTTPException with not found error
        """
        logger.warning(
            f"{resource} not found: {resource_id}",
            extra={"resource_id": resource_id, "user_id": user_id},
        )

        return HTTPException(status_code=404, detail=f"{resource} not found")

    @staticmethod
    def from_planner_error(error: PlannerError, operation: str, user_id: Optional[str] = None) -> HTTPException:
        """Translate a domain error into the matching HTTPException."""
        if isinstance(error, NotFoundError):
            return APIError.handle_not_found_error(error.resource, error.resource_id, user_id)
        if isinstance(error, (NothingToSortError, ValidationError)):
            return APIError.handle_validation_error(operation, error, user_id)
        return APIError.handle_store_error(operation, error, user_id)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the PlannerError handler on the application."""

    @app.exception_handler(PlannerError)
    async def planner_error_handler(request: Request, exc: PlannerError) -> JSONResponse:
        http_error = APIError.from_planner_error(
            exc,
            operation=f"{request.method} {request.url.path}",
            user_id=request.query_params.get("user_id"),
        )
        return JSONResponse(status_code=http_error.status_code, content={"detail": http_error.detail})
