import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from config import settings
from db.init_db import init_db
from db.session import engine
from error_handler import register_exception_handlers
from logging_config import setup_logging, get_logger
from routers import ingredients, recipes, shopping_lists, units

# Setup logging on startup
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize database schema and units before serving requests."""
    init_db(engine)
    yield


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    redirect_slashes=False,
    lifespan=lifespan,
)

# CORS configuration
logger.info(f"Enabling CORS for origins: {settings.allowed_origins_list}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging, tagged with the caller's user_id
class LoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its outcome and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> JSONResponse:
        started = time.perf_counter()
        request_id = request.headers.get("x-request-id", "-")
        user_id = request.query_params.get("user_id", "-")
        label = f"[{request_id}] {request.method} {request.url.path} user={user_id}"

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{label} failed after {time.perf_counter() - started:.3f}s: {e}",
                exc_info=True,
            )
            raise

        logger.info(f"{label} -> {response.status_code} in {time.perf_counter() - started:.3f}s")
        return response


app.add_middleware(LoggingMiddleware)
register_exception_handlers(app)

app.include_router(units.router)
app.include_router(ingredients.router)
app.include_router(recipes.router)
app.include_router(shopping_lists.router)


@app.get("/")
def health_check() -> dict:
    """Health check endpoint."""
    logger.debug("Health check called")
    return {"status": "ok", "version": settings.API_VERSION}
