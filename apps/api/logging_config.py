"""
Logging configuration for the Recipe Planner API.
Sets up structured logging with file and console outputs.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Log directory (created on setup)
LOG_DIR = Path("/var/log/recipe-planner") if Path("/var").exists() else Path("./logs")

# Log file paths
ERROR_LOG_FILE = LOG_DIR / "error.log"
APP_LOG_FILE = LOG_DIR / "app.log"

# Log format
DETAILED_FORMAT = "%(asctime)s [%(name)s:%(lineno)d] %(levelname)s - %(message)s"
SIMPLE_FORMAT = "%(levelname)s - %(message)s"

MAX_LOG_BYTES = 10 * 1024 * 1024  # 10MB


def _file_handler(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=5)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_to_files: bool = True) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_files: Also write rotating app and error log files
    """
    # Convert string to logging level
    level = getattr(logging, log_level.upper(), logging.INFO)

    # Root logger configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture everything at root level

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_to_files:
        try:
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            root_logger.addHandler(_file_handler(APP_LOG_FILE, logging.DEBUG))
            root_logger.addHandler(_file_handler(ERROR_LOG_FILE, logging.ERROR))
        except OSError as e:
            root_logger.warning(f"Could not set up log files in {LOG_DIR}: {e}")

    # Set specific loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
