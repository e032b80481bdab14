"""Utils package initialization."""

from app.utils.logging import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
]
