"""Middleware package."""

from app.middleware.auth import require_admin
from app.middleware.request_logging import RequestLoggingMiddleware

__all__ = [
    "require_admin",
    "RequestLoggingMiddleware",
]
