"""API package initialization."""

from app.api import (
    admin_inquiries,
    auth,
    billing,
    blogs,
    dashboard,
    inquiries,
    news,
    projects,
    stripe,
    testimonials,
)

__all__ = [
    "admin_inquiries",
    "auth",
    "billing",
    "blogs",
    "dashboard",
    "inquiries",
    "news",
    "projects",
    "stripe",
    "testimonials",
]
