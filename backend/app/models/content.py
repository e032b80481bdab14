"""Enums shared by the published content collections."""

from enum import Enum


class ContentStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class ProjectTag(str, Enum):
    RESIDENTIAL = "Residential"
    COMMERCIAL = "Commercial"


class CoverSource(str, Enum):
    """Where a blog or news cover image lives.

    Only ``uploaded`` covers are owned by us and removed from the asset
    store when replaced or deleted.
    """
    UPLOADED = "uploaded"
    EXTERNAL = "external"


class ProjectImageType(str, Enum):
    COVER = "cover"
    GALLERY = "gallery"
    PLAN = "plan"


class TestimonialStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
