"""Models package initialization."""

from app.models.admin import AdminRole, TokenType
from app.models.content import (
    ContentStatus,
    CoverSource,
    ProjectImageType,
    ProjectTag,
    TestimonialStatus,
)
from app.models.inquiry import (
    ALLOWED_TRANSITIONS,
    ClientType,
    InquiryStatus,
    InvoiceStatus,
    PaymentStatus,
    SelectedPath,
    Timeline,
    can_transition,
    ensure_transition,
)

__all__ = [
    "AdminRole",
    "TokenType",
    "ContentStatus",
    "CoverSource",
    "ProjectImageType",
    "ProjectTag",
    "TestimonialStatus",
    "ALLOWED_TRANSITIONS",
    "ClientType",
    "InquiryStatus",
    "InvoiceStatus",
    "PaymentStatus",
    "SelectedPath",
    "Timeline",
    "can_transition",
    "ensure_transition",
]
