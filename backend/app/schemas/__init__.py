"""Schemas package initialization."""

from app.schemas.auth import LoginRequest, RefreshRequest, TokenPayload
from app.schemas.content import (
    BlogCreate,
    BlogUpdate,
    CoverImage,
    NewsCreate,
    NewsUpdate,
    ProjectCreate,
    ProjectInfo,
    ProjectUpdate,
    TestimonialCreate,
    TestimonialUpdate,
)
from app.schemas.inquiry import (
    AdminNoteCreate,
    BulkDelete,
    BulkStatusUpdate,
    ConsultationDetails,
    InquiryContext,
    InquiryIdentity,
    PathSelection,
    StatusUpdate,
)
from app.schemas.payment import BillingAddress, BusinessBillingRequest, CheckoutRequest

__all__ = [
    # Auth
    "LoginRequest",
    "RefreshRequest",
    "TokenPayload",
    # Inquiry
    "InquiryIdentity",
    "InquiryContext",
    "PathSelection",
    "ConsultationDetails",
    "StatusUpdate",
    "BulkStatusUpdate",
    "BulkDelete",
    "AdminNoteCreate",
    # Payment
    "CheckoutRequest",
    "BillingAddress",
    "BusinessBillingRequest",
    # Content
    "ProjectInfo",
    "ProjectCreate",
    "ProjectUpdate",
    "CoverImage",
    "BlogCreate",
    "BlogUpdate",
    "NewsCreate",
    "NewsUpdate",
    "TestimonialCreate",
    "TestimonialUpdate",
]
