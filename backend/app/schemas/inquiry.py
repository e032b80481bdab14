"""Inquiry funnel schemas for request validation."""

from typing import List, Optional

from pydantic import Field, field_validator

from app.models.inquiry import (
    CONSULTATION_DURATIONS,
    ClientType,
    InquiryStatus,
    SelectedPath,
    Timeline,
)
from app.schemas.common import CamelModel, is_valid_email, normalize_email
from app.utils.request_parsing import StringList


class InquiryIdentity(CamelModel):
    """Step 1: who is asking."""
    client_type: ClientType = ClientType.PRIVATE
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, value):
        email = normalize_email(value)
        if email and not is_valid_email(email):
            raise ValueError("Please provide a valid email address")
        return email


class InquiryContext(CamelModel):
    """Step 2: the project itself."""
    address: str = ""
    selected_services: StringList = Field(default_factory=list)
    budget: str = ""
    timeline: Timeline = Timeline.ASAP
    surface: str = ""
    description: str = ""

    @field_validator("selected_services")
    @classmethod
    def distinct_services(cls, value: List[str]) -> List[str]:
        seen: List[str] = []
        for service in value:
            service = service.strip()
            if service and service not in seen:
                seen.append(service)
        return seen

    @field_validator("budget", "surface", mode="before")
    @classmethod
    def stringify(cls, value):
        return "" if value is None else str(value)

    @field_validator("timeline", mode="before")
    @classmethod
    def default_timeline(cls, value):
        return value or Timeline.ASAP.value


class PathSelection(CamelModel):
    """Step 3."""
    selected_path: str = ""

    @field_validator("selected_path")
    @classmethod
    def known_path(cls, value: str) -> str:
        if value not in {p.value for p in SelectedPath}:
            raise ValueError('Invalid path. Must be "general" or "consult"')
        return value


def _check_duration(value) -> int:
    try:
        duration = int(value)
    except (TypeError, ValueError):
        raise ValueError("Duration must be 30, 60 or 90 minutes")
    if duration not in CONSULTATION_DURATIONS:
        raise ValueError("Duration must be 30, 60 or 90 minutes")
    return duration


class ConsultationDetails(CamelModel):
    """Step 4 on the consult path. Billing is collected after payment."""
    duration: int = 60
    roadmap_report: bool = False
    format: str = "online"
    selected_date: Optional[str] = None
    selected_time: Optional[str] = None

    @field_validator("duration", mode="before")
    @classmethod
    def valid_duration(cls, value):
        return _check_duration(value)

    @field_validator("format", mode="before")
    @classmethod
    def default_format(cls, value):
        return value or "online"


class StatusUpdate(CamelModel):
    status: InquiryStatus
    note: Optional[str] = None


class BulkStatusUpdate(CamelModel):
    ids: StringList = Field(..., min_length=1)
    status: InquiryStatus


class AdminNoteCreate(CamelModel):
    text: str = Field(..., min_length=1, max_length=5000)


class BulkDelete(CamelModel):
    ids: StringList = Field(..., min_length=1)
