"""Checkout and billing schemas."""

from typing import Optional

from pydantic import Field, field_validator

from app.schemas.common import CamelModel
from app.schemas.inquiry import _check_duration


class CheckoutRequest(CamelModel):
    inquiry_id: str = Field(..., min_length=1)
    duration: int = 60
    roadmap_report: bool = False

    @field_validator("duration", mode="before")
    @classmethod
    def valid_duration(cls, value):
        return _check_duration(value)


class BillingAddress(CamelModel):
    line1: str = Field(..., min_length=1)
    line2: Optional[str] = None
    city: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = "FR"

    @field_validator("country", mode="before")
    @classmethod
    def default_country(cls, value):
        return (value or "FR").upper()


class BusinessBillingRequest(CamelModel):
    """Billing details a business client submits after paying."""
    inquiry_id: Optional[str] = None
    customer_id: Optional[str] = None
    invoice_id: Optional[str] = None
    company_name: str = Field(..., min_length=1, max_length=255)
    address: BillingAddress
    vat_number: Optional[str] = None

    @field_validator("vat_number", mode="before")
    @classmethod
    def blank_vat(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value
