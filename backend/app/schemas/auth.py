"""Authentication schemas for request/response validation."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import normalize_email


class TokenPayload(BaseModel):
    """JWT token payload."""
    sub: str  # Admin document ID
    email: str
    role: str
    type: str
    exp: datetime


class LoginRequest(BaseModel):
    """Login request schema."""
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize(cls, value: str) -> str:
        return normalize_email(value)


class RefreshRequest(BaseModel):
    """Token refresh request; the cookie is used when the body omits it."""
    refresh_token: Optional[str] = Field(None, alias="refreshToken")

    model_config = {"populate_by_name": True}
