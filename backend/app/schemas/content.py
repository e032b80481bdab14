"""Schemas for projects, blogs, news and testimonials."""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from app.models.content import ContentStatus, CoverSource, ProjectTag
from app.schemas.common import CamelModel, normalize_email
from app.utils.request_parsing import JsonObject, StringList


class ProjectInfo(CamelModel):
    maitre_douverage: str = ""
    maitre_doeuvre: str = ""
    ingenieurs: str = ""
    surface: str = ""
    programme: str = ""
    budget: str = ""
    statut: str = ""
    full_description: str = ""


class ProjectCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    tag: ProjectTag
    year: str = ""
    category: str = ""
    description: str = ""
    status: ContentStatus = ContentStatus.DRAFT
    info: Annotated[ProjectInfo, JsonObject] = Field(default_factory=ProjectInfo)
    # URLs of assets that were uploaded beforehand
    cover_image: Optional[str] = None
    images: StringList = Field(default_factory=list)
    plans: StringList = Field(default_factory=list)

    @field_validator("year", mode="before")
    @classmethod
    def year_as_text(cls, value):
        return "" if value is None else str(value)


class ProjectUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    tag: Optional[ProjectTag] = None
    year: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ContentStatus] = None
    info: Annotated[Optional[ProjectInfo], JsonObject] = None
    deleted_images: StringList = Field(default_factory=list)
    deleted_plans: StringList = Field(default_factory=list)
    deleted_cover_image: bool = False

    @field_validator("year", mode="before")
    @classmethod
    def year_as_text(cls, value):
        return None if value is None else str(value)


class CoverImage(CamelModel):
    url: str = Field(..., min_length=1)
    source: CoverSource = CoverSource.EXTERNAL

    @model_validator(mode="after")
    def external_must_be_https(self):
        if self.source == CoverSource.EXTERNAL.value and not self.url.lower().startswith("https://"):
            raise ValueError("External cover image URLs must use HTTPS")
        return self


class BlogCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    excerpt: str = ""
    content: str = ""
    category: str = ""
    author: str = "Admin"
    status: ContentStatus = ContentStatus.DRAFT
    cover_image: Annotated[Optional[CoverImage], JsonObject] = None

    @field_validator("author", mode="before")
    @classmethod
    def default_author(cls, value):
        return value or "Admin"


class BlogUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    excerpt: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    author: Optional[str] = None
    status: Optional[ContentStatus] = None
    cover_image: Annotated[Optional[CoverImage], JsonObject] = None
    remove_cover_image: bool = False


class NewsCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    source: str = ""
    excerpt: str = ""
    content: str = ""
    status: ContentStatus = ContentStatus.DRAFT
    published_at: Optional[datetime] = None
    cover_image: Annotated[Optional[CoverImage], JsonObject] = None


class NewsUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    source: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    status: Optional[ContentStatus] = None
    published_at: Optional[datetime] = None
    cover_image: Annotated[Optional[CoverImage], JsonObject] = None
    remove_cover_image: bool = False


class TestimonialCreate(CamelModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone_number: Optional[str] = None
    project_type: str = ""
    review: str = Field(..., min_length=10, max_length=2000)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, value):
        return normalize_email(value)

    @field_validator("phone_number", mode="before")
    @classmethod
    def blank_phone(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None


class TestimonialUpdate(CamelModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = None
    project_type: Optional[str] = None
    review: Optional[str] = Field(None, min_length=10, max_length=2000)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, value):
        return None if value is None else normalize_email(value)

    @field_validator("phone_number", mode="before")
    @classmethod
    def blank_phone(cls, value):
        if value is None:
            return None
        return str(value).strip()
