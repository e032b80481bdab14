"""Shared schema helpers."""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and bool(EMAIL_PATTERN.match(value))


def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def strip_text(value: Optional[str]) -> Optional[str]:
    if isinstance(value, str):
        return value.strip()
    return value


class CamelModel(BaseModel):
    """Models exchanged with the web client use camelCase keys on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
        validate_default=True,
    )

    def to_document(self, *, exclude_unset: bool = False) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=exclude_unset)
