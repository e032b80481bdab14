"""Helpers for moving documents between MongoDB and JSON responses."""

from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi.encoders import jsonable_encoder

from app.errors import NotFoundError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: Any, label: str = "Resource") -> ObjectId:
    """Parse a path identifier; malformed IDs are reported as not found."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFoundError(f"{label} not found")


def serialize(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    return jsonable_encoder(doc, custom_encoder={ObjectId: str})


def serialize_many(docs: Iterable[dict]) -> List[dict]:
    return [serialize(doc) for doc in docs]


def success(data: Any = None, message: Optional[str] = None, **extra: Any) -> dict:
    """Standard response envelope."""
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body
