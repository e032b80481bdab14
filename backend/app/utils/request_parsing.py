"""Single boundary that turns JSON or multipart bodies into validated models.

Admin forms post either JSON or multipart. In multipart bodies list fields
arrive as repeated keys, ``images[]`` style keys, JSON encoded strings or a
bare string, and nested objects arrive as JSON strings. Everything is
normalized here once so the pydantic schemas only ever see plain values.
"""

import json
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, BeforeValidator
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile

from app.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def coerce_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [item for item in value if item not in (None, "")]
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                decoded = json.loads(text)
            except json.JSONDecodeError:
                return [text]
            if isinstance(decoded, list):
                return [item for item in decoded if item not in (None, "")]
        return [text]
    return value


def coerce_object(value: Any) -> Any:
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return value
    return value


StringList = Annotated[List[str], BeforeValidator(coerce_list)]
JsonObject = BeforeValidator(coerce_object)


@dataclass
class ParsedRequest:
    data: Dict[str, Any] = field(default_factory=dict)
    files: Dict[str, List[UploadFile]] = field(default_factory=dict)

    def files_for(self, name: str) -> List[UploadFile]:
        return [f for f in self.files.get(name, []) if f.filename]


def _field_name(key: str) -> str:
    return key[:-2] if key.endswith("[]") else key


async def parse_request(request: Request) -> ParsedRequest:
    """Read the body once, whatever its content type."""
    content_type = request.headers.get("content-type", "")
    parsed = ParsedRequest()

    if content_type.startswith("multipart/form-data") or content_type.startswith(
        "application/x-www-form-urlencoded"
    ):
        form = await request.form()
        for key, value in form.multi_items():
            name = _field_name(key)
            if isinstance(value, UploadFile):
                parsed.files.setdefault(name, []).append(value)
                continue
            if name in parsed.data:
                existing = parsed.data[name]
                if not isinstance(existing, list):
                    existing = [existing]
                existing.append(value)
                parsed.data[name] = existing
            elif key.endswith("[]"):
                parsed.data[name] = [value]
            else:
                parsed.data[name] = value
        return parsed

    body = await request.body()
    if not body.strip():
        return parsed
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    parsed.data = payload
    return parsed


def validate_model(model: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg"),
            }
            for err in exc.errors()
        ]
        message = errors[0]["message"] if errors else "Validation failed"
        if errors and errors[0]["field"]:
            message = f"{errors[0]['field']}: {message}"
        raise ValidationError(message, details=errors)
