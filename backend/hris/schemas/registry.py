# backend/hris/schemas/registry.py
"""
Entity payload schemas.

Each entity kind is described by a table of ``FieldSpec`` entries; one
generic validator turns a table into a pydantic model (built once per
entity kind and mode) and reports failures per field.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache
from types import MappingProxyType
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Type

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    StrictInt,
    StrictStr,
    StringConstraints,
    ValidationError,
    create_model,
)

from hris.errors import ValidationFailed

FieldKind = Literal["string", "integer", "date", "id"]

# never accepted from clients
SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at"})


# tried in order after ISO 8601
DATE_FORMATS = (
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%b %d %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%a %b %d %Y",
)


def _parse_date_text(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError("value is not a calendar date")


def _coerce_date(value: Any) -> Any:
    """
    Anything that names a calendar day: date/datetime objects, ISO 8601 text,
    the common written forms in ``DATE_FORMATS``, or epoch milliseconds (UTC).
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise ValueError("value is not a calendar date")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            raise ValueError("value is not a calendar date")
    if isinstance(value, str):
        return _parse_date_text(" ".join(value.split()))
    raise ValueError("value is not a calendar date")


DateValue = Annotated[date, BeforeValidator(_coerce_date)]
IdValue = Annotated[StrictStr, StringConstraints(min_length=1)]

_TYPES: Dict[str, Any] = {
    "string": StrictStr,
    "integer": StrictInt,
    "date": DateValue,
    "id": IdValue,
}


@dataclass(frozen=True)
class FieldSpec:
    kind: FieldKind
    required: bool = True
    nullable: bool = False


@dataclass(frozen=True)
class EntitySchema:
    entity: str
    fields: Mapping[str, FieldSpec]

    @property
    def model_name(self) -> str:
        return "".join(part.title() for part in self.entity.split("_"))


REGISTRY: Mapping[str, EntitySchema] = MappingProxyType({
    "employee": EntitySchema("employee", {
        "first_name": FieldSpec("string"),
        "last_name": FieldSpec("string"),
        "vacation_days": FieldSpec("integer"),
        "payroll": FieldSpec("integer"),
        "user_id": FieldSpec("id", required=False, nullable=True),
    }),
    "vacation_request": EntitySchema("vacation_request", {
        "start_date": FieldSpec("date"),
        "end_date": FieldSpec("date"),
        "status": FieldSpec("string"),
        "employee_id": FieldSpec("id", required=False, nullable=True),
    }),
    "company": EntitySchema("company", {
        "name": FieldSpec("string"),
        "description": FieldSpec("string", required=False, nullable=True),
        "image": FieldSpec("string", required=False, nullable=True),
        "tenant_id": FieldSpec("string"),
        "user_id": FieldSpec("id"),
    }),
})


@lru_cache(maxsize=None)
def payload_model(entity: str, partial: bool = False) -> Type[BaseModel]:
    """pydantic model for ``entity``; ``partial`` makes every field optional but non-null."""
    schema = REGISTRY[entity]
    fields: Dict[str, Any] = {}
    for name, spec in schema.fields.items():
        tp = _TYPES[spec.kind]
        if spec.nullable:
            tp = Optional[tp]
        # defaults are not validated, so a partial field may be absent but not null
        required = spec.required and not spec.nullable and not partial
        fields[name] = (tp, ... if required else None)
    suffix = "Update" if partial else "Create"
    return create_model(
        f"{schema.model_name}{suffix}",
        __config__=ConfigDict(extra="ignore"),
        **fields,
    )


def _reason(spec: FieldSpec, err: dict) -> str:
    if err["type"] == "missing" or err.get("input") is None:
        return "required"
    if spec.kind in ("date", "id"):
        return "invalid_format"
    return "required"


def validate(entity: str, payload: Any, partial: bool = False) -> Dict[str, Any]:
    """
    Validate a create (or, with ``partial``, an update) payload.

    Returns only the known, client-settable fields; on create every optional
    field is present (absent nullable fields become None). Raises
    ValidationFailed naming each failing field.
    """
    schema = REGISTRY[entity]
    if not isinstance(payload, dict):
        raise ValidationFailed([{"field": "body", "reason": "invalid_format"}])

    data = {k: v for k, v in payload.items() if k not in SYSTEM_FIELDS}
    model = payload_model(entity, partial)
    try:
        parsed = model.model_validate(data)
    except ValidationError as e:
        details, seen = [], set()
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "body"
            if field in seen:
                continue
            seen.add(field)
            spec = schema.fields.get(field)
            reason = _reason(spec, err) if spec else "invalid_format"
            details.append({"field": field, "reason": reason})
        raise ValidationFailed(details)

    return parsed.model_dump(exclude_unset=partial)
