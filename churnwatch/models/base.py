"""Shared pieces for the camelCase wire models."""

from datetime import datetime, timezone
from typing import Any, Type

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def enum_value(item: Any) -> Any:
    """Plain value of an enum member; anything else passes through."""
    return getattr(item, "value", item)


def coerce_enum(enum_cls: Type, value: Any) -> Any:
    """Map a raw string onto its enum member, keeping unknown values verbatim."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return value


def joined_values(enum_cls: Type) -> str:
    return ", ".join(member.value for member in enum_cls)


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
