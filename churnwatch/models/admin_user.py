"""Admin user model; construction fails fast on missing or malformed fields."""

from __future__ import annotations

import time
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from churnwatch.utils.validators import is_valid_email


class UserRole(str, Enum):
    """Roles allowed to work the intervention queue."""

    ADMIN = "admin"
    SUPERVISOR = "supervisor"


def _generate_user_id() -> str:
    return f"user_{time.time_ns() // 1_000_000}"


class AdminUser(BaseModel):
    """Operator account. Unlike Customer, an AdminUser is never partially valid."""

    id: str = Field(default_factory=_generate_user_id)
    name: str
    email: str
    role: UserRole = UserRole.ADMIN
    last_login_time: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def require_name_and_email(cls, data: Any) -> Any:
        """Reject the record before field parsing so the message stays specific."""
        if isinstance(data, dict) and (not data.get("name") or not data.get("email")):
            raise ValueError("name and email are required for an admin user.")
        return data

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        if not is_valid_email(value):
            raise ValueError("Invalid email format.")
        return value
