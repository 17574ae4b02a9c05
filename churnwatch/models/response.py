"""Envelope for API responses that are not a bare customer record."""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """Action outcome returned by the write endpoints."""

    message: str
    status: str = "ok"
    data: Optional[Any] = None
    errors: List[str] = Field(default_factory=list)
    correlation_id: Optional[str] = None
