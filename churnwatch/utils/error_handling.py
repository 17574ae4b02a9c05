"""Custom exceptions and helpers for consistent error responses."""

import json
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code

    def to_body(self) -> Dict[str, Any]:
        return {"message": str(self), "status": "error"}


class NotFoundError(AppError):
    """Raised when a requested resource is missing."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str = "Invalid input", errors: Optional[List[str]] = None):
        super().__init__(message, status_code=422)
        self.errors = list(errors or [])

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["errors"] = self.errors
        return body


class CustomerValidationError(ValidationError):
    """Raised by the fail-fast check on a customer record."""

    def __init__(self, customer_id: Optional[str], errors: List[str]):
        super().__init__(
            f"Customer {customer_id or '<unsaved>'} failed validation", errors=errors
        )
        self.customer_id = customer_id


class ConflictError(AppError):
    """Raised when a save loses an optimistic concurrency race."""

    def __init__(self, message: str = "Record was modified concurrently"):
        super().__init__(message, status_code=409)


def json_response(status: int, body: Any) -> Dict[str, Any]:
    """Format a JSON API Gateway HTTP API response."""
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def to_response(error: AppError) -> Dict[str, Any]:
    """Convert an AppError into a Lambda proxy integration response."""
    return json_response(error.status_code, error.to_body())
