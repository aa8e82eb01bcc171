"""
Shared error handling for Timberline services.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class TimberlineException(Exception):
    """Base exception for Timberline services."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(TimberlineException):
    """Validation-related errors."""

    status_code = 422

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class NotFoundError(TimberlineException):
    """A requested document does not exist."""

    status_code = 404

    def __init__(self, resource: str, identifier: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", f"{resource} '{identifier}' not found", details)


class CatalogError(TimberlineException):
    """Static catalogue data is inconsistent."""

    status_code = 500

    def __init__(self, message: str = "Invalid catalogue", details: Optional[Dict[str, Any]] = None):
        super().__init__("CATALOG_ERROR", message, details)


class UnknownCategoryError(TimberlineException):
    """A product category has no catalogue entry."""

    def __init__(self, category: Any, details: Optional[Dict[str, Any]] = None):
        super().__init__("UNKNOWN_CATEGORY", f"Unknown product category: {category!r}", details)
        self.category = category


class AuthorizationError(TimberlineException):
    """Authorization-related errors."""

    status_code = 403

    def __init__(self, message: str = "Authorization failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHORIZATION_ERROR", message, details)


class RoleChangeError(AuthorizationError):
    """A role transition is blocked by business rule."""

    def __init__(self, message: str = "Role change not allowed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.code = "ROLE_CHANGE_BLOCKED"


class StoreError(TimberlineException):
    """Document store errors."""

    status_code = 503

    def __init__(self, message: str = "Document store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_ERROR", message, details)
