"""
Shared error handling for the Sathira Sweet access layer.
"""

from typing import Dict, Any, List, Optional
from pydantic import BaseModel


SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."
INVALID_TOKEN_MESSAGE = "Invalid token. Please log in again."
AUTHENTICATION_REQUIRED_MESSAGE = "Authentication required. Please log in."


class ErrorResponse(BaseModel):
    """Standard error envelope returned by every service."""

    success: bool = False
    code: str
    message: str
    errors: Optional[List[Dict[str, Any]]] = None
    request_id: Optional[str] = None


class SathiraException(Exception):
    """Base exception for Sathira Sweet services."""

    status_code = 400

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            errors=self.details.get("errors"),
            request_id=request_id,
        )


class AuthenticationError(SathiraException):
    """Authentication-related errors."""

    status_code = 401

    def __init__(self, message: str = AUTHENTICATION_REQUIRED_MESSAGE, details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class SessionExpiredError(AuthenticationError):
    """The bearer token was valid once but has expired."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(SESSION_EXPIRED_MESSAGE, details)
        self.code = "SESSION_EXPIRED"


class AuthorizationError(SathiraException):
    """Authorization-related errors."""

    status_code = 403

    def __init__(self, message: str = "Access forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHORIZATION_ERROR", message, details)


class ValidationError(SathiraException):
    """Validation-related errors carrying per-field messages."""

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__("VALIDATION_ERROR", message, {"errors": errors or []})


class NotFoundError(SathiraException):
    """Requested resource does not exist."""

    status_code = 404

    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class ConflictError(SathiraException):
    """Resource already exists."""

    status_code = 409

    def __init__(self, message: str = "Resource already exists", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFLICT", message, details)
