"""
Classified errors raised by the API client.
"""

from typing import Any, Dict, List, Optional

from shared.errors import SathiraException, SESSION_EXPIRED_MESSAGE


CONNECTIVITY_MESSAGE = "Cannot connect to server. Please check your internet connection."
GENERIC_MESSAGE = "Something went wrong. Please try again."


class ApiError(SathiraException):
    """Base class for failures surfaced by ``ApiClient``.

    ``custom_message`` is the text meant for the user; ``server_message`` is
    the message the server itself sent, if any; ``payload`` is the parsed
    error body when the server sent one. Errors raised before any response
    exists set ``transport_level``.
    """

    code = "API_ERROR"
    transport_level = False

    def __init__(
        self,
        custom_message: str,
        status_code: Optional[int] = None,
        payload: Optional[Any] = None,
        server_message: Optional[str] = None,
    ):
        super().__init__(self.code, custom_message, {"payload": payload}, status_code)
        self.custom_message = custom_message
        self.server_message = server_message
        self.status_code = status_code
        self.payload = payload


class ConnectivityError(ApiError):
    """No response was received."""

    code = "CONNECTIVITY_ERROR"
    transport_level = True

    def __init__(self, custom_message: str = CONNECTIVITY_MESSAGE):
        super().__init__(custom_message)


class RequestTimeoutError(ConnectivityError):
    code = "REQUEST_TIMEOUT"


class AuthenticationError(ApiError):
    code = "AUTHENTICATION_ERROR"


class SessionExpiredError(AuthenticationError):
    """The server reported the session token as expired."""

    code = "SESSION_EXPIRED"

    def __init__(self, status_code: int = 401, payload: Optional[Any] = None):
        super().__init__(
            SESSION_EXPIRED_MESSAGE, status_code, payload, server_message=SESSION_EXPIRED_MESSAGE
        )


class ValidationError(ApiError):
    """The server rejected the request with per-field errors."""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        custom_message: str,
        validation_errors: List[Dict[str, Any]],
        status_code: Optional[int] = None,
        payload: Optional[Any] = None,
        server_message: Optional[str] = None,
    ):
        super().__init__(custom_message, status_code, payload, server_message)
        self.validation_errors = validation_errors

    def field_errors(self) -> Dict[str, str]:
        """First message per field, keyed by field name."""
        result: Dict[str, str] = {}
        for error in self.validation_errors:
            field = str(error.get("field") or error.get("path") or error.get("param") or "")
            message = error.get("message") or error.get("msg") or ""
            if field and field not in result:
                result[field] = message
        return result


class ServerError(ApiError):
    code = "SERVER_ERROR"


class MalformedResponse(ApiError):
    """A response body did not match any known shape."""

    code = "MALFORMED_RESPONSE"
    transport_level = True


def describe_error(exc: BaseException, fallback: str = GENERIC_MESSAGE) -> str:
    """User-facing text for ``exc``: server message, transport message, fallback."""
    if isinstance(exc, ApiError):
        if exc.server_message:
            return exc.server_message
        if exc.transport_level and exc.custom_message:
            return exc.custom_message
        return fallback
    text = str(exc)
    return text or fallback
