"""
Normalization of auth responses into typed results.

The server has answered with several envelope shapes over time:
``{data: {token, user}}``, ``{token, user}``, ``{data: user}``, ``{user}``
and a bare user object. Each boundary has exactly one function here that
accepts all of them or raises ``MalformedResponse``.
"""

from typing import Any, Dict, Iterator, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..errors import MalformedResponse


class AuthenticatedUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    role: str
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("fullName", "name"))
    username: Optional[str] = None
    email: Optional[str] = None

    @model_validator(mode="after")
    def _name_from_username(self) -> "AuthenticatedUser":
        if self.name is None:
            self.name = self.username
        return self

    def to_storage(self) -> Dict[str, Any]:
        stored = {
            "_id": self.id,
            "role": self.role,
            "fullName": self.name,
            "username": self.username,
            "email": self.email,
        }
        return {key: value for key, value in stored.items() if value is not None}


class AuthResult(BaseModel):
    token: str = Field(min_length=1)
    user: AuthenticatedUser


def _containers(payload: Any) -> Iterator[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return
    data = payload.get("data")
    if isinstance(data, dict):
        yield data
    yield payload


def _as_user(candidate: Any) -> Optional[AuthenticatedUser]:
    if not isinstance(candidate, dict):
        return None
    try:
        return AuthenticatedUser.model_validate(candidate)
    except PydanticValidationError:
        return None


def normalize_auth_response(payload: Any) -> AuthResult:
    """Token and user from a login or register response."""
    for container in _containers(payload):
        token = container.get("token")
        user = _as_user(container.get("user"))
        if isinstance(token, str) and token and user is not None:
            return AuthResult(token=token, user=user)
    raise MalformedResponse("Unexpected authentication response from server", payload=payload)


def normalize_user_response(payload: Any) -> AuthenticatedUser:
    """User from a ``/api/auth/me`` style response."""
    for container in _containers(payload):
        for candidate in (container.get("user"), container):
            user = _as_user(candidate)
            if user is not None:
                return user
    raise MalformedResponse("Unexpected user response from server", payload=payload)
