"""
User accounts for the API server.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

import bcrypt
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shared.logging import get_logger
from shared.errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError


Role = Literal["owner", "warehouse_manager", "salesman", "shop"]

_PASSWORD_RULE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")
_PASSWORD_RULE_MESSAGE = (
    "must contain at least one uppercase letter, one lowercase letter, "
    "one number, and one special character"
)
_EMAIL_RULE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")


def _check_password(value: str, label: str) -> str:
    if not _PASSWORD_RULE.match(value):
        raise ValueError(f"{label} {_PASSWORD_RULE_MESSAGE}")
    return value


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=3, max_length=30, pattern=r"^[a-zA-Z0-9_]+$")
    full_name: str = Field(alias="fullName", min_length=1, max_length=50)
    email: str
    password: str = Field(min_length=8)
    contact_number: str = Field(alias="contactNumber", pattern=r"^[0-9+\-\s]+$")
    role: Role

    @field_validator("email")
    @classmethod
    def _valid_email(cls, value: str) -> str:
        if not _EMAIL_RULE.match(value):
            raise ValueError("Please provide a valid email address")
        return value.lower()

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return _check_password(value, "Password")


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UpdatePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword", min_length=1)
    new_password: str = Field(alias="newPassword", min_length=8)
    confirm_password: str = Field(alias="confirmPassword", min_length=1)

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return _check_password(value, "New password")

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.confirm_password != self.new_password:
            raise ValueError("Passwords do not match")
        return self


class ForgotPasswordRequest(BaseModel):
    email: str = Field(min_length=3)


@dataclass
class UserRecord:
    id: str
    username: str
    full_name: str
    email: str
    role: str
    password_hash: bytes
    contact_number: str = ""
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_public(self) -> Dict[str, Any]:
        """Wire representation, never including the password hash."""
        return {
            "_id": self.id,
            "username": self.username,
            "fullName": self.full_name,
            "email": self.email,
            "role": self.role,
            "contactNumber": self.contact_number,
            "isActive": self.is_active,
            "lastLogin": self.last_login.isoformat() if self.last_login else None,
            "createdAt": self.created_at.isoformat(),
        }


class UserStore:
    """In-memory user accounts with bcrypt password hashes."""

    def __init__(self, bcrypt_rounds: int = 12):
        self.bcrypt_rounds = bcrypt_rounds
        self.logger = get_logger("api.users")
        self._users: Dict[str, UserRecord] = {}
        self.password_reset_requests: List[str] = []

    def _hash(self, password: str) -> bytes:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.bcrypt_rounds))

    def _find(self, username_or_email: str) -> Optional[UserRecord]:
        needle = username_or_email.lower()
        for user in self._users.values():
            if user.username.lower() == needle or user.email == needle:
                return user
        return None

    def create(self, request: RegisterRequest) -> UserRecord:
        if self._find(request.username) or self._find(request.email):
            raise ConflictError("User already exists with this email or username")

        user = UserRecord(
            id=uuid.uuid4().hex,
            username=request.username,
            full_name=request.full_name,
            email=request.email,
            role=request.role,
            password_hash=self._hash(request.password),
            contact_number=request.contact_number,
        )
        self._users[user.id] = user
        self.logger.info("User registered", user_id=user.id, role=user.role)
        return user

    def get(self, user_id: str) -> UserRecord:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("User no longer exists")
        return user

    def authenticate(self, username_or_email: str, password: str) -> UserRecord:
        user = self._find(username_or_email)
        if user is None or not bcrypt.checkpw(password.encode("utf-8"), user.password_hash):
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthorizationError("Your account is deactivated. Please contact an administrator")
        user.last_login = datetime.now(timezone.utc)
        return user

    def update_password(self, user: UserRecord, request: UpdatePasswordRequest) -> None:
        if not bcrypt.checkpw(request.current_password.encode("utf-8"), user.password_hash):
            raise ValidationError(
                "Current password is incorrect",
                errors=[{"field": "currentPassword", "message": "Current password is incorrect"}],
            )
        user.password_hash = self._hash(request.new_password)
        self.logger.info("Password updated", user_id=user.id)

    def request_password_reset(self, email: str) -> None:
        # Same response whether or not the address exists
        if self._find(email) is not None:
            self.password_reset_requests.append(email.lower())
            self.logger.info("Password reset requested", email=email.lower())
