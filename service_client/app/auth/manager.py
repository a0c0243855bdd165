"""
Client auth state and session token lifecycle.
"""

from enum import Enum
from typing import Any, Dict, Optional

from shared.logging import get_logger
from ..errors import ApiError, MalformedResponse, describe_error
from ..http_client import ApiClient
from ..storage import ClientStorage, REDIRECT_KEY, TOKEN_KEY, USER_KEY
from .normalize import AuthenticatedUser, normalize_auth_response, normalize_user_response
from .routing import landing_path_for_role


class AuthState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class AuthManager:
    """Owns the current user and keeps it in step with the stored token.

    Token and user are always set or cleared together. The manager listens
    for session expiry reported by the ``ApiClient`` so a 401 on any call
    drops the user as well.
    """

    def __init__(self, client: ApiClient, storage: ClientStorage):
        self.client = client
        self.storage = storage
        self.logger = get_logger("client.auth")
        self.state = AuthState.UNINITIALIZED
        self.user: Optional[AuthenticatedUser] = None
        self.error: Optional[str] = None
        self.degraded = False

        client.add_session_expired_listener(self.handle_session_expired)

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    @property
    def landing_path(self) -> str:
        return landing_path_for_role(self.user.role if self.user else None)

    def _fallback_identity(self) -> Optional[AuthenticatedUser]:
        stored = self.storage.get_json(USER_KEY)
        if stored is None:
            return None
        try:
            return normalize_user_response(stored)
        except MalformedResponse:
            return None

    def _adopt(self, user: AuthenticatedUser, degraded: bool = False) -> None:
        self.user = user
        self.degraded = degraded
        self.state = AuthState.AUTHENTICATED

    def _clear_session(self) -> None:
        self.client.set_auth_token(None)
        self.storage.remove(USER_KEY)
        self.user = None
        self.degraded = False
        self.state = AuthState.ANONYMOUS

    async def initialize(self) -> AuthState:
        """Restore the session from storage and confirm it with the server."""
        self.state = AuthState.CHECKING
        token = self.storage.get(TOKEN_KEY)
        if not token:
            self._clear_session()
            return self.state

        self.client.set_auth_token(token)
        try:
            user = normalize_user_response(await self.client.get("/api/auth/me"))
        except ApiError as exc:
            fallback = self._fallback_identity()
            if fallback is not None:
                self.logger.warning(
                    "Could not confirm session, using stored identity",
                    error=exc.custom_message,
                    user_id=fallback.id,
                )
                self._adopt(fallback, degraded=True)
            else:
                self.logger.info("Stored session rejected", error=exc.custom_message)
                self._clear_session()
            return self.state

        self.storage.set_json(USER_KEY, user.to_storage())
        self._adopt(user)
        return self.state

    async def _authenticate(self, path: str, body: Dict[str, Any], fallback_message: str) -> AuthenticatedUser:
        self.error = None
        try:
            result = normalize_auth_response(await self.client.post(path, body))
        except ApiError as exc:
            self.error = describe_error(exc, fallback_message)
            self.logger.info("Authentication failed", path=path, error=self.error)
            raise

        self.client.set_auth_token(result.token)
        self.storage.set_json(USER_KEY, result.user.to_storage())
        self._adopt(result.user)
        self.logger.info("Authenticated", user_id=result.user.id, role=result.user.role)
        return result.user

    async def login(self, credentials: Dict[str, Any]) -> AuthenticatedUser:
        return await self._authenticate("/api/auth/login", credentials, "Login failed. Please try again.")

    async def register(self, user_data: Dict[str, Any]) -> AuthenticatedUser:
        return await self._authenticate("/api/auth/register", user_data, "Registration failed. Please try again.")

    async def logout(self) -> None:
        """Clear the local session, then tell the server on a best-effort basis."""
        self._clear_session()
        try:
            await self.client.post("/api/auth/logout")
        except ApiError as exc:
            self.logger.warning("Server logout failed", error=exc.custom_message)

    def handle_session_expired(self) -> None:
        self.storage.remove(USER_KEY)
        self.user = None
        self.degraded = False
        self.state = AuthState.ANONYMOUS

    async def update_password(self, current_password: str, new_password: str,
                              confirm_password: Optional[str] = None) -> Any:
        self.error = None
        body = {
            "currentPassword": current_password,
            "newPassword": new_password,
            "confirmPassword": confirm_password if confirm_password is not None else new_password,
        }
        try:
            return await self.client.put("/api/auth/update-password", body)
        except ApiError as exc:
            self.error = describe_error(exc, "Could not update password. Please try again.")
            raise

    async def forgot_password(self, email: str) -> Any:
        self.error = None
        try:
            return await self.client.post("/api/auth/forgot-password", {"email": email})
        except ApiError as exc:
            self.error = describe_error(exc, "Could not send reset instructions. Please try again.")
            raise

    def post_login_destination(self) -> str:
        """Where to go after login: the path saved at session expiry, else the role's landing page."""
        return self.storage.pop(REDIRECT_KEY) or self.landing_path
