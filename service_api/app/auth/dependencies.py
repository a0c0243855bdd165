"""
Request authentication for the API server.
"""

from typing import Callable

from fastapi import Depends, Request

from shared.logging import get_logger, set_user_context
from shared.errors import AuthenticationError, AuthorizationError, NotFoundError
from ..domain.users import UserRecord, UserStore
from .tokens import TokenService, bearer_token


class AuthMiddleware:
    """Resolves the bearer token on a request to a user account."""

    def __init__(self, token_service: TokenService, user_store: UserStore):
        self.token_service = token_service
        self.user_store = user_store
        self.logger = get_logger("api.auth_middleware")

    async def current_user(self, request: Request) -> UserRecord:
        """FastAPI dependency returning the authenticated user."""
        token = bearer_token(request.headers.get("Authorization"))
        if token is None:
            raise AuthenticationError()

        claims = self.token_service.decode(token)
        try:
            user = self.user_store.get(claims["sub"])
        except NotFoundError:
            raise AuthenticationError("User no longer exists")

        if not user.is_active:
            raise AuthorizationError("Your account is deactivated. Please contact an administrator")

        set_user_context(user_id=user.id, role=user.role)
        request.state.user = user
        return user

    async def has_valid_session(self, request: Request) -> bool:
        """Cheap token check used to gate the response cache."""
        token = bearer_token(request.headers.get("Authorization"))
        if token is None:
            return False
        try:
            self.token_service.decode(token)
        except AuthenticationError:
            return False
        return True

    def require_roles(self, *roles: str) -> Callable:
        """Dependency factory restricting a route to ``roles``."""

        async def dependency(user: UserRecord = Depends(self.current_user)) -> UserRecord:
            if user.role not in roles:
                self.logger.warning("Role not permitted", role=user.role, allowed=list(roles))
                raise AuthorizationError(
                    f"User role '{user.role}' is not authorized to access this resource"
                )
            return user

        return dependency
