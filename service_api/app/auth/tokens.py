"""
Session token issuing and verification.
"""

import time
import uuid
from typing import Any, Callable, Dict, Optional

import jwt

from shared.logging import get_logger
from shared.errors import AuthenticationError, SessionExpiredError, INVALID_TOKEN_MESSAGE


class TokenService:
    """Issues HS256 session tokens and verifies them on every request."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_in: int = 7 * 24 * 3600,
        clock: Callable[[], float] = time.time,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in
        self.clock = clock
        self.logger = get_logger("api.tokens")
        # jti -> exp, pruned lazily
        self._revoked: Dict[str, float] = {}

    def issue(self, user_id: str, role: str) -> str:
        now = int(self.clock())
        payload = {
            "sub": user_id,
            "role": role,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + self.expires_in,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        """Return the claims of a valid token.

        Raises SessionExpiredError for expired tokens and AuthenticationError
        for anything else that fails verification.
        """
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except jwt.InvalidTokenError as exc:
            self.logger.info("Rejected malformed token", error=str(exc))
            raise AuthenticationError(INVALID_TOKEN_MESSAGE)

        # Expiry checked against the injected clock rather than wall time
        if claims.get("exp", 0) <= self.clock():
            raise SessionExpiredError()
        if claims.get("jti") in self._revoked:
            raise AuthenticationError(INVALID_TOKEN_MESSAGE)
        return claims

    def revoke(self, token: str) -> bool:
        """Deny further use of ``token``; returns False if it was not valid."""
        try:
            claims = self.decode(token)
        except AuthenticationError:
            return False
        self._prune()
        self._revoked[claims["jti"]] = claims["exp"]
        return True

    def _prune(self) -> None:
        now = self.clock()
        for jti, exp in list(self._revoked.items()):
            if exp <= now:
                del self._revoked[jti]


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the credential from an ``Authorization: Bearer`` header."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[7:].strip()
    return token or None
