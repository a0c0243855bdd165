from .manager import AuthManager, AuthState
from .normalize import AuthenticatedUser, AuthResult, normalize_auth_response, normalize_user_response
from .routing import DEFAULT_LANDING_PATH, LANDING_PATHS, landing_path_for_role

__all__ = [
    "AuthManager",
    "AuthState",
    "AuthenticatedUser",
    "AuthResult",
    "DEFAULT_LANDING_PATH",
    "LANDING_PATHS",
    "landing_path_for_role",
    "normalize_auth_response",
    "normalize_user_response",
]
