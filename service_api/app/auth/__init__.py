from .tokens import TokenService, bearer_token
from .dependencies import AuthMiddleware

__all__ = ["AuthMiddleware", "TokenService", "bearer_token"]
