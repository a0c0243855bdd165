"""
Shared plumbing for resource services.
"""

from typing import Any, Dict, Optional

from ..http_client import ApiClient


def unwrap(payload: Any) -> Any:
    """Return the ``data`` member of a success envelope, or the payload itself."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def compact(params: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset query parameters."""
    return {key: value for key, value in params.items() if value is not None}


class ResourceService:
    def __init__(self, client: ApiClient):
        self.client = client

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return unwrap(await self.client.get(path, params=compact(params or {})))
