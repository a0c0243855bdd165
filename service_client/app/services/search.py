from typing import Any, Dict, List

from .base import ResourceService


class SearchService(ResourceService):
    async def products(self, term: str) -> List[Dict[str, Any]]:
        return await self._get("/api/search/products", {"q": term})

    async def suppliers(self, term: str) -> List[Dict[str, Any]]:
        return await self._get("/api/search/suppliers", {"q": term})

    async def global_search(self, term: str) -> Dict[str, Any]:
        return await self._get("/api/search/global", {"q": term})
