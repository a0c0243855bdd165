from typing import Any, Dict, Optional

from .base import ResourceService, unwrap


class ProductService(ResourceService):
    """Product catalog calls."""

    async def list(
        self,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        limit: Optional[int] = None,
        page: Optional[int] = None,
    ) -> Dict[str, Any]:
        return await self._get("/api/products", {
            "category": category,
            "search": search,
            "minPrice": min_price,
            "maxPrice": max_price,
            "sortBy": sort_by,
            "sortOrder": sort_order,
            "limit": limit,
            "page": page,
        })

    async def get(self, product_id: str) -> Dict[str, Any]:
        return await self._get(f"/api/products/{product_id}")

    async def create(self, product: Dict[str, Any]) -> Dict[str, Any]:
        return unwrap(await self.client.post("/api/products", product))

    async def update(self, product_id: str, product: Dict[str, Any]) -> Dict[str, Any]:
        return unwrap(await self.client.put(f"/api/products/{product_id}", product))

    async def deactivate(self, product_id: str) -> Dict[str, Any]:
        return unwrap(await self.client.put(f"/api/products/{product_id}/deactivate"))
