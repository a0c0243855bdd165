from typing import Any, Dict, List, Optional

from .base import ResourceService, unwrap


class SupplierService(ResourceService):
    """Supplier directory calls."""

    async def list(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._get("/api/suppliers", {"search": search})

    async def get(self, supplier_id: str) -> Dict[str, Any]:
        return await self._get(f"/api/suppliers/{supplier_id}")

    async def create(self, supplier: Dict[str, Any]) -> Dict[str, Any]:
        return unwrap(await self.client.post("/api/suppliers", supplier))

    async def update(self, supplier_id: str, supplier: Dict[str, Any]) -> Dict[str, Any]:
        return unwrap(await self.client.put(f"/api/suppliers/{supplier_id}", supplier))

    async def delete(self, supplier_id: str) -> None:
        await self.client.delete(f"/api/suppliers/{supplier_id}")
