"""
Product and supplier catalog.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.logging import get_logger
from shared.errors import ConflictError, NotFoundError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    product_code: str = Field(alias="productCode", min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    retail_price: float = Field(alias="retailPrice", ge=0)
    wholesale_price: float = Field(alias="wholesalePrice", ge=0)
    product_type: Literal["in-house", "third-party"] = Field(alias="productType")
    min_stock_level: int = Field(default=10, alias="minStockLevel", ge=0)
    unit_of_measure: str = Field(default="pcs", alias="unitOfMeasure")
    barcode: Optional[str] = None
    stock: int = Field(default=0, ge=0)


class Product(ProductIn):
    id: str = Field(alias="_id")
    is_active: bool = Field(default=True, alias="isActive")
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=_utcnow, alias="updatedAt")

    @property
    def below_minimum(self) -> bool:
        return self.stock < self.min_stock_level


class SupplierIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    contact_person: Optional[str] = Field(default=None, alias="contactPerson")
    phone_number: str = Field(alias="phoneNumber", min_length=1)
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,3}$")
    address: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    payment_terms: Optional[str] = Field(default=None, alias="paymentTerms")


class Supplier(SupplierIn):
    id: str = Field(alias="_id")
    is_active: bool = Field(default=True, alias="isActive")
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=_utcnow, alias="updatedAt")


def dump(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


class ProductQuery(BaseModel):
    category: Optional[str] = None
    search: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    sort_by: str = "createdAt"
    sort_order: Literal["asc", "desc"] = "desc"
    limit: int = Field(default=10, ge=1, le=100)
    page: int = Field(default=1, ge=1)


_PRODUCT_SORT_FIELDS = {
    "createdAt": "created_at",
    "name": "name",
    "retailPrice": "retail_price",
    "wholesalePrice": "wholesale_price",
    "stock": "stock",
}


class ProductCatalog:
    """In-memory product repository."""

    def __init__(self):
        self.logger = get_logger("api.products")
        self._products: Dict[str, Product] = {}

    def _ensure_unique_code(self, code: str, exclude: Optional[str] = None) -> None:
        for product in self._products.values():
            if product.product_code == code and product.id != exclude:
                raise ConflictError("Product code already exists")

    def list(self, query: ProductQuery) -> Dict[str, Any]:
        items = [p for p in self._products.values() if p.is_active]
        if query.category:
            items = [p for p in items if p.product_type == query.category or p.category == query.category]
        if query.search:
            needle = query.search.lower()
            items = [p for p in items if needle in p.name.lower() or needle in p.product_code.lower()]
        if query.min_price is not None:
            items = [p for p in items if p.retail_price >= query.min_price]
        if query.max_price is not None:
            items = [p for p in items if p.retail_price <= query.max_price]

        attribute = _PRODUCT_SORT_FIELDS.get(query.sort_by, "created_at")
        items.sort(key=lambda p: getattr(p, attribute), reverse=query.sort_order == "desc")

        total = len(items)
        start = (query.page - 1) * query.limit
        page_items = items[start:start + query.limit]
        return {
            "products": [dump(p) for p in page_items],
            "pagination": {
                "total": total,
                "page": query.page,
                "limit": query.limit,
                "pages": (total + query.limit - 1) // query.limit,
            },
        }

    def all_active(self) -> List[Product]:
        return [p for p in self._products.values() if p.is_active]

    def get(self, product_id: str) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def create(self, data: ProductIn) -> Product:
        self._ensure_unique_code(data.product_code)
        product = Product(id=uuid.uuid4().hex, **data.model_dump())
        self._products[product.id] = product
        self.logger.info("Product created", product_id=product.id, code=product.product_code)
        return product

    def update(self, product_id: str, data: ProductIn) -> Product:
        current = self.get(product_id)
        self._ensure_unique_code(data.product_code, exclude=product_id)
        updated = current.model_copy(update={**data.model_dump(), "updated_at": _utcnow()})
        self._products[product_id] = updated
        self.logger.info("Product updated", product_id=product_id)
        return updated

    def deactivate(self, product_id: str) -> Product:
        current = self.get(product_id)
        updated = current.model_copy(update={"is_active": False, "updated_at": _utcnow()})
        self._products[product_id] = updated
        self.logger.info("Product deactivated", product_id=product_id)
        return updated


class SupplierDirectory:
    """In-memory supplier repository."""

    def __init__(self):
        self.logger = get_logger("api.suppliers")
        self._suppliers: Dict[str, Supplier] = {}

    def list(self, search: Optional[str] = None) -> List[Supplier]:
        items = [s for s in self._suppliers.values() if s.is_active]
        if search:
            needle = search.lower()
            items = [s for s in items if needle in s.name.lower()]
        return sorted(items, key=lambda s: s.name.lower())

    def get(self, supplier_id: str) -> Supplier:
        supplier = self._suppliers.get(supplier_id)
        if supplier is None or not supplier.is_active:
            raise NotFoundError("Supplier not found")
        return supplier

    def create(self, data: SupplierIn) -> Supplier:
        supplier = Supplier(id=uuid.uuid4().hex, **data.model_dump())
        self._suppliers[supplier.id] = supplier
        self.logger.info("Supplier created", supplier_id=supplier.id)
        return supplier

    def update(self, supplier_id: str, data: SupplierIn) -> Supplier:
        current = self.get(supplier_id)
        updated = current.model_copy(update={**data.model_dump(), "updated_at": _utcnow()})
        self._suppliers[supplier_id] = updated
        return updated

    def delete(self, supplier_id: str) -> None:
        current = self.get(supplier_id)
        self._suppliers[supplier_id] = current.model_copy(update={"is_active": False, "updated_at": _utcnow()})
        self.logger.info("Supplier deactivated", supplier_id=supplier_id)
