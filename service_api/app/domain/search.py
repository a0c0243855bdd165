"""
Case-insensitive search across the catalog.
"""

from typing import Any, Dict, List

from .catalog import ProductCatalog, SupplierDirectory, dump


class SearchService:
    def __init__(self, products: ProductCatalog, suppliers: SupplierDirectory):
        self.products = products
        self.suppliers = suppliers

    def search_products(self, term: str, limit: int = 20) -> List[Dict[str, Any]]:
        needle = term.strip().lower()
        if not needle:
            return []
        matches = [
            p for p in self.products.all_active()
            if needle in p.name.lower()
            or needle in p.product_code.lower()
            or (p.category and needle in p.category.lower())
            or (p.barcode and needle == p.barcode.lower())
        ]
        return [dump(p) for p in matches[:limit]]

    def search_suppliers(self, term: str, limit: int = 20) -> List[Dict[str, Any]]:
        needle = term.strip().lower()
        if not needle:
            return []
        matches = [
            s for s in self.suppliers.list()
            if needle in s.name.lower()
            or (s.contact_person and needle in s.contact_person.lower())
            or (s.email and needle in s.email.lower())
        ]
        return [dump(s) for s in matches[:limit]]

    def global_search(self, term: str, limit: int = 10) -> Dict[str, Any]:
        products = self.search_products(term, limit)
        suppliers = self.search_suppliers(term, limit)
        return {
            "query": term,
            "products": products,
            "suppliers": suppliers,
            "total": len(products) + len(suppliers),
        }
