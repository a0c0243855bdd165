"""
Report generation: JSON summaries and their PDF renderings.
"""

from __future__ import annotations

import io
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas

from shared.logging import get_logger
from shared.errors import NotFoundError, ValidationError
from .catalog import ProductCatalog


REPORT_TITLES = {
    "financial": "Financial Report",
    "inventory": "Inventory Report",
    "product-performance": "Product Performance Report",
}


def parse_period(start: str, end: str) -> Tuple[date, date]:
    """Validate a ``startDate``/``endDate`` pair (ISO dates, start <= end)."""
    errors = []
    parsed = {}
    for field, value in (("startDate", start), ("endDate", end)):
        try:
            parsed[field] = date.fromisoformat(value)
        except (TypeError, ValueError):
            errors.append({"field": field, "message": f"{field} must be an ISO date (YYYY-MM-DD)"})
    if errors:
        raise ValidationError("Invalid report period", errors=errors)
    if parsed["startDate"] > parsed["endDate"]:
        raise ValidationError(
            "Invalid report period",
            errors=[{"field": "startDate", "message": "startDate must not be after endDate"}],
        )
    return parsed["startDate"], parsed["endDate"]


class ReportGenerationService:
    """Builds reports from the catalog.

    Figures are derived from current catalog state; there is no order
    history yet, so period bounds are echoed rather than filtered on.
    """

    def __init__(self, products: ProductCatalog):
        self.products = products
        self.logger = get_logger("api.reports")

    def financial(self, start: date, end: date) -> Dict[str, Any]:
        rows = []
        for product in self.products.all_active():
            margin = product.retail_price - product.wholesale_price
            rows.append({
                "productCode": product.product_code,
                "name": product.name,
                "stock": product.stock,
                "stockValueRetail": round(product.stock * product.retail_price, 2),
                "stockValueWholesale": round(product.stock * product.wholesale_price, 2),
                "unitMargin": round(margin, 2),
            })
        return {
            "report": "financial",
            "period": {"startDate": start.isoformat(), "endDate": end.isoformat()},
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "summary": {
                "totalRetailValue": round(sum(r["stockValueRetail"] for r in rows), 2),
                "totalWholesaleValue": round(sum(r["stockValueWholesale"] for r in rows), 2),
                "potentialProfit": round(
                    sum(r["stockValueRetail"] - r["stockValueWholesale"] for r in rows), 2
                ),
            },
            "rows": rows,
        }

    def inventory(self, start: date, end: date) -> Dict[str, Any]:
        rows = [
            {
                "productCode": p.product_code,
                "name": p.name,
                "stock": p.stock,
                "minStockLevel": p.min_stock_level,
                "lowStock": p.below_minimum,
            }
            for p in self.products.all_active()
        ]
        return {
            "report": "inventory",
            "period": {"startDate": start.isoformat(), "endDate": end.isoformat()},
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "summary": {
                "totalProducts": len(rows),
                "totalStock": sum(r["stock"] for r in rows),
                "lowStockItems": sum(1 for r in rows if r["lowStock"]),
            },
            "rows": rows,
        }

    def product_performance(self, product_id: Optional[str], start: date, end: date) -> Dict[str, Any]:
        if not product_id:
            raise ValidationError(
                "productId is required",
                errors=[{"field": "productId", "message": "productId is required"}],
            )
        try:
            product = self.products.get(product_id)
        except NotFoundError:
            raise NotFoundError("Product not found")
        return {
            "report": "product-performance",
            "period": {"startDate": start.isoformat(), "endDate": end.isoformat()},
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "summary": {
                "productId": product.id,
                "name": product.name,
                "stock": product.stock,
                "retailPrice": product.retail_price,
                "unitMargin": round(product.retail_price - product.wholesale_price, 2),
            },
            "rows": [],
        }

    def render_pdf(self, report: Dict[str, Any]) -> bytes:
        """Render a report dict as a simple one-column PDF document."""
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        width, height = A4
        y = height - inch

        def line(text: str, size: int = 10, gap: float = 14) -> None:
            nonlocal y
            if y < inch:
                pdf.showPage()
                y = height - inch
            pdf.setFont("Helvetica", size)
            pdf.drawString(inch, y, text)
            y -= gap

        line("Sathira Sweet", size=16, gap=22)
        line(REPORT_TITLES.get(report["report"], "Report"), size=13, gap=18)
        period = report["period"]
        line(f"Period: {period['startDate']} to {period['endDate']}")
        line(f"Generated: {report['generatedAt']}", gap=22)

        for key, value in report["summary"].items():
            line(f"{key}: {value}")
        y -= 8

        rows: List[Dict[str, Any]] = report.get("rows", [])
        for row in rows:
            line("  ".join(f"{k}={v}" for k, v in row.items()), size=8, gap=11)

        pdf.showPage()
        pdf.save()
        self.logger.info("Rendered report PDF", report=report["report"], rows=len(rows))
        return buffer.getvalue()
