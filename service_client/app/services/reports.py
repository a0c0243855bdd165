"""
Report downloads.
"""

from pathlib import Path
from typing import Any, Optional, Union

from shared.logging import get_logger
from ..errors import MalformedResponse
from ..http_client import ApiClient
from .base import ResourceService, compact, unwrap


REPORT_KINDS = ("financial", "inventory", "product-performance")


def report_filename(kind: str, start_date: str, end_date: str, product_id: Optional[str] = None) -> str:
    """File name a downloaded report is saved under."""
    if kind == "product-performance":
        return f"product_report_{product_id}_{start_date}_to_{end_date}.pdf"
    return f"{kind}_report_{start_date}_to_{end_date}.pdf"


class ReportService(ResourceService):
    """Fetches reports as PDF files on disk or as JSON payloads."""

    def __init__(self, client: ApiClient, download_dir: Union[str, Path]):
        super().__init__(client)
        self.download_dir = Path(download_dir)
        self.logger = get_logger("client.reports")

    async def fetch(
        self,
        kind: str,
        start_date: str,
        end_date: str,
        *,
        product_id: Optional[str] = None,
        fmt: str = "pdf",
    ) -> Any:
        """Return the saved PDF path for ``fmt="pdf"``, else the report payload."""
        if kind not in REPORT_KINDS:
            raise ValueError(f"Unknown report kind: {kind}")

        params = compact({
            "startDate": start_date,
            "endDate": end_date,
            "format": fmt,
            "productId": product_id,
        })
        payload = await self.client.get(f"/api/reports/{kind}", params=params)
        if fmt == "json":
            return unwrap(payload)

        if not isinstance(payload, bytes):
            raise MalformedResponse("Expected a PDF document from the server", payload=payload)

        self.download_dir.mkdir(parents=True, exist_ok=True)
        path = self.download_dir / report_filename(kind, start_date, end_date, product_id)
        path.write_bytes(payload)
        self.logger.info("Report downloaded", kind=kind, path=str(path), size=len(payload))
        return path

    async def financial(self, start_date: str, end_date: str, fmt: str = "pdf") -> Any:
        return await self.fetch("financial", start_date, end_date, fmt=fmt)

    async def inventory(self, start_date: str, end_date: str, fmt: str = "pdf") -> Any:
        return await self.fetch("inventory", start_date, end_date, fmt=fmt)

    async def product_performance(self, product_id: str, start_date: str, end_date: str, fmt: str = "pdf") -> Any:
        return await self.fetch("product-performance", start_date, end_date, product_id=product_id, fmt=fmt)
