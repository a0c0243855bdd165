from .products import ProductService
from .reports import ReportService, report_filename
from .search import SearchService
from .suppliers import SupplierService

__all__ = ["ProductService", "ReportService", "SearchService", "SupplierService", "report_filename"]
