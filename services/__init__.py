"""
Business logic services.

Each service handles one domain area.
"""

from services.reference_service import (
    ReferenceService,
    get_category_service,
    get_brand_service,
)
from services.product_service import ProductService, get_product_service
from services.bulk_upload_service import (
    BulkUploadService,
    BatchResult,
    get_bulk_upload_service,
    summarize,
)
from services.export_service import ExportService, get_export_service

__all__ = [
    "ReferenceService",
    "get_category_service",
    "get_brand_service",
    "ProductService",
    "get_product_service",
    "BulkUploadService",
    "BatchResult",
    "get_bulk_upload_service",
    "summarize",
    "ExportService",
    "get_export_service",
]
