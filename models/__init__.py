"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
    AuditMixin,
)
from models.actor import Role, Actor
from models.product import (
    Phase,
    SortField,
    SortOrder,
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    ProductFilters,
    ModelNumberCheckResponse,
)
from models.reference import (
    ReferenceCreate,
    ReferenceUpdate,
    ReferenceResponse,
    ReferenceListResponse,
)
from models.bulk_upload import (
    UploadAction,
    RowSuccessSchema,
    RowErrorSchema,
    UploadSummarySchema,
    BulkUploadResult,
    BulkUploadResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",
    "AuditMixin",
    # Actor
    "Role",
    "Actor",
    # Product
    "Phase",
    "SortField",
    "SortOrder",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductListResponse",
    "ProductFilters",
    "ModelNumberCheckResponse",
    # Categories / brands
    "ReferenceCreate",
    "ReferenceUpdate",
    "ReferenceResponse",
    "ReferenceListResponse",
    # Bulk upload
    "UploadAction",
    "RowSuccessSchema",
    "RowErrorSchema",
    "UploadSummarySchema",
    "BulkUploadResult",
    "BulkUploadResponse",
]
