"""
Bulk upload response schemas.

The upload result is consumed by the admin panel, which reads camelCase
keys (modelNumber, priceUpdated, ...). Fields are declared in snake_case
and serialized through a camelCase alias generator.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UploadAction(str, Enum):
    """What reconciliation did with one spreadsheet row."""
    CREATED = "created"
    PRICE_UPDATED = "price_updated"
    DETAILS_UPDATED = "details_updated"
    NO_CHANGE_NEEDED = "no_change_needed"


class CamelSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RowSuccessSchema(CamelSchema):
    row: int
    model_number: str
    action: UploadAction
    old_price: Optional[float] = None
    new_price: Optional[float] = None


class RowErrorSchema(CamelSchema):
    row: int
    code: str
    error: str


class UploadSummarySchema(CamelSchema):
    created: int = 0
    price_updated: int = 0
    details_updated: int = 0
    no_change_needed: int = 0


class BulkUploadResult(CamelSchema):
    total: int
    success: list[RowSuccessSchema]
    errors: list[RowErrorSchema]
    summary: UploadSummarySchema


class BulkUploadResponse(CamelSchema):
    """Envelope returned by POST /api/products/bulk-upload."""
    success: bool = True
    message: str
    data: BulkUploadResult
