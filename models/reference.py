"""
Category and brand schemas.

Both tables share one shape: a name that is unique among active rows,
an optional description and audit fields.
"""

from typing import Optional

from pydantic import Field

from models.base import BaseSchema, TimestampMixin, AuditMixin


class ReferenceCreate(BaseSchema):
    """Create a category or brand."""

    name: str = Field(..., min_length=1, max_length=100, examples=["Submersible", "Pentax"])
    description: Optional[str] = Field(None, max_length=500)


class ReferenceUpdate(BaseSchema):
    """Rename or re-describe a category or brand."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class ReferenceResponse(BaseSchema, TimestampMixin, AuditMixin):
    """Category or brand as stored."""

    id: str
    name: str
    description: Optional[str] = None
    active: bool = True


class ReferenceListResponse(BaseSchema):
    """Active categories or brands, sorted by name."""

    data: list[ReferenceResponse]
    count: int
