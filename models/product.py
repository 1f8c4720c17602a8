"""
Product schemas for validation and serialization.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from models.base import BaseSchema, TimestampMixin, AuditMixin


class Phase(str, Enum):
    """Electrical supply phase."""
    SINGLE = "1 Phase"
    THREE = "3 Phase"


class SortField(str, Enum):
    """Columns products can be sorted by."""
    CREATED_AT = "created_at"
    MODEL_NUMBER = "model_number"
    HP = "hp"
    PRICE = "price"
    WATT = "watt"
    MAX_HEAD = "max_head"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ProductCreate(BaseSchema):
    """
    Create a new product.

    Required: category_id, brand_id, model_number, hp, outlet, max_head, watt, phase
    Optional: max_flow, price (ignored unless the caller is an admin)
    """

    category_id: str = Field(..., min_length=1, description="Category UUID")
    brand_id: str = Field(..., min_length=1, description="Brand UUID")
    model_number: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Model number (unique among active products)",
        examples=["SUB-100", "CENT-NEW-001"]
    )
    hp: float = Field(..., ge=0, description="Power rating (HP)")
    outlet: str = Field(..., min_length=1, max_length=50, description="Outlet size", examples=["1 inch"])
    max_head: float = Field(..., ge=0, description="Maximum head (m)")
    max_flow: Optional[float] = Field(None, ge=0, description="Maximum flow (L/min)")
    watt: float = Field(..., ge=0, description="Wattage")
    phase: Phase = Field(..., description="Supply phase")
    price: Optional[Decimal] = Field(None, ge=0, description="Price (admin only)")


class ProductUpdate(BaseSchema):
    """
    Update existing product.

    All fields optional - only provided fields are updated.
    """

    category_id: Optional[str] = Field(None, min_length=1)
    brand_id: Optional[str] = Field(None, min_length=1)
    model_number: Optional[str] = Field(None, min_length=1, max_length=100)
    hp: Optional[float] = Field(None, ge=0)
    outlet: Optional[str] = Field(None, min_length=1, max_length=50)
    max_head: Optional[float] = Field(None, ge=0)
    max_flow: Optional[float] = Field(None, ge=0)
    watt: Optional[float] = Field(None, ge=0)
    phase: Optional[Phase] = None
    price: Optional[Decimal] = Field(None, ge=0)


class ProductResponse(BaseSchema, TimestampMixin, AuditMixin):
    """Product with all stored fields plus resolved category/brand names."""

    id: str = Field(..., description="Product UUID")
    category_id: str
    brand_id: str
    category_name: Optional[str] = None
    brand_name: Optional[str] = None
    model_number: str
    hp: float
    outlet: str
    max_head: float
    max_flow: Optional[float] = None
    watt: float
    phase: Phase
    price: Decimal = Field(default=Decimal("0"))
    active: bool = True


class ProductListResponse(BaseSchema):
    """List of products with pagination."""

    data: list[ProductResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class ProductFilters(BaseSchema):
    """Filters shared by the list and export endpoints."""

    category_id: Optional[str] = None
    brand_id: Optional[str] = None
    phase: Optional[Phase] = None
    min_hp: Optional[float] = None
    max_hp: Optional[float] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    search: Optional[str] = None

    @field_validator("search")
    @classmethod
    def blank_search_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ModelNumberCheckResponse(BaseSchema):
    """Result of a model number availability check."""

    exists: bool
    model_number: str
