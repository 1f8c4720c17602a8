"""
Product API routes.

Read endpoints are open to every role. Create, update and bulk upload are
for admins and project users; delete is admin only.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, UploadFile, File
from fastapi.responses import JSONResponse, StreamingResponse
import structlog

from config import get_settings
from models.actor import Actor, Role
from models.bulk_upload import BulkUploadResponse
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    ProductFilters,
    ModelNumberCheckResponse,
    Phase,
    SortField,
    SortOrder,
)
from routes.dependencies import get_current_actor, require_roles
from services.product_service import get_product_service
from services.bulk_upload_service import get_bulk_upload_service
from services.export_service import get_export_service, export_filename, XLSX_MEDIA_TYPE
from exceptions import (
    AppError,
    UnsupportedFileTypeError,
    FileTooLargeError,
)

logger = structlog.get_logger(__name__)

router = APIRouter()

EDITORS = (Role.ADMIN, Role.PROJECT_USER)


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


def product_filters(
    category_id: Optional[str] = Query(None, description="Filter by category"),
    brand_id: Optional[str] = Query(None, description="Filter by brand"),
    phase: Optional[Phase] = Query(None, description="Filter by phase"),
    min_hp: Optional[float] = Query(None, ge=0),
    max_hp: Optional[float] = Query(None, ge=0),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    search: Optional[str] = Query(None, description="Model, outlet, phase, category or brand"),
) -> ProductFilters:
    """Query parameters shared by list and export."""
    return ProductFilters(
        category_id=category_id,
        brand_id=brand_id,
        phase=phase,
        min_hp=min_hp,
        max_hp=max_hp,
        min_price=min_price,
        max_price=max_price,
        search=search,
    )


# ===================
# ROUTES
# ===================

@router.get("", response_model=ProductListResponse)
async def list_products(
    filters: ProductFilters = Depends(product_filters),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    sort_by: SortField = Query(SortField.CREATED_AT),
    sort_order: SortOrder = Query(SortOrder.DESC),
    actor: Actor = Depends(get_current_actor)
):
    """
    List active products with optional filters and search.

    Returns paginated list of products.
    """
    try:
        service = get_product_service()

        products, total = service.get_all(
            filters=filters,
            page=page,
            page_size=page_size,
            sort_by=sort_by,
            sort_order=sort_order
        )

        total_pages = (total + page_size - 1) // page_size

        return ProductListResponse(
            data=products,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages
        )

    except Exception as e:
        return handle_error(e)


@router.get("/check-model/{model_number}", response_model=ModelNumberCheckResponse)
async def check_model_number(model_number: str, actor: Actor = Depends(get_current_actor)):
    """Whether an active product already uses this model number."""
    try:
        service = get_product_service()
        return ModelNumberCheckResponse(
            exists=service.model_number_exists(model_number),
            model_number=model_number.strip()
        )

    except Exception as e:
        return handle_error(e)


@router.get("/category/{category_id}", response_model=list[ProductResponse])
async def list_products_by_category(category_id: str, actor: Actor = Depends(get_current_actor)):
    """Active products in one category, sorted by model number."""
    try:
        service = get_product_service()
        return service.get_by_category(category_id)

    except Exception as e:
        return handle_error(e)


@router.get("/download-template")
async def download_template(actor: Actor = Depends(get_current_actor)):
    """Excel template for bulk upload."""
    try:
        output = get_export_service().generate_template()
        return StreamingResponse(
            output,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": "attachment; filename=product-template.xlsx"}
        )

    except Exception as e:
        return handle_error(e)


@router.get("/export")
async def export_products(
    filters: ProductFilters = Depends(product_filters),
    actor: Actor = Depends(get_current_actor)
):
    """Export the filtered product list to Excel."""
    try:
        products = get_product_service().get_for_export(filters)
        output = get_export_service().generate_product_export(products, actor)

        return StreamingResponse(
            output,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename={export_filename()}"}
        )

    except Exception as e:
        return handle_error(e)


@router.post("/bulk-upload", response_model=BulkUploadResponse)
async def bulk_upload(
    file: UploadFile = File(..., description="Excel price list (.xlsx, .xls)"),
    actor: Actor = Depends(require_roles(*EDITORS))
):
    """
    Create or update products from an Excel file.

    Rows are reconciled one at a time against existing products. Row
    problems are reported in `errors` and do not stop the upload, so a
    200 response may still carry errors.

    Raises:
        422: Not an Excel file, too large, unreadable, empty or missing columns
    """
    logger.info(
        "bulk_upload_request",
        filename=file.filename,
        content_type=file.content_type,
        actor=actor.id
    )

    try:
        settings = get_settings()
        if file.content_type not in settings.upload_allowed_content_types:
            raise UnsupportedFileTypeError(file.content_type)

        content = await file.read()
        if len(content) > settings.max_upload_bytes:
            raise FileTooLargeError(len(content), settings.max_upload_bytes)

        result = get_bulk_upload_service().process(content, actor)

        return BulkUploadResponse(
            message=result.message,
            data=result.to_result()
        )

    except Exception as e:
        return handle_error(e)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, actor: Actor = Depends(get_current_actor)):
    """
    Get a single product by ID.

    Raises:
        404: Product not found
    """
    try:
        service = get_product_service()
        return service.get_by_id(product_id)

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    data: ProductCreate,
    actor: Actor = Depends(require_roles(*EDITORS))
):
    """
    Create a new product.

    Project users always create at price 0.

    Raises:
        409: Model number already exists
        422: Validation error or unknown category/brand
    """
    try:
        service = get_product_service()
        return service.create(data, actor)

    except Exception as e:
        return handle_error(e)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    data: ProductUpdate,
    actor: Actor = Depends(require_roles(*EDITORS))
):
    """
    Update an existing product.

    Only provided fields are updated; price only for admins.

    Raises:
        404: Product not found
        409: New model number already exists
        422: Validation error or unknown category/brand
    """
    try:
        service = get_product_service()
        return service.update(product_id, data, actor)

    except Exception as e:
        return handle_error(e)


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    actor: Actor = Depends(require_roles(Role.ADMIN))
):
    """
    Delete a product (soft delete).

    Sets active=False; the model number can be reused afterwards.

    Raises:
        404: Product not found
    """
    try:
        service = get_product_service()
        service.delete(product_id, actor)
        return {"success": True, "message": "Product deleted successfully"}

    except Exception as e:
        return handle_error(e)
