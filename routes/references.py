"""
Category and brand API routes.

Both resources expose the same endpoints, so the routers are built by
one factory. Anyone may read; only admins may write.
"""

from typing import Callable

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from models.actor import Actor, Role
from models.reference import (
    ReferenceCreate,
    ReferenceUpdate,
    ReferenceResponse,
    ReferenceListResponse,
)
from routes.dependencies import get_current_actor, require_roles
from services.reference_service import (
    ReferenceService,
    get_category_service,
    get_brand_service,
)
from exceptions import AppError

logger = structlog.get_logger(__name__)


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
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


def build_reference_router(get_service: Callable[[], ReferenceService], label: str) -> APIRouter:
    """
    Router with list/get/create/update/delete for one reference table.

    Args:
        get_service: Service getter (resolved per request)
        label: Singular resource name used in messages, e.g. "Category"
    """
    router = APIRouter()

    @router.get("", response_model=ReferenceListResponse)
    async def list_references(actor: Actor = Depends(get_current_actor)):
        """Active rows sorted by name."""
        try:
            records = get_service().get_all_active()
            return ReferenceListResponse(data=records, count=len(records))

        except Exception as e:
            return handle_error(e)

    @router.get("/{record_id}", response_model=ReferenceResponse)
    async def get_reference(record_id: str, actor: Actor = Depends(get_current_actor)):
        """
        Get one row by ID.

        Raises:
            404: Not found
        """
        try:
            return get_service().get_by_id(record_id)

        except Exception as e:
            return handle_error(e)

    @router.post("", response_model=ReferenceResponse, status_code=201)
    async def create_reference(
        data: ReferenceCreate,
        actor: Actor = Depends(require_roles(Role.ADMIN))
    ):
        """
        Create a row.

        Raises:
            409: Name already used by an active row (case-insensitive)
        """
        try:
            return get_service().create(data, actor)

        except Exception as e:
            return handle_error(e)

    @router.put("/{record_id}", response_model=ReferenceResponse)
    async def update_reference(
        record_id: str,
        data: ReferenceUpdate,
        actor: Actor = Depends(require_roles(Role.ADMIN))
    ):
        """
        Rename or re-describe a row.

        Raises:
            404: Not found
            409: Name already used by another active row
        """
        try:
            return get_service().update(record_id, data, actor)

        except Exception as e:
            return handle_error(e)

    @router.delete("/{record_id}")
    async def delete_reference(
        record_id: str,
        actor: Actor = Depends(require_roles(Role.ADMIN))
    ):
        """Soft delete (active=False)."""
        try:
            get_service().delete(record_id, actor)
            return {"success": True, "message": f"{label} deleted successfully"}

        except Exception as e:
            return handle_error(e)

    return router


categories_router = build_reference_router(get_category_service, "Category")
brands_router = build_reference_router(get_brand_service, "Brand")
