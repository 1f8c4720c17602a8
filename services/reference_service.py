"""
Category and brand service.

Categories and brands are stored in separate tables with the same shape,
so one service class handles both.
"""

from typing import Optional, Type
import structlog

from config import get_supabase_client, is_unique_violation
from models.actor import Actor
from models.reference import ReferenceCreate, ReferenceUpdate, ReferenceResponse
from exceptions import (
    NotFoundError,
    DuplicateError,
    DatabaseError,
    InvalidReferenceError,
    CategoryNotFoundError,
    BrandNotFoundError,
    CategoryNameExistsError,
    BrandNameExistsError,
)

logger = structlog.get_logger(__name__)


class ReferenceService:
    """
    CRUD for one reference table (categories or brands).

    Names are unique among active rows, compared case-insensitively.
    Deletes are soft (active=False).
    """

    def __init__(
        self,
        table: str,
        resource: str,
        not_found_error: Type[NotFoundError],
        name_exists_error: Type[DuplicateError]
    ):
        self.db = get_supabase_client()
        self.table = table
        self.resource = resource
        self.not_found_error = not_found_error
        self.name_exists_error = name_exists_error

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all_active(self) -> list[ReferenceResponse]:
        """Active rows sorted by name."""
        logger.debug("getting_references", table=self.table)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("active", True)
                .order("name")
                .execute()
            )
            return [ReferenceResponse(**row) for row in result.data]

        except Exception as e:
            logger.error("get_references_failed", table=self.table, error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, record_id: str) -> ReferenceResponse:
        """
        Get one row by id (active or not).

        Raises:
            CategoryNotFoundError / BrandNotFoundError
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", record_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_reference_failed", table=self.table, id=record_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise self.not_found_error(record_id)

        return ReferenceResponse(**result.data[0])

    def ensure_active(self, record_id: str) -> ReferenceResponse:
        """
        Return the row if it exists and is active.

        Raises:
            InvalidReferenceError: Unknown or soft-deleted id
        """
        try:
            record = self.get_by_id(record_id)
        except NotFoundError:
            raise InvalidReferenceError(self.resource, record_id)

        if not record.active:
            raise InvalidReferenceError(self.resource, record_id)

        return record

    def find_active_by_name(
        self,
        name: str,
        exclude_id: Optional[str] = None
    ) -> Optional[ReferenceResponse]:
        """Active row whose name equals `name` ignoring case."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("active", True)
                .ilike("name", name)
                .execute()
            )
        except Exception as e:
            logger.error("find_reference_failed", table=self.table, name=name, error=str(e))
            raise DatabaseError("select", str(e))

        for row in result.data:
            if row["name"].lower() == name.lower() and row["id"] != exclude_id:
                return ReferenceResponse(**row)
        return None

    def search_ids(self, term: str) -> list[str]:
        """Ids of active rows whose name contains `term` (case-insensitive)."""
        try:
            result = (
                self.db.table(self.table)
                .select("id")
                .eq("active", True)
                .ilike("name", f"%{term}%")
                .execute()
            )
            return [row["id"] for row in result.data]

        except Exception as e:
            logger.error("search_references_failed", table=self.table, error=str(e))
            raise DatabaseError("select", str(e))

    def get_names(self, ids: list[str]) -> dict[str, str]:
        """Map id -> name for the given ids, including inactive rows."""
        if not ids:
            return {}

        try:
            result = (
                self.db.table(self.table)
                .select("id, name")
                .in_("id", ids)
                .execute()
            )
            return {row["id"]: row["name"] for row in result.data}

        except Exception as e:
            logger.error("get_reference_names_failed", table=self.table, error=str(e))
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: ReferenceCreate, actor: Actor) -> ReferenceResponse:
        """
        Create a row.

        Raises:
            CategoryNameExistsError / BrandNameExistsError
        """
        logger.info("creating_reference", table=self.table, name=data.name)

        if self.find_active_by_name(data.name):
            raise self.name_exists_error(data.name)

        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "name": data.name,
                    "description": data.description,
                    "active": True,
                    "created_by": actor.id,
                })
                .execute()
            )
            record = ReferenceResponse(**result.data[0])

            logger.info("reference_created", table=self.table, id=record.id)
            return record

        except Exception as e:
            if is_unique_violation(e):
                logger.warning("reference_name_conflict", table=self.table, name=data.name)
                raise self.name_exists_error(data.name)
            logger.error("create_reference_failed", table=self.table, error=str(e))
            raise DatabaseError("insert", str(e))

    def update(self, record_id: str, data: ReferenceUpdate, actor: Actor) -> ReferenceResponse:
        """
        Rename and/or re-describe a row.

        Raises:
            CategoryNotFoundError / BrandNotFoundError
            CategoryNameExistsError / BrandNameExistsError
        """
        logger.info("updating_reference", table=self.table, id=record_id)

        existing = self.get_by_id(record_id)

        update_data = {}
        if data.name and data.name != existing.name:
            if self.find_active_by_name(data.name, exclude_id=record_id):
                raise self.name_exists_error(data.name)
            update_data["name"] = data.name
        if data.description is not None:
            update_data["description"] = data.description

        if not update_data:
            return existing

        update_data["updated_by"] = actor.id

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", record_id)
                .execute()
            )
            logger.info(
                "reference_updated",
                table=self.table,
                id=record_id,
                fields=list(update_data.keys())
            )
            return ReferenceResponse(**result.data[0])

        except Exception as e:
            if is_unique_violation(e):
                logger.warning("reference_name_conflict", table=self.table, name=data.name)
                raise self.name_exists_error(data.name)
            logger.error("update_reference_failed", table=self.table, id=record_id, error=str(e))
            raise DatabaseError("update", str(e))

    def delete(self, record_id: str, actor: Actor) -> bool:
        """Soft delete (active=False)."""
        logger.info("deleting_reference", table=self.table, id=record_id)

        self.get_by_id(record_id)

        try:
            self.db.table(self.table).update(
                {"active": False, "updated_by": actor.id}
            ).eq("id", record_id).execute()

            logger.info("reference_deleted", table=self.table, id=record_id)
            return True

        except Exception as e:
            logger.error("delete_reference_failed", table=self.table, id=record_id, error=str(e))
            raise DatabaseError("update", str(e))


# Singleton instances for convenience
_category_service: Optional[ReferenceService] = None
_brand_service: Optional[ReferenceService] = None


def get_category_service() -> ReferenceService:
    """Get or create the categories service."""
    global _category_service
    if _category_service is None:
        _category_service = ReferenceService(
            table="categories",
            resource="Category",
            not_found_error=CategoryNotFoundError,
            name_exists_error=CategoryNameExistsError,
        )
    return _category_service


def get_brand_service() -> ReferenceService:
    """Get or create the brands service."""
    global _brand_service
    if _brand_service is None:
        _brand_service = ReferenceService(
            table="brands",
            resource="Brand",
            not_found_error=BrandNotFoundError,
            name_exists_error=BrandNameExistsError,
        )
    return _brand_service
