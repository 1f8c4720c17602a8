"""
Product service for business logic operations.

Model numbers are unique among active products only: the database carries
a partial unique index on model_number WHERE active, so a soft-deleted
product frees its model number for reuse.
"""

from decimal import Decimal
from typing import Any, Optional
import re
import structlog

from config import get_supabase_client, is_unique_violation
from models.actor import Actor
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductFilters,
    SortField,
    SortOrder,
)
from services.reference_service import (
    ReferenceService,
    get_category_service,
    get_brand_service,
)
from exceptions import (
    ProductNotFoundError,
    ModelNumberExistsError,
    DatabaseError
)

logger = structlog.get_logger(__name__)

NUMERIC_SEARCH_COLUMNS = ("hp", "max_head", "max_flow", "watt", "price")


class ProductService:
    """
    Product business logic.

    Handles CRUD, search and the low-level writes used by bulk upload.
    """

    def __init__(
        self,
        category_service: Optional[ReferenceService] = None,
        brand_service: Optional[ReferenceService] = None
    ):
        self.db = get_supabase_client()
        self.table = "products"
        self.categories = category_service or get_category_service()
        self.brands = brand_service or get_brand_service()

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        filters: Optional[ProductFilters] = None,
        page: int = 1,
        page_size: int = 20,
        sort_by: SortField = SortField.CREATED_AT,
        sort_order: SortOrder = SortOrder.DESC
    ) -> tuple[list[ProductResponse], int]:
        """
        Get active products with optional filters.

        Args:
            filters: Category, brand, phase, hp/price ranges and free-text search
            page: Page number (1-indexed)
            page_size: Items per page
            sort_by: Sort column
            sort_order: asc or desc

        Returns:
            Tuple of (products list, total count)
        """
        filters = filters or ProductFilters()

        logger.info(
            "getting_products",
            page=page,
            page_size=page_size,
            search=filters.search,
            sort_by=sort_by.value
        )

        try:
            query = self.db.table(self.table).select("*", count="exact")
            query = self._apply_filters(query, filters)

            offset = (page - 1) * page_size
            query = query.order(sort_by.value, desc=sort_order == SortOrder.DESC)
            query = query.range(offset, offset + page_size - 1)

            result = query.execute()
            products = self._with_names(result.data)
            total = result.count or 0

            logger.info(
                "products_retrieved",
                count=len(products),
                total=total
            )

            return products, total

        except Exception as e:
            logger.error(
                "get_products_failed",
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    def get_for_export(self, filters: Optional[ProductFilters] = None) -> list[ProductResponse]:
        """All active products matching filters, sorted by model number."""
        filters = filters or ProductFilters()
        logger.info("getting_products_for_export", search=filters.search)

        try:
            query = self.db.table(self.table).select("*")
            query = self._apply_filters(query, filters).order("model_number")
            result = query.execute()
            return self._with_names(result.data)

        except Exception as e:
            logger.error("get_products_for_export_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_category(self, category_id: str) -> list[ProductResponse]:
        """Active products in one category, sorted by model number."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("category_id", category_id)
                .eq("active", True)
                .order("model_number")
                .execute()
            )
            return self._with_names(result.data)

        except Exception as e:
            logger.error(
                "get_products_by_category_failed",
                category_id=category_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    def get_by_id(self, product_id: str) -> ProductResponse:
        """
        Get a single product by ID.

        Args:
            product_id: Product UUID

        Returns:
            ProductResponse

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.debug("getting_product", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", product_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)

        return self._with_names(result.data)[0]

    def get_by_model_number(self, model_number: str) -> Optional[ProductResponse]:
        """
        Get the active product with exactly this model number.

        The comparison is case-sensitive on the trimmed value.

        Returns:
            ProductResponse or None if not found
        """
        model_number = model_number.strip()
        logger.debug("getting_product_by_model_number", model_number=model_number)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("model_number", model_number)
                .eq("active", True)
                .limit(1)
                .execute()
            )

            if not result.data:
                return None

            return ProductResponse(**result.data[0])

        except Exception as e:
            logger.error(
                "get_product_by_model_number_failed",
                model_number=model_number,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: ProductCreate, actor: Actor) -> ProductResponse:
        """
        Create a new product.

        Price is taken from the request only for admins; everyone else
        creates products at price 0.

        Raises:
            InvalidReferenceError: Category or brand missing or inactive
            ModelNumberExistsError: If an active product has this model number
        """
        logger.info("creating_product", model_number=data.model_number, actor=actor.id)

        self.categories.ensure_active(data.category_id)
        self.brands.ensure_active(data.brand_id)

        if self.get_by_model_number(data.model_number):
            raise ModelNumberExistsError(data.model_number)

        price = data.price if actor.is_admin and data.price is not None else Decimal("0")

        return self.insert({
            "category_id": data.category_id,
            "brand_id": data.brand_id,
            "model_number": data.model_number,
            "hp": data.hp,
            "outlet": data.outlet,
            "max_head": data.max_head,
            "max_flow": data.max_flow,
            "watt": data.watt,
            "phase": data.phase.value,
            "price": float(price),
            "created_by": actor.id,
        })

    def update(self, product_id: str, data: ProductUpdate, actor: Actor) -> ProductResponse:
        """
        Update an existing product.

        Only provided fields change. Price changes are ignored unless the
        actor is an admin.

        Raises:
            ProductNotFoundError: If product doesn't exist
            InvalidReferenceError: New category or brand missing or inactive
            ModelNumberExistsError: If new model number is taken
        """
        logger.info("updating_product", product_id=product_id, actor=actor.id)

        existing = self.get_by_id(product_id)

        update_data: dict[str, Any] = {}

        if data.category_id is not None:
            self.categories.ensure_active(data.category_id)
            update_data["category_id"] = data.category_id
        if data.brand_id is not None:
            self.brands.ensure_active(data.brand_id)
            update_data["brand_id"] = data.brand_id
        if data.model_number is not None and data.model_number != existing.model_number:
            taken = self.get_by_model_number(data.model_number)
            if taken and taken.id != product_id:
                raise ModelNumberExistsError(data.model_number)
            update_data["model_number"] = data.model_number

        for name in ("hp", "outlet", "max_head", "max_flow", "watt"):
            value = getattr(data, name)
            if value is not None:
                update_data[name] = value
        if data.phase is not None:
            update_data["phase"] = data.phase.value

        if actor.is_admin and data.price is not None:
            update_data["price"] = float(data.price)

        if not update_data:
            return existing

        return self.patch(product_id, update_data, actor)

    def delete(self, product_id: str, actor: Actor) -> bool:
        """
        Soft delete a product (set active=False).

        The model number becomes available again immediately.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.info("deleting_product", product_id=product_id, actor=actor.id)

        self.get_by_id(product_id)
        self.patch(product_id, {"active": False}, actor)

        logger.info("product_deleted", product_id=product_id)
        return True

    def insert(self, record: dict[str, Any]) -> ProductResponse:
        """
        Insert one product row as given.

        Raises:
            ModelNumberExistsError: The unique index rejected the row
            DatabaseError: Any other storage failure
        """
        try:
            result = (
                self.db.table(self.table)
                .insert({**record, "active": True})
                .execute()
            )
        except Exception as e:
            if is_unique_violation(e):
                logger.warning(
                    "product_model_number_conflict",
                    model_number=record.get("model_number")
                )
                raise ModelNumberExistsError(record.get("model_number", ""))
            logger.error(
                "create_product_failed",
                model_number=record.get("model_number"),
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

        product = ProductResponse(**result.data[0])

        logger.info(
            "product_created",
            product_id=product.id,
            model_number=product.model_number
        )

        return product

    def patch(self, product_id: str, fields: dict[str, Any], actor: Actor) -> ProductResponse:
        """
        Write the given fields and stamp updated_by.

        Raises:
            ModelNumberExistsError: The unique index rejected the change
            DatabaseError: Any other storage failure
        """
        update_data = {**fields, "updated_by": actor.id}

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            if is_unique_violation(e):
                raise ModelNumberExistsError(str(fields.get("model_number", "")))
            logger.error(
                "update_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)

        logger.info(
            "product_updated",
            product_id=product_id,
            fields=list(fields.keys())
        )

        return ProductResponse(**result.data[0])

    # ===================
    # UTILITY METHODS
    # ===================

    def model_number_exists(self, model_number: str) -> bool:
        """Check if an active product uses this model number."""
        return self.get_by_model_number(model_number) is not None

    def count(self, active_only: bool = True) -> int:
        """Count total products."""
        try:
            query = self.db.table(self.table).select("id", count="exact")
            if active_only:
                query = query.eq("active", True)
            result = query.execute()
            return result.count or 0
        except Exception as e:
            logger.error("count_products_failed", error=str(e))
            raise DatabaseError("count", str(e))

    def _apply_filters(self, query, filters: ProductFilters):
        """Add the shared list/export filters to a query."""
        query = query.eq("active", True)

        if filters.category_id:
            query = query.eq("category_id", filters.category_id)
        if filters.brand_id:
            query = query.eq("brand_id", filters.brand_id)
        if filters.phase:
            query = query.eq("phase", filters.phase.value)
        if filters.min_hp is not None:
            query = query.gte("hp", filters.min_hp)
        if filters.max_hp is not None:
            query = query.lte("hp", filters.max_hp)
        if filters.min_price is not None:
            query = query.gte("price", float(filters.min_price))
        if filters.max_price is not None:
            query = query.lte("price", float(filters.max_price))

        if filters.search:
            condition = self._search_condition(filters.search)
            if condition:
                query = query.or_(condition)

        return query

    def _search_condition(self, search: str) -> Optional[str]:
        """
        PostgREST or-filter for free-text search.

        Matches model number, outlet and phase by substring, category or
        brand by name, and numeric columns by equality when the term is a number.
        """
        # Commas and parentheses are or-filter syntax
        term = re.sub(r"[,()]", " ", search).strip()
        if not term:
            return None

        conditions = [
            f"model_number.ilike.*{term}*",
            f"outlet.ilike.*{term}*",
            f"phase.ilike.*{term}*",
        ]

        category_ids = self.categories.search_ids(term)
        if category_ids:
            conditions.append(f"category_id.in.({','.join(category_ids)})")

        brand_ids = self.brands.search_ids(term)
        if brand_ids:
            conditions.append(f"brand_id.in.({','.join(brand_ids)})")

        try:
            number = float(term)
        except ValueError:
            number = None
        if number is not None:
            conditions.extend(f"{column}.eq.{number:g}" for column in NUMERIC_SEARCH_COLUMNS)

        return ",".join(conditions)

    def _with_names(self, rows: list[dict]) -> list[ProductResponse]:
        """Build responses with category and brand names filled in."""
        category_names = self.categories.get_names(sorted({r["category_id"] for r in rows}))
        brand_names = self.brands.get_names(sorted({r["brand_id"] for r in rows}))

        return [
            ProductResponse(
                **row,
                category_name=category_names.get(row["category_id"]),
                brand_name=brand_names.get(row["brand_id"]),
            )
            for row in rows
        ]


# Singleton instance for convenience
_product_service: Optional[ProductService] = None

def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
