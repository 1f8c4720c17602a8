"""
Bulk product upload.

Flow for one uploaded workbook:

    decode -> match headers -> load category/brand lookups
           -> for each row, in order: normalize -> reconcile
           -> tally outcomes

Decoding failures, an empty sheet, missing columns and failures to load
the lookups abort the whole batch before any row is written. Everything
that goes wrong inside a row is recorded against that row and the batch
moves on. Rows are processed one at a time so every row sees the writes
of the rows before it.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Union
import structlog

from pydantic import ValidationError as PydanticValidationError

from models.actor import Actor
from models.bulk_upload import UploadAction, BulkUploadResult
from models.product import ProductCreate, ProductUpdate
from parsers.excel_parser import decode_workbook, SheetRow
from parsers.product_rows import (
    RowCandidate,
    RowError,
    match_headers,
    normalize_row,
)
from services.product_service import ProductService, get_product_service
from services.reference_service import (
    ReferenceService,
    get_category_service,
    get_brand_service,
)
from exceptions import (
    AppError,
    EmptyUploadError,
    ModelNumberExistsError,
)

logger = structlog.get_logger(__name__)


@dataclass
class ReferenceLookups:
    """Lower-cased name -> id for active categories and brands."""
    categories: dict[str, str] = field(default_factory=dict)
    brands: dict[str, str] = field(default_factory=dict)


@dataclass
class RowSuccess:
    """A row that was reconciled against the catalog."""
    row: int
    model_number: str
    action: UploadAction
    old_price: Optional[Decimal] = None
    new_price: Optional[Decimal] = None


RowOutcome = Union[RowSuccess, RowError]


def _as_float(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


@dataclass
class BatchResult:
    """Ordered outcomes of one upload."""
    total: int = 0
    success: list[RowSuccess] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)

    def add(self, outcome: RowOutcome) -> None:
        if isinstance(outcome, RowError):
            self.errors.append(outcome)
        else:
            self.success.append(outcome)

    def counts(self) -> dict[UploadAction, int]:
        """Number of successful rows per action, every action present."""
        tally = {action: 0 for action in UploadAction}
        for outcome in self.success:
            tally[outcome.action] += 1
        return tally

    @property
    def message(self) -> str:
        return summarize(self)

    def to_result(self) -> BulkUploadResult:
        """Convert to the API response schema."""
        counts = self.counts()
        return BulkUploadResult(
            total=self.total,
            success=[
                {
                    **vars(s),
                    "old_price": _as_float(s.old_price),
                    "new_price": _as_float(s.new_price),
                }
                for s in self.success
            ],
            errors=[vars(e) for e in self.errors],
            summary={
                "created": counts[UploadAction.CREATED],
                "price_updated": counts[UploadAction.PRICE_UPDATED],
                "details_updated": counts[UploadAction.DETAILS_UPDATED],
                "no_change_needed": counts[UploadAction.NO_CHANGE_NEEDED],
            },
        )


# ===================
# RESULT AGGREGATION
# ===================

_SUMMARY_PHRASES = (
    (UploadAction.CREATED, "new product created", "new products created"),
    (UploadAction.PRICE_UPDATED, "price updated", "prices updated"),
    (UploadAction.DETAILS_UPDATED, "product details updated", "product details updated"),
    (UploadAction.NO_CHANGE_NEEDED, "product unchanged", "products unchanged"),
)


def summarize(result: BatchResult) -> str:
    """
    Human-readable completion message listing the non-zero counts.

    e.g. "Bulk upload completed. 3 new products created, 1 price updated, 2 errors"
    """
    counts = result.counts()
    parts = [
        f"{counts[action]} {singular if counts[action] == 1 else plural}"
        for action, singular, plural in _SUMMARY_PHRASES
        if counts[action]
    ]
    if result.errors:
        noun = "error" if len(result.errors) == 1 else "errors"
        parts.append(f"{len(result.errors)} {noun}")

    if not parts:
        return "Bulk upload completed. No rows processed"
    return f"Bulk upload completed. {', '.join(parts)}"


# ===================
# SERVICE
# ===================

class BulkUploadService:
    """Reconciles an uploaded price list against the product catalog."""

    def __init__(
        self,
        product_service: Optional[ProductService] = None,
        category_service: Optional[ReferenceService] = None,
        brand_service: Optional[ReferenceService] = None
    ):
        self.products = product_service or get_product_service()
        self.categories = category_service or get_category_service()
        self.brands = brand_service or get_brand_service()

    def process(self, content: bytes, actor: Actor) -> BatchResult:
        """
        Run one upload.

        Args:
            content: Raw workbook bytes
            actor: Uploading user; only admins may set prices

        Returns:
            BatchResult with one outcome per data row

        Raises:
            ExcelParseError: Unreadable workbook
            EmptyUploadError: No data rows
            MissingColumnsError: Required columns absent
            DatabaseError: Category/brand lookups could not be loaded
        """
        logger.info("bulk_upload_started", actor=actor.id, role=actor.role.value)

        sheet = decode_workbook(content)
        if sheet.is_empty:
            raise EmptyUploadError()

        matched_headers = match_headers(sheet.headers)
        lookups = self.resolve_references()

        result = BatchResult(total=len(sheet.rows))
        for sheet_row in sheet.rows:
            result.add(self.process_row(sheet_row, lookups, actor, matched_headers))

        logger.info(
            "bulk_upload_completed",
            total=result.total,
            success=len(result.success),
            errors=len(result.errors),
        )

        return result

    def resolve_references(self) -> ReferenceLookups:
        """Load active categories and brands once for the whole batch."""
        categories = self.categories.get_all_active()
        brands = self.brands.get_all_active()

        logger.debug(
            "bulk_upload_references_loaded",
            categories=len(categories),
            brands=len(brands)
        )

        return ReferenceLookups(
            categories={c.name.lower(): c.id for c in categories},
            brands={b.name.lower(): b.id for b in brands},
        )

    def process_row(
        self,
        sheet_row: SheetRow,
        lookups: ReferenceLookups,
        actor: Actor,
        matched_headers: Optional[dict[str, str]] = None
    ) -> RowOutcome:
        """Normalize and reconcile one row. Never raises."""
        candidate = normalize_row(
            sheet_row,
            lookups.categories,
            lookups.brands,
            matched_headers
        )
        if isinstance(candidate, RowError):
            logger.info(
                "bulk_upload_row_rejected",
                row=candidate.row,
                code=candidate.code,
                error=candidate.error
            )
            return candidate

        try:
            outcome = self.reconcile(candidate, actor)
        except ModelNumberExistsError:
            outcome = RowError(
                row=candidate.row,
                code="DUPLICATE_MODEL_NUMBER",
                error=f"Duplicate model number: {candidate.model_number}"
            )
        except PydanticValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            outcome = RowError(
                row=candidate.row,
                code="VALIDATION_ERROR",
                error=f"{location}: {first['msg']}"
            )
        except AppError as e:
            outcome = RowError(row=candidate.row, code=e.code, error=e.message)
        except Exception as e:
            logger.error(
                "bulk_upload_row_failed",
                row=candidate.row,
                error=str(e),
                error_type=type(e).__name__
            )
            outcome = RowError(row=candidate.row, code="ROW_FAILED", error=str(e))

        if isinstance(outcome, RowError):
            logger.warning(
                "bulk_upload_row_failed",
                row=outcome.row,
                code=outcome.code,
                error=outcome.error
            )
        else:
            logger.info(
                "bulk_upload_row_processed",
                row=outcome.row,
                model_number=outcome.model_number,
                action=outcome.action.value
            )

        return outcome

    def reconcile(self, candidate: RowCandidate, actor: Actor) -> RowSuccess:
        """
        Apply exactly one of create / update price / update details / nothing.

        - No active product with this model number: create it. Price is the
          admin-supplied value or 0; non-admins always create at 0.
        - Existing, non-admin: overwrite hp, outlet, max head, max flow,
          watt and phase. Price is never touched.
        - Existing, admin, price supplied and different: update price only.
        - Existing, admin, price absent or equal: no change.

        Raises:
            ModelNumberExistsError: A concurrent writer inserted the same
                model number between lookup and insert
        """
        existing = self.products.get_by_model_number(candidate.model_number)

        if existing is None:
            price = candidate.price if actor.is_admin and candidate.price is not None else Decimal("0")
            data = ProductCreate(
                category_id=candidate.category_id,
                brand_id=candidate.brand_id,
                model_number=candidate.model_number,
                hp=candidate.hp,
                outlet=candidate.outlet,
                max_head=candidate.max_head,
                max_flow=candidate.max_flow,
                watt=candidate.watt,
                phase=candidate.phase,
                price=price,
            )
            product = self.products.insert({
                **data.model_dump(mode="json", exclude={"price"}),
                "price": float(price),
                "created_by": actor.id,
            })
            return RowSuccess(
                row=candidate.row,
                model_number=product.model_number,
                action=UploadAction.CREATED,
                new_price=price,
            )

        if not actor.is_admin:
            details = ProductUpdate(
                hp=candidate.hp,
                outlet=candidate.outlet,
                max_head=candidate.max_head,
                max_flow=candidate.max_flow,
                watt=candidate.watt,
                phase=candidate.phase,
            )
            self.products.patch(
                existing.id, details.model_dump(mode="json", exclude_none=True), actor
            )
            return RowSuccess(
                row=candidate.row,
                model_number=existing.model_number,
                action=UploadAction.DETAILS_UPDATED,
            )

        if candidate.price is not None and candidate.price != existing.price:
            self.products.patch(existing.id, {"price": float(candidate.price)}, actor)
            return RowSuccess(
                row=candidate.row,
                model_number=existing.model_number,
                action=UploadAction.PRICE_UPDATED,
                old_price=existing.price,
                new_price=candidate.price,
            )

        return RowSuccess(
            row=candidate.row,
            model_number=existing.model_number,
            action=UploadAction.NO_CHANGE_NEEDED,
        )


# Singleton instance for convenience
_bulk_upload_service: Optional[BulkUploadService] = None

def get_bulk_upload_service() -> BulkUploadService:
    """Get or create BulkUploadService instance."""
    global _bulk_upload_service
    if _bulk_upload_service is None:
        _bulk_upload_service = BulkUploadService()
    return _bulk_upload_service
