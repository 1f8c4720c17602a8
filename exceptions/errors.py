"""
Custom exception classes for the application.

Every error raised by services and routes derives from AppError so the
API can render a uniform error body.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


class AuthenticationError(AppError):
    """Caller identity missing or rejected (401)."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            code="UNAUTHENTICATED",
            message=message,
            status_code=401
        )


class PermissionDeniedError(AppError):
    """Caller role not allowed for this operation (403)."""

    def __init__(self, role: str, allowed: list[str]):
        super().__init__(
            code="PERMISSION_DENIED",
            message=f"Role '{role}' is not allowed to perform this action",
            status_code=403,
            details={"role": role, "allowed": allowed}
        )


# ===================
# PRODUCT ERRORS
# ===================

class ProductNotFoundError(NotFoundError):
    """Product not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="Product",
            identifier=product_id,
            code="PRODUCT_NOT_FOUND"
        )


class ModelNumberExistsError(DuplicateError):
    """An active product already uses this model number."""

    def __init__(self, model_number: str):
        super().__init__(
            resource="Product",
            field="model_number",
            value=model_number
        )
        self.message = f'Product with model number "{model_number}" already exists'


class InvalidReferenceError(ValidationError):
    """Category or brand id does not point at an active record."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            code=f"INVALID_{resource.upper()}",
            message=f"Invalid {resource.lower()}",
            details={"id": identifier}
        )


# ===================
# CATEGORY / BRAND ERRORS
# ===================

class CategoryNotFoundError(NotFoundError):
    """Category not found."""

    def __init__(self, category_id: str):
        super().__init__(
            resource="Category",
            identifier=category_id,
            code="CATEGORY_NOT_FOUND"
        )


class BrandNotFoundError(NotFoundError):
    """Brand not found."""

    def __init__(self, brand_id: str):
        super().__init__(
            resource="Brand",
            identifier=brand_id,
            code="BRAND_NOT_FOUND"
        )


class CategoryNameExistsError(DuplicateError):
    """Active category with the same name (case-insensitive) exists."""

    def __init__(self, name: str):
        super().__init__(
            resource="Category",
            field="name",
            value=name
        )


class BrandNameExistsError(DuplicateError):
    """Active brand with the same name (case-insensitive) exists."""

    def __init__(self, name: str):
        super().__init__(
            resource="Brand",
            field="name",
            value=name
        )


# ===================
# UPLOAD ERRORS
# ===================

class ExcelParseError(ValidationError):
    """Excel file parsing failed."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="EXCEL_PARSE_ERROR",
            message=message,
            details=details
        )


class EmptyUploadError(ValidationError):
    """Uploaded workbook has no data rows."""

    def __init__(self):
        super().__init__(
            code="EXCEL_FILE_EMPTY",
            message="Excel file is empty"
        )


class MissingColumnsError(ValidationError):
    """Uploaded workbook lacks one or more required columns."""

    def __init__(self, missing: list[str]):
        super().__init__(
            code="MISSING_COLUMNS",
            message=f"Missing required columns: {', '.join(missing)}",
            details={"missing": missing}
        )


class UnsupportedFileTypeError(ValidationError):
    """Uploaded file is not an Excel workbook."""

    def __init__(self, content_type: Optional[str]):
        super().__init__(
            code="UNSUPPORTED_FILE_TYPE",
            message="Only Excel files (.xlsx, .xls) are allowed",
            details={"content_type": content_type}
        )


class FileTooLargeError(ValidationError):
    """Uploaded file exceeds the configured size limit."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            code="FILE_TOO_LARGE",
            message=f"File size too large. Maximum size is {limit // (1024 * 1024)}MB",
            details={"size": size, "limit": limit}
        )
