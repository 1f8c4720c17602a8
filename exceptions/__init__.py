"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    DatabaseError,
    AuthenticationError,
    PermissionDeniedError,

    # Product-specific
    ProductNotFoundError,
    ModelNumberExistsError,
    InvalidReferenceError,

    # Categories / brands
    CategoryNotFoundError,
    BrandNotFoundError,
    CategoryNameExistsError,
    BrandNameExistsError,

    # Uploads
    ExcelParseError,
    EmptyUploadError,
    MissingColumnsError,
    UnsupportedFileTypeError,
    FileTooLargeError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "DatabaseError",
    "AuthenticationError",
    "PermissionDeniedError",

    # Product
    "ProductNotFoundError",
    "ModelNumberExistsError",
    "InvalidReferenceError",

    # Categories / brands
    "CategoryNotFoundError",
    "BrandNotFoundError",
    "CategoryNameExistsError",
    "BrandNameExistsError",

    # Uploads
    "ExcelParseError",
    "EmptyUploadError",
    "MissingColumnsError",
    "UnsupportedFileTypeError",
    "FileTooLargeError",
]
