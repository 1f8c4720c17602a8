"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.products import router as products_router
from routes.references import categories_router, brands_router

__all__ = [
    "products_router",
    "categories_router",
    "brands_router",
]
