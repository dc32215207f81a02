"""
Import all models here so that:
1. Alembic can auto-detect them when generating migrations
2. Relationships between models resolve correctly

Parents are imported before the tables that reference them.
"""

from app.models.user import User, RoleName
from app.models.refresh_token import RefreshToken
from app.models.category import Category
from app.models.product import Product, product_categories
from app.models.quote_request import QuoteRequest, QuoteRequestItem, QuoteNote, QuoteStatus
from app.models.product_request import ProductRequest, ProductRequestNote, ProductRequestStatus
from app.models.attachment import StoredAttachment

__all__ = [
    "User",
    "RoleName",
    "RefreshToken",
    "Category",
    "Product",
    "product_categories",
    "QuoteRequest",
    "QuoteRequestItem",
    "QuoteNote",
    "QuoteStatus",
    "ProductRequest",
    "ProductRequestNote",
    "ProductRequestStatus",
    "StoredAttachment",
]
