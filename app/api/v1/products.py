from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional

from app.config import settings
from app.database import get_db
from app.dependencies import get_admin_claims, get_attachment_helper
from app.schemas.product import ProductCreateRequest, ProductUpdateRequest
from app.schemas.common import success_response, paginated_response, clamp_pagination, parse_form_json
from app.services.attachment_service import AttachmentHelper
from app.services.auth_service import TokenClaims
from app.services.product_service import product_service

router = APIRouter(prefix="/products")
admin_router = APIRouter(prefix="/admin/products")


# ─── Public ───────────────────────────────────────────────────────────────────
@router.get("", summary="List products (paginated)")
def list_products(
    page:            int            = Query(1),
    limit:           Optional[int]  = Query(None),
    q:               Optional[str]  = Query(None),
    categoryId:      Optional[int]  = Query(None),
    isTrending:      Optional[bool] = Query(None),
    includeDisabled: bool           = Query(False),
    db:              Session        = Depends(get_db),
):
    page, limit = clamp_pagination(page, limit, settings.DEFAULT_READ_QUERY_LIMIT, settings.READ_QUERY_MAX_LIMIT)
    data, total = product_service.list_products(db, page, limit, q, categoryId, isTrending, includeDisabled)
    return paginated_response("Products retrieved successfully", data, total, page, limit)


@router.get("/featured", summary="Trending products")
def featured_products(limit: Optional[int] = Query(None), db: Session = Depends(get_db)):
    _, limit = clamp_pagination(1, limit, settings.DEFAULT_READ_QUERY_LIMIT, settings.READ_QUERY_MAX_LIMIT)
    return success_response("Featured products retrieved", product_service.featured(db, limit))


@router.get("/slug/{slug}", summary="Get product by slug")
def get_product_by_slug(slug: str, db: Session = Depends(get_db)):
    return success_response("Product retrieved", product_service.get_by_slug(db, slug))


@router.get("/{product_id}", summary="Get product by ID")
def get_product(product_id: int, db: Session = Depends(get_db)):
    return success_response("Product retrieved", product_service.get_product(db, product_id))


# ─── Admin ────────────────────────────────────────────────────────────────────
@admin_router.post("", status_code=status.HTTP_201_CREATED, summary="Create product (multipart)")
def create_product(
    data:   Optional[str]              = Form(None, description="JSON payload"),
    images: Optional[list[UploadFile]] = File(None),
    db:     Session                    = Depends(get_db),
    helper: AttachmentHelper           = Depends(get_attachment_helper),
    _:      TokenClaims                = Depends(get_admin_claims),
):
    body = parse_form_json(ProductCreateRequest, data)
    return success_response("Product created successfully",
                            product_service.create_product(db, helper, body, images or []))


@admin_router.patch("/{product_id}", summary="Update product (multipart)")
def update_product(
    product_id: int,
    data:   Optional[str]              = Form(None, description="JSON payload"),
    images: Optional[list[UploadFile]] = File(None),
    db:     Session                    = Depends(get_db),
    helper: AttachmentHelper           = Depends(get_attachment_helper),
    _:      TokenClaims                = Depends(get_admin_claims),
):
    body = parse_form_json(ProductUpdateRequest, data) if data or not images else ProductUpdateRequest()
    return success_response("Product updated successfully",
                            product_service.update_product(db, helper, product_id, body, images or []))


@admin_router.delete("/{product_id}", summary="Delete product")
def delete_product(
    product_id: int,
    db:     Session          = Depends(get_db),
    helper: AttachmentHelper = Depends(get_attachment_helper),
    _:      TokenClaims      = Depends(get_admin_claims),
):
    product_service.delete_product(db, helper, product_id)
    return success_response("Product deleted successfully", None)
