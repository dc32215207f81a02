from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional

from app.config import settings
from app.database import get_db
from app.dependencies import get_admin_claims, get_attachment_helper
from app.schemas.category import CategoryCreateRequest, CategoryUpdateRequest
from app.schemas.common import success_response, paginated_response, clamp_pagination, parse_form_json
from app.services.attachment_service import AttachmentHelper
from app.services.auth_service import TokenClaims
from app.services.category_service import category_service

router = APIRouter(prefix="/categories")
admin_router = APIRouter(prefix="/admin/categories")


# ─── Public ───────────────────────────────────────────────────────────────────
@router.get("", summary="List categories (paginated)")
def list_categories(
    page:     int            = Query(1),
    limit:    Optional[int]  = Query(None),
    q:        Optional[str]  = Query(None, description="Name contains (case-insensitive)"),
    isActive: Optional[bool] = Query(None),
    db:       Session        = Depends(get_db),
):
    page, limit = clamp_pagination(page, limit, settings.DEFAULT_READ_QUERY_LIMIT, settings.READ_QUERY_MAX_LIMIT)
    data, total = category_service.list_categories(db, page, limit, q, isActive)
    return paginated_response("Categories retrieved successfully", data, total, page, limit)


@router.get("/slug/{slug}", summary="Get category by slug")
def get_category_by_slug(slug: str, db: Session = Depends(get_db)):
    return success_response("Category retrieved", category_service.get_by_slug(db, slug))


@router.get("/{category_id}", summary="Get category by ID")
def get_category(category_id: int, db: Session = Depends(get_db)):
    return success_response("Category retrieved", category_service.get_category(db, category_id))


# ─── Admin ────────────────────────────────────────────────────────────────────
@admin_router.post("", status_code=status.HTTP_201_CREATED, summary="Create category (multipart)")
def create_category(
    data:   Optional[str]        = Form(None, description="JSON payload"),
    image:  Optional[UploadFile] = File(None),
    db:     Session              = Depends(get_db),
    helper: AttachmentHelper     = Depends(get_attachment_helper),
    _:      TokenClaims          = Depends(get_admin_claims),
):
    body = parse_form_json(CategoryCreateRequest, data)
    return success_response("Category created successfully",
                            category_service.create_category(db, helper, body, image))


@admin_router.patch("/{category_id}", summary="Update category (multipart)")
def update_category(
    category_id: int,
    data:   Optional[str]        = Form(None, description="JSON payload"),
    image:  Optional[UploadFile] = File(None),
    db:     Session              = Depends(get_db),
    helper: AttachmentHelper     = Depends(get_attachment_helper),
    _:      TokenClaims          = Depends(get_admin_claims),
):
    # An image alone is a valid update
    body = parse_form_json(CategoryUpdateRequest, data) if data or not image else CategoryUpdateRequest()
    return success_response("Category updated successfully",
                            category_service.update_category(db, helper, category_id, body, image))


@admin_router.delete("/{category_id}", summary="Delete category")
def delete_category(
    category_id: int,
    db:     Session          = Depends(get_db),
    helper: AttachmentHelper = Depends(get_attachment_helper),
    _:      TokenClaims      = Depends(get_admin_claims),
):
    category_service.delete_category(db, helper, category_id)
    return success_response("Category deleted successfully", None)
