from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional

from app.config import settings
from app.database import get_db
from app.dependencies import get_admin_claims, get_attachment_helper
from app.models.product_request import ProductRequestStatus
from app.schemas.product_request import ProductRequestCreate, ProductRequestStatusUpdate
from app.schemas.quote_request import AdminNoteCreate
from app.schemas.common import success_response, paginated_response, clamp_pagination, parse_form_json
from app.services.attachment_service import AttachmentHelper
from app.services.auth_service import TokenClaims
from app.services.product_request_service import product_request_service

router = APIRouter(prefix="/product-requests")
admin_router = APIRouter(prefix="/admin/product-requests")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Submit a custom product request (multipart)")
def create_product_request(
    data:   Optional[str]        = Form(None, description="JSON payload"),
    image:  Optional[UploadFile] = File(None, description="Reference image or PDF"),
    db:     Session              = Depends(get_db),
    helper: AttachmentHelper     = Depends(get_attachment_helper),
):
    body = parse_form_json(ProductRequestCreate, data)
    return success_response("Product request received", product_request_service.create(db, helper, body, image))


@admin_router.get("", summary="List product requests (paginated, newest first)")
def list_product_requests(
    page:   int                            = Query(1),
    limit:  Optional[int]                  = Query(None),
    status: Optional[ProductRequestStatus] = Query(None),
    email:  Optional[str]                  = Query(None),
    q:      Optional[str]                  = Query(None),
    db:     Session                        = Depends(get_db),
    _:      TokenClaims                    = Depends(get_admin_claims),
):
    page, limit = clamp_pagination(page, limit, settings.DEFAULT_READ_QUERY_LIMIT, settings.READ_QUERY_MAX_LIMIT)
    data, total = product_request_service.list_requests(db, page, limit, status, email, q)
    return paginated_response("Product requests retrieved successfully", data, total, page, limit)


@admin_router.get("/{request_id}", summary="Get product request with notes")
def get_product_request(request_id: int, db: Session = Depends(get_db), _: TokenClaims = Depends(get_admin_claims)):
    return success_response("Product request retrieved", product_request_service.get_request(db, request_id))


@admin_router.patch("/{request_id}/status", summary="Change product request status")
def update_product_request_status(
    request_id: int,
    body:       ProductRequestStatusUpdate,
    db:         Session     = Depends(get_db),
    _:          TokenClaims = Depends(get_admin_claims),
):
    data = product_request_service.update_status(db, request_id, body)
    return success_response("Product request status updated", data)


@admin_router.post("/{request_id}/notes", status_code=status.HTTP_201_CREATED,
                   summary="Add an admin note, optionally with a file")
def add_product_request_note(
    request_id: int,
    data:   Optional[str]        = Form(None, description="JSON payload"),
    file:   Optional[UploadFile] = File(None),
    db:     Session              = Depends(get_db),
    helper: AttachmentHelper     = Depends(get_attachment_helper),
    claims: TokenClaims          = Depends(get_admin_claims),
):
    body = parse_form_json(AdminNoteCreate, data)
    return success_response("Note added",
                            product_request_service.add_note(db, helper, request_id, body, file, claims))
