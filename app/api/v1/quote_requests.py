from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional

from app.config import settings
from app.database import get_db
from app.dependencies import get_admin_claims, get_attachment_helper
from app.models.quote_request import QuoteStatus
from app.schemas.quote_request import QuoteRequestCreate, QuoteStatusUpdate, AdminNoteCreate
from app.schemas.common import success_response, paginated_response, clamp_pagination, parse_form_json
from app.services.attachment_service import AttachmentHelper
from app.services.auth_service import TokenClaims
from app.services.quote_request_service import quote_request_service

router = APIRouter(prefix="/quote-requests")
admin_router = APIRouter(prefix="/admin/quote-requests")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Submit a quote request")
def create_quote_request(body: QuoteRequestCreate, db: Session = Depends(get_db)):
    return success_response("Quote request received", quote_request_service.create(db, body))


@admin_router.get("", summary="List quote requests (paginated, newest first)")
def list_quote_requests(
    page:   int                   = Query(1),
    limit:  Optional[int]         = Query(None),
    status: Optional[QuoteStatus] = Query(None),
    email:  Optional[str]         = Query(None),
    q:      Optional[str]         = Query(None),
    db:     Session               = Depends(get_db),
    _:      TokenClaims           = Depends(get_admin_claims),
):
    page, limit = clamp_pagination(page, limit, settings.DEFAULT_READ_QUERY_LIMIT, settings.READ_QUERY_MAX_LIMIT)
    data, total = quote_request_service.list_quotes(db, page, limit, status, email, q)
    return paginated_response("Quote requests retrieved successfully", data, total, page, limit)


@admin_router.get("/{quote_id}", summary="Get quote request with items and notes")
def get_quote_request(quote_id: int, db: Session = Depends(get_db), _: TokenClaims = Depends(get_admin_claims)):
    return success_response("Quote request retrieved", quote_request_service.get_quote(db, quote_id))


@admin_router.patch("/{quote_id}/status", summary="Change quote request status")
def update_quote_status(
    quote_id: int,
    body:     QuoteStatusUpdate,
    db:       Session     = Depends(get_db),
    _:        TokenClaims = Depends(get_admin_claims),
):
    return success_response("Quote request status updated", quote_request_service.update_status(db, quote_id, body))


@admin_router.post("/{quote_id}/notes", status_code=status.HTTP_201_CREATED,
                   summary="Add an admin note, optionally with a quote PDF")
def add_quote_note(
    quote_id: int,
    data:   Optional[str]        = Form(None, description="JSON payload"),
    pdf:    Optional[UploadFile] = File(None),
    db:     Session              = Depends(get_db),
    helper: AttachmentHelper     = Depends(get_attachment_helper),
    claims: TokenClaims          = Depends(get_admin_claims),
):
    body = parse_form_json(AdminNoteCreate, data)
    return success_response("Note added", quote_request_service.add_note(db, helper, quote_id, body, pdf, claims))
