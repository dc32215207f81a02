import logging
from datetime import datetime, timezone

from fastapi import UploadFile
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.product_request import ProductRequest, ProductRequestNote, ProductRequestStatus
from app.schemas.product_request import ProductRequestCreate, ProductRequestStatusUpdate
from app.schemas.quote_request import AdminNoteCreate
from app.services.attachment_service import AttachmentHelper, StoredFile, serialize_attachment
from app.services.auth_service import TokenClaims
from app.utils.exceptions import NotFoundException, PersistenceFailedException

logger = logging.getLogger(__name__)


def _serialize_note(n: ProductRequestNote) -> dict:
    return {
        "id":          n.id,
        "authorId":    n.authorId,
        "authorEmail": n.authorEmail,
        "content":     n.content,
        "attachment":  serialize_attachment(n.attachment),
        "createdAt":   n.createdAt.isoformat() if n.createdAt else None,
    }


def _serialize(r: ProductRequest, detail: bool = False) -> dict:
    data = {
        "id":              r.id,
        "fullName":        r.fullName,
        "email":           r.email,
        "phone":           r.phone,
        "company":         r.company,
        "vatNumber":       r.vatNumber,
        "country":         r.country,
        "city":            r.city,
        "description":     r.description,
        "quantity":        r.quantity,
        "desiredDeadline": r.desiredDeadline.isoformat() if r.desiredDeadline else None,
        "budget":          r.budget,
        "referenceUrl":    r.referenceUrl,
        "referenceImage":  serialize_attachment(r.reference_image),
        "status":          r.status.value,
        "answeredAt":      r.answeredAt.isoformat() if r.answeredAt else None,
        "createdAt":       r.createdAt.isoformat() if r.createdAt else None,
        "updatedAt":       r.updatedAt.isoformat() if r.updatedAt else None,
    }
    if detail:
        data["notes"] = [_serialize_note(n) for n in r.notes]
    return data


class ProductRequestService:

    def _get(self, db: Session, request_id: int) -> ProductRequest:
        r = db.query(ProductRequest).filter(ProductRequest.id == request_id).first()
        if not r:
            raise NotFoundException("Product request")
        return r

    # ─── Public create ────────────────────────────────────────────────────────
    def create(
        self, db: Session, helper: AttachmentHelper,
        data: ProductRequestCreate, image: UploadFile | None,
    ) -> dict:
        r = ProductRequest(
            fullName=data.fullName,
            email=str(data.email).lower(),
            phone=data.phone,
            company=data.company,
            vatNumber=data.vatNumber,
            country=data.country,
            city=data.city,
            description=data.description,
            quantity=data.quantity or 1,
            desiredDeadline=data.desiredDeadline,
            budget=data.budget,
            referenceUrl=data.referenceUrl,
            status=ProductRequestStatus.NEW,
        )
        # Validate before the row exists so a bad file never leaves a request behind
        files = [helper.read(image)] if image else []
        db.add(r)
        db.flush()

        def apply(stored: list[StoredFile]) -> None:
            if stored:
                r.reference_image = stored[0].to_model()

        helper.replace_attachment(db, f"product-requests/{r.id}", files, apply)
        db.refresh(r)
        logger.info(f"Product request {r.id} received")
        return _serialize(r, detail=True)

    # ─── Admin read ───────────────────────────────────────────────────────────
    def list_requests(
        self, db: Session, page: int, limit: int,
        status: ProductRequestStatus | None, email: str | None, search: str | None,
    ) -> tuple[list[dict], int]:
        q = db.query(ProductRequest)
        if status:
            q = q.filter(ProductRequest.status == status)
        if email:
            q = q.filter(ProductRequest.email == email.strip().lower())
        if search:
            kw = f"%{search.strip()}%"
            q = q.filter(or_(
                ProductRequest.fullName.ilike(kw),
                ProductRequest.email.ilike(kw),
                ProductRequest.company.ilike(kw),
                ProductRequest.description.ilike(kw),
            ))

        total = q.count()
        items = q.order_by(ProductRequest.createdAt.desc(), ProductRequest.id.desc()) \
                 .offset((page - 1) * limit).limit(limit).all()
        return [_serialize(r) for r in items], total

    def get_request(self, db: Session, request_id: int) -> dict:
        return _serialize(self._get(db, request_id), detail=True)

    # ─── Status ───────────────────────────────────────────────────────────────
    def update_status(self, db: Session, request_id: int, data: ProductRequestStatusUpdate) -> dict:
        r = self._get(db, request_id)
        r.status = data.status
        if data.status == ProductRequestStatus.ANSWERED:
            r.answeredAt = datetime.now(timezone.utc)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Could not update status of product request {request_id}")
            raise PersistenceFailedException()
        db.refresh(r)
        return _serialize(r, detail=True)

    # ─── Notes ────────────────────────────────────────────────────────────────
    def add_note(
        self, db: Session, helper: AttachmentHelper, request_id: int,
        data: AdminNoteCreate, file: UploadFile | None, author: TokenClaims,
    ) -> dict:
        r = self._get(db, request_id)
        files = [helper.read(file)] if file else []

        note = ProductRequestNote(
            authorId=author.user_id,
            authorEmail=author.email,
            content=data.content,
            createdAt=datetime.now(timezone.utc),
        )

        def apply(stored: list[StoredFile]) -> None:
            if stored:
                note.attachment = stored[0].to_model()
            r.notes.append(note)
            if r.status == ProductRequestStatus.NEW:
                r.status = ProductRequestStatus.IN_PROGRESS

        helper.replace_attachment(db, f"product-requests/{r.id}", files, apply)
        db.refresh(note)
        return _serialize_note(note)


product_request_service = ProductRequestService()
