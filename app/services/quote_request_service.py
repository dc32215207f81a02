import logging
from datetime import datetime, timezone

from fastapi import UploadFile
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.product import Product
from app.models.quote_request import QuoteRequest, QuoteRequestItem, QuoteNote, QuoteStatus
from app.schemas.quote_request import QuoteRequestCreate, QuoteStatusUpdate, AdminNoteCreate
from app.services.attachment_service import AttachmentHelper, StoredFile, serialize_attachment
from app.services.auth_service import TokenClaims
from app.utils.exceptions import NotFoundException, InvalidFileException, PersistenceFailedException

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"


def _serialize_note(n: QuoteNote) -> dict:
    return {
        "id":          n.id,
        "authorId":    n.authorId,
        "authorEmail": n.authorEmail,
        "content":     n.content,
        "pdf":         serialize_attachment(n.quote_pdf),
        "createdAt":   n.createdAt.isoformat() if n.createdAt else None,
    }


def _serialize(q: QuoteRequest, detail: bool = False) -> dict:
    data = {
        "id":        q.id,
        "fullName":  q.fullName,
        "email":     q.email,
        "phone":     q.phone,
        "country":   q.country,
        "city":      q.city,
        "address":   q.address,
        "message":   q.message,
        "status":    q.status.value,
        "quotedAt":  q.quotedAt.isoformat() if q.quotedAt else None,
        "itemCount": len(q.items),
        "createdAt": q.createdAt.isoformat() if q.createdAt else None,
        "updatedAt": q.updatedAt.isoformat() if q.updatedAt else None,
    }
    if detail:
        data["items"] = [
            {
                "productId":   i.productId,
                "productName": i.productName,
                "productSlug": i.productSlug,
                "unitPrice":   float(i.unitPrice) if i.unitPrice is not None else None,
                "quantity":    i.quantity,
            }
            for i in q.items
        ]
        data["notes"] = [_serialize_note(n) for n in q.notes]
    return data


class QuoteRequestService:

    def _get(self, db: Session, quote_id: int) -> QuoteRequest:
        q = db.query(QuoteRequest).filter(QuoteRequest.id == quote_id).first()
        if not q:
            raise NotFoundException("Quote request")
        return q

    # ─── Public create ────────────────────────────────────────────────────────
    def create(self, db: Session, data: QuoteRequestCreate) -> dict:
        ids = {i.productId for i in data.items}
        products = {
            p.id: p for p in db.query(Product).filter(
                Product.id.in_(list(ids)), Product.isDisabled.is_(False),
            ).all()
        }
        if len(products) != len(ids):
            raise NotFoundException("Product")

        q = QuoteRequest(
            fullName=data.fullName,
            email=str(data.email).lower(),
            phone=data.phone,
            country=data.country,
            city=data.city,
            address=data.address,
            message=data.message,
            status=QuoteStatus.NEW,
        )
        for item in data.items:
            p = products[item.productId]
            q.items.append(QuoteRequestItem(
                productId=p.id,
                quantity=item.quantity,
                productName=p.name,
                productSlug=p.slug,
                unitPrice=p.price,
            ))
        db.add(q)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Could not store quote request")
            raise PersistenceFailedException()
        db.refresh(q)
        logger.info(f"Quote request {q.id} received with {len(q.items)} item(s)")
        return _serialize(q, detail=True)

    # ─── Admin read ───────────────────────────────────────────────────────────
    def list_quotes(
        self, db: Session, page: int, limit: int,
        status: QuoteStatus | None, email: str | None, search: str | None,
    ) -> tuple[list[dict], int]:
        q = db.query(QuoteRequest)
        if status:
            q = q.filter(QuoteRequest.status == status)
        if email:
            q = q.filter(QuoteRequest.email == email.strip().lower())
        if search:
            kw = f"%{search.strip()}%"
            q = q.filter(or_(
                QuoteRequest.fullName.ilike(kw),
                QuoteRequest.email.ilike(kw),
                QuoteRequest.message.ilike(kw),
            ))

        total = q.count()
        items = q.order_by(QuoteRequest.createdAt.desc(), QuoteRequest.id.desc()) \
                 .offset((page - 1) * limit).limit(limit).all()
        return [_serialize(r) for r in items], total

    def get_quote(self, db: Session, quote_id: int) -> dict:
        return _serialize(self._get(db, quote_id), detail=True)

    # ─── Status ───────────────────────────────────────────────────────────────
    def update_status(self, db: Session, quote_id: int, data: QuoteStatusUpdate) -> dict:
        q = self._get(db, quote_id)
        q.status = data.status
        if data.status == QuoteStatus.QUOTED:
            q.quotedAt = datetime.now(timezone.utc)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Could not update status of quote request {quote_id}")
            raise PersistenceFailedException()
        db.refresh(q)
        return _serialize(q, detail=True)

    # ─── Notes ────────────────────────────────────────────────────────────────
    def add_note(
        self, db: Session, helper: AttachmentHelper, quote_id: int,
        data: AdminNoteCreate, pdf: UploadFile | None, author: TokenClaims,
    ) -> dict:
        q = self._get(db, quote_id)

        files = []
        if pdf:
            pending = helper.read(pdf)
            if pending.mime_type != PDF_MIME:
                raise InvalidFileException("quote attachment must be a PDF", field="pdf")
            files.append(pending)

        note = QuoteNote(
            authorId=author.user_id,
            authorEmail=author.email,
            content=data.content,
            createdAt=datetime.now(timezone.utc),
        )

        def apply(stored: list[StoredFile]) -> None:
            if stored:
                note.quote_pdf = stored[0].to_model()
            q.notes.append(note)
            if q.status == QuoteStatus.NEW:
                q.status = QuoteStatus.IN_PROGRESS

        helper.replace_attachment(db, f"quotes/{q.id}", files, apply)
        db.refresh(note)
        return _serialize_note(note)


quote_request_service = QuoteRequestService()
