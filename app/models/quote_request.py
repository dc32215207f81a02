import enum
from sqlalchemy import Column, Integer, String, Text, Numeric, Enum, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class QuoteStatus(str, enum.Enum):
    NEW         = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    QUOTED      = "QUOTED"
    REJECTED    = "REJECTED"
    CLOSED      = "CLOSED"


class QuoteRequest(Base):
    __tablename__ = "quote_requests"

    id        = Column(Integer, primary_key=True, index=True)
    fullName  = Column(String(200), nullable=False)
    email     = Column(String(255), nullable=False, index=True)
    phone     = Column(String(50), nullable=True)
    country   = Column(String(100), nullable=True)
    city      = Column(String(100), nullable=True)
    address   = Column(String(300), nullable=True)
    message   = Column(Text, nullable=True)
    status    = Column(Enum(QuoteStatus), default=QuoteStatus.NEW, nullable=False, index=True)
    quotedAt  = Column(TIMESTAMP(timezone=True), nullable=True)
    createdAt = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                       onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    items = relationship("QuoteRequestItem", back_populates="quote_request", cascade="all, delete-orphan")
    notes = relationship("QuoteNote", back_populates="quote_request", cascade="all, delete-orphan",
                         order_by="QuoteNote.id")

    def __repr__(self):
        return f"<QuoteRequest id={self.id} status={self.status}>"


class QuoteRequestItem(Base):
    """Line item with a snapshot of the product as it was when the quote was requested."""
    __tablename__ = "quote_request_items"

    id             = Column(Integer, primary_key=True, index=True)
    quoteRequestId = Column(Integer, ForeignKey("quote_requests.id", ondelete="CASCADE"), nullable=False)
    productId      = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    quantity       = Column(Integer, nullable=False)
    productName    = Column(String(200), nullable=True)
    productSlug    = Column(String(220), nullable=True)
    unitPrice      = Column(Numeric(12, 2), nullable=True)

    quote_request = relationship("QuoteRequest", back_populates="items")


class QuoteNote(Base):
    __tablename__ = "quote_notes"

    id             = Column(Integer, primary_key=True, index=True)
    quoteRequestId = Column(Integer, ForeignKey("quote_requests.id", ondelete="CASCADE"), nullable=False)
    authorId       = Column(Integer, ForeignKey("users.id"), nullable=False)
    authorEmail    = Column(String(255), nullable=False)
    content        = Column(Text, nullable=False)
    createdAt      = Column(TIMESTAMP(timezone=True), nullable=False)

    quote_request = relationship("QuoteRequest", back_populates="notes")
    quote_pdf     = relationship("StoredAttachment", uselist=False, cascade="all, delete-orphan",
                                 foreign_keys="StoredAttachment.quoteNoteId")
