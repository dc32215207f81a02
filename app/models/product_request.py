import enum
from sqlalchemy import Column, Integer, String, Text, Enum, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class ProductRequestStatus(str, enum.Enum):
    NEW         = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    ANSWERED    = "ANSWERED"
    REJECTED    = "REJECTED"
    CLOSED      = "CLOSED"


class ProductRequest(Base):
    __tablename__ = "product_requests"

    id              = Column(Integer, primary_key=True, index=True)
    fullName        = Column(String(200), nullable=False)
    email           = Column(String(255), nullable=False, index=True)
    phone           = Column(String(50), nullable=True)
    company         = Column(String(200), nullable=True)
    vatNumber       = Column(String(100), nullable=True)
    country         = Column(String(100), nullable=True)
    city            = Column(String(100), nullable=True)
    description     = Column(Text, nullable=False)
    quantity        = Column(Integer, default=1, nullable=False)
    desiredDeadline = Column(TIMESTAMP(timezone=True), nullable=True)
    budget          = Column(String(100), nullable=True)
    referenceUrl    = Column(String(1000), nullable=True)
    status          = Column(Enum(ProductRequestStatus), default=ProductRequestStatus.NEW,
                             nullable=False, index=True)
    answeredAt      = Column(TIMESTAMP(timezone=True), nullable=True)
    createdAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                             onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    reference_image = relationship("StoredAttachment", uselist=False, cascade="all, delete-orphan",
                                   foreign_keys="StoredAttachment.productRequestId")
    notes           = relationship("ProductRequestNote", back_populates="product_request",
                                   cascade="all, delete-orphan", order_by="ProductRequestNote.id")

    def __repr__(self):
        return f"<ProductRequest id={self.id} status={self.status}>"


class ProductRequestNote(Base):
    __tablename__ = "product_request_notes"

    id               = Column(Integer, primary_key=True, index=True)
    productRequestId = Column(Integer, ForeignKey("product_requests.id", ondelete="CASCADE"), nullable=False)
    authorId         = Column(Integer, ForeignKey("users.id"), nullable=False)
    authorEmail      = Column(String(255), nullable=False)
    content          = Column(Text, nullable=False)
    createdAt        = Column(TIMESTAMP(timezone=True), nullable=False)

    product_request = relationship("ProductRequest", back_populates="notes")
    attachment      = relationship("StoredAttachment", uselist=False, cascade="all, delete-orphan",
                                   foreign_keys="StoredAttachment.productRequestNoteId")
