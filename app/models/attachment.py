from sqlalchemy import Column, Integer, String, BigInteger, ForeignKey, TIMESTAMP, CheckConstraint
from app.database import Base


class StoredAttachment(Base):
    """A file living in the object store, referenced by exactly one owner row."""
    __tablename__ = "stored_attachments"

    id                   = Column(Integer, primary_key=True, index=True)
    categoryId           = Column("categoryId",           Integer, ForeignKey("categories.id",            ondelete="CASCADE"), nullable=True)
    productId            = Column("productId",            Integer, ForeignKey("products.id",              ondelete="CASCADE"), nullable=True)
    productRequestId     = Column("productRequestId",     Integer, ForeignKey("product_requests.id",      ondelete="CASCADE"), nullable=True)
    quoteNoteId          = Column("quoteNoteId",          Integer, ForeignKey("quote_notes.id",           ondelete="CASCADE"), nullable=True)
    productRequestNoteId = Column("productRequestNoteId", Integer, ForeignKey("product_request_notes.id", ondelete="CASCADE"), nullable=True)
    publicUrl            = Column("publicUrl",  String(1000), nullable=False)
    objectKey            = Column("objectKey",  String(500), nullable=False, unique=True)
    mimeType             = Column("mimeType",   String(100), nullable=False)
    sizeBytes            = Column("sizeBytes",  BigInteger, nullable=False)
    fileName             = Column("fileName",   String(255), nullable=True)
    position             = Column(Integer, default=0, nullable=False)
    uploadedAt           = Column("uploadedAt", TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            '(CASE WHEN "categoryId"           IS NOT NULL THEN 1 ELSE 0 END +'
            ' CASE WHEN "productId"            IS NOT NULL THEN 1 ELSE 0 END +'
            ' CASE WHEN "productRequestId"     IS NOT NULL THEN 1 ELSE 0 END +'
            ' CASE WHEN "quoteNoteId"          IS NOT NULL THEN 1 ELSE 0 END +'
            ' CASE WHEN "productRequestNoteId" IS NOT NULL THEN 1 ELSE 0 END) = 1',
            name="chk_one_owner"
        ),
    )

    def __repr__(self):
        return f"<StoredAttachment id={self.id} key={self.objectKey}>"
