from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Numeric, JSON, ForeignKey, Table, TIMESTAMP,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


product_categories = Table(
    "product_categories",
    Base.metadata,
    Column("productId",  Integer, ForeignKey("products.id",   ondelete="CASCADE"), primary_key=True),
    Column("categoryId", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Product(Base):
    __tablename__ = "products"

    id              = Column(Integer, primary_key=True, index=True)
    name            = Column(String(200), nullable=False)
    slug            = Column(String(220), unique=True, nullable=False, index=True)
    price           = Column(Numeric(12, 2), nullable=False)
    quantity        = Column(Integer, default=0, nullable=False)
    description     = Column(Text, nullable=True)
    descriptionFull = Column(Text, nullable=True)
    dimensions      = Column(String(200), nullable=True)
    weight          = Column(String(100), nullable=True)
    materials       = Column(JSON, default=list, nullable=False)
    colors          = Column(JSON, default=list, nullable=False)
    isTrending      = Column(Boolean, default=False, nullable=False, index=True)
    isDisabled      = Column(Boolean, default=False, nullable=False)
    createdAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                             onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    categories = relationship("Category", secondary=product_categories, back_populates="products")
    images     = relationship("StoredAttachment", cascade="all, delete-orphan",
                              foreign_keys="StoredAttachment.productId",
                              order_by="StoredAttachment.position")

    def __repr__(self):
        return f"<Product id={self.id} slug={self.slug}>"
