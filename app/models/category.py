from sqlalchemy import Column, Integer, String, Text, Boolean, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Category(Base):
    __tablename__ = "categories"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String(200), nullable=False)
    slug        = Column(String(220), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    isActive    = Column(Boolean, default=False, nullable=False)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                         onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    image    = relationship("StoredAttachment", uselist=False, cascade="all, delete-orphan",
                            foreign_keys="StoredAttachment.categoryId")
    products = relationship("Product", secondary="product_categories", back_populates="categories")

    def __repr__(self):
        return f"<Category id={self.id} slug={self.slug}>"
