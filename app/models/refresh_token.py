from sqlalchemy import Column, Integer, Text, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from app.database import Base


class RefreshToken(Base):
    """
    One issued refresh token. Rows are never deleted: revocation and rotation
    only stamp `revokedAt` (and `replacedBy` when a successor was minted), so
    the table doubles as an audit trail of every session chain.

    Active iff revokedAt IS NULL and expiresAt is in the future.
    """
    __tablename__ = "refresh_tokens"

    id         = Column(Integer, primary_key=True, index=True)
    userId     = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    token      = Column(Text, nullable=False, unique=True)
    expiresAt  = Column(TIMESTAMP(timezone=True), nullable=False)
    createdAt  = Column(TIMESTAMP(timezone=True), nullable=False)
    revokedAt  = Column(TIMESTAMP(timezone=True), nullable=True)
    replacedBy = Column(Text, nullable=True)

    # ─── Relationships ─────────────────────────────────────────────────────────
    user = relationship("User", back_populates="refresh_tokens")

    def __repr__(self):
        return f"<RefreshToken id={self.id} userId={self.userId} revokedAt={self.revokedAt}>"
