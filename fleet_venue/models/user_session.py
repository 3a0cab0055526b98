from sqlalchemy import Column, Integer, String, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet_venue.database import Base


class UserSession(Base):
    __tablename__ = "user_sessions"

    id         = Column(Integer, primary_key=True, index=True)
    userId     = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    sessionId  = Column(String(64), unique=True, nullable=False, index=True)
    createdAt  = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    lastSeenAt = Column(TIMESTAMP(timezone=True), nullable=False)
    expiresAt  = Column(TIMESTAMP(timezone=True), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    user = relationship("User", back_populates="session")

    def __repr__(self):
        return f"<UserSession userId={self.userId} expiresAt={self.expiresAt}>"
