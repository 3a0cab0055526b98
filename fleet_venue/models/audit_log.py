from sqlalchemy import Column, Integer, String, Text, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet_venue.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id          = Column(Integer, primary_key=True, index=True)
    userId      = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)  # NULL = system action
    action      = Column(String(100), nullable=False)       # e.g. CREATE, AUTHORIZE, CANCEL, LOGIN
    entityType  = Column(String(100), nullable=False)       # e.g. VehicleAssignment, RoomReservation
    entityId    = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    user = relationship("User", back_populates="audit_logs")

    def __repr__(self):
        return f"<AuditLog id={self.id} action={self.action} entity={self.entityType}:{self.entityId}>"


class BookingChangeAudit(Base):
    """Append-only history of protected booking fields (dates, times, names)."""
    __tablename__ = "booking_change_audits"

    id          = Column(Integer, primary_key=True, index=True)
    entityType  = Column(String(100), nullable=False, index=True)
    entityId    = Column(Integer, nullable=False, index=True)
    field       = Column(String(100), nullable=False)
    oldValue    = Column(Text, nullable=True)
    newValue    = Column(Text, nullable=True)
    reason      = Column(Text, nullable=True)
    changedById = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    changed_by = relationship("User")

    def __repr__(self):
        return f"<BookingChangeAudit {self.entityType}:{self.entityId} {self.field}>"
