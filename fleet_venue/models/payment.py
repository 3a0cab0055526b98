from sqlalchemy import Column, Integer, String, Text, ForeignKey, TIMESTAMP, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet_venue.database import Base


class Payment(Base):
    """One per reservation. Immutable once written."""
    __tablename__ = "payments"

    id            = Column(Integer, primary_key=True, index=True)
    reservationId = Column(Integer, ForeignKey("room_reservations.id", ondelete="CASCADE"),
                           unique=True, nullable=False)
    paymentTypeId = Column(Integer, ForeignKey("payment_types.id"), nullable=False)
    total         = Column(Numeric(14, 2), nullable=False)
    advance       = Column(Numeric(14, 2), nullable=False, default=0)
    balance       = Column(Numeric(14, 2), nullable=False, default=0)
    receiptNumber = Column(String(50), nullable=True)
    notes         = Column(Text, nullable=True)
    status        = Column(String(20), nullable=False, default="COMPLETED")
    createdById   = Column(Integer, ForeignKey("users.id"), nullable=True)
    paidAt        = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    reservation  = relationship("RoomReservation", back_populates="payment")
    payment_type = relationship("PaymentType")

    def __repr__(self):
        return f"<Payment id={self.id} reservationId={self.reservationId} total={self.total}>"
