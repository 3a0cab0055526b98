from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, TIMESTAMP, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet_venue.database import Base


class FuelLoad(Base):
    __tablename__ = "fuel_loads"

    id            = Column(Integer, primary_key=True, index=True)
    vehicleId     = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    assignmentId  = Column(Integer, ForeignKey("vehicle_assignments.id"), nullable=True)
    loadedAt      = Column(DateTime, nullable=False)
    liters        = Column(Numeric(10, 2), nullable=False)
    totalCost     = Column(Numeric(14, 2), nullable=False)
    odometer      = Column(Integer, nullable=False)
    station       = Column(String(150), nullable=True)
    invoiceNumber = Column(String(50), nullable=True)
    notes         = Column(Text, nullable=True)
    createdById   = Column(Integer, ForeignKey("users.id"), nullable=True)
    createdAt     = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle    = relationship("Vehicle", back_populates="fuel_loads")
    assignment = relationship("VehicleAssignment", back_populates="fuel_loads")

    def __repr__(self):
        return f"<FuelLoad id={self.id} vehicleId={self.vehicleId} total={self.totalCost}>"
