from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey, TIMESTAMP, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet_venue.database import Base


class MaintenanceRecord(Base):
    __tablename__ = "maintenance_records"

    id                = Column(Integer, primary_key=True, index=True)
    vehicleId         = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    maintenanceTypeId = Column(Integer, ForeignKey("maintenance_types.id"), nullable=False)
    description       = Column(Text, nullable=False)
    serviceDate       = Column(Date, nullable=False)
    odometer          = Column(Integer, nullable=True)
    cost              = Column(Numeric(12, 2), nullable=True)
    provider          = Column(String(150), nullable=True)
    notes             = Column(Text, nullable=True)
    completedAt       = Column(TIMESTAMP(timezone=True), nullable=True)  # NULL = ongoing
    createdById       = Column(Integer, ForeignKey("users.id"), nullable=True)
    createdAt         = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle          = relationship("Vehicle", back_populates="maintenance_records")
    maintenance_type = relationship("MaintenanceType")

    def __repr__(self):
        return f"<MaintenanceRecord id={self.id} vehicleId={self.vehicleId}>"
