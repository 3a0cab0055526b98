from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet_venue.database import Base


class TripLog(Base):
    __tablename__ = "trip_logs"

    id             = Column(Integer, primary_key=True, index=True)
    assignmentId   = Column(Integer, ForeignKey("vehicle_assignments.id", ondelete="CASCADE"),
                            nullable=False, index=True)
    vehicleId      = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    driverId       = Column(Integer, ForeignKey("employees.id"), nullable=False)
    departureAt    = Column(DateTime, nullable=False)
    returnAt       = Column(DateTime, nullable=False)
    startOdometer  = Column(Integer, nullable=False)
    endOdometer    = Column(Integer, nullable=False)
    distance       = Column(Integer, nullable=False)
    startFuelLevel = Column(String(20), nullable=True)
    endFuelLevel   = Column(String(20), nullable=True)
    notes          = Column(Text, nullable=True)
    createdAt      = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    assignment = relationship("VehicleAssignment", back_populates="trip_logs")

    def __repr__(self):
        return f"<TripLog id={self.id} assignmentId={self.assignmentId} distance={self.distance}>"
