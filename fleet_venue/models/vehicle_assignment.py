from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, TIMESTAMP, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet_venue.database import Base
from fleet_venue.models.booking import BookingStatus


class VehicleAssignment(Base):
    __tablename__ = "vehicle_assignments"

    id               = Column(Integer, primary_key=True, index=True)
    vehicleId        = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    driverId         = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    requesterId      = Column(Integer, ForeignKey("employees.id"), nullable=True)
    assignmentTypeId = Column(Integer, ForeignKey("assignment_types.id"), nullable=True)
    # Window in naive UTC; endDate NULL = open-ended
    startDate        = Column(DateTime, nullable=False)
    endDate          = Column(DateTime, nullable=True)
    destination      = Column(String(255), nullable=True)
    purpose          = Column(Text, nullable=True)
    startOdometer    = Column(Integer, nullable=False)
    startFuelLevel   = Column(String(20), nullable=True)
    endOdometer      = Column(Integer, nullable=True)
    endFuelLevel     = Column(String(20), nullable=True)
    notes            = Column(Text, nullable=True)
    status           = Column(Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False, index=True)
    authorizedById   = Column(Integer, ForeignKey("users.id"), nullable=True)
    authorizedAt     = Column(TIMESTAMP(timezone=True), nullable=True)
    closedAt         = Column(TIMESTAMP(timezone=True), nullable=True)
    createdById      = Column(Integer, ForeignKey("users.id"), nullable=True)
    createdAt        = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt        = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                              onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle         = relationship("Vehicle", back_populates="assignments")
    driver          = relationship("Employee", foreign_keys=[driverId])
    requester       = relationship("Employee", foreign_keys=[requesterId])
    assignment_type = relationship("AssignmentType")
    authorized_by   = relationship("User", foreign_keys=[authorizedById])
    created_by      = relationship("User", foreign_keys=[createdById])
    trip_logs       = relationship("TripLog", back_populates="assignment", cascade="all, delete-orphan")
    fuel_loads      = relationship("FuelLoad", back_populates="assignment")

    def __repr__(self):
        return f"<VehicleAssignment id={self.id} status={self.status} vehicleId={self.vehicleId}>"
