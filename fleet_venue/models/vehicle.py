from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey
from sqlalchemy.orm import relationship
from fleet_venue.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id                 = Column(Integer, primary_key=True, index=True)
    resourceId         = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"),
                                unique=True, nullable=False)
    plateNumber        = Column(String(20), unique=True, nullable=False, index=True)
    brand              = Column(String(100), nullable=False)
    model              = Column(String(100), nullable=False)
    year               = Column(Integer, nullable=False)
    color              = Column(String(50), nullable=True)
    chassisNumber      = Column(String(100), nullable=True)
    engineNumber       = Column(String(100), nullable=True)
    vehicleTypeId      = Column(Integer, ForeignKey("vehicle_types.id"), nullable=True)
    registrationCard   = Column(String(100), nullable=True)
    registrationExpiry = Column(Date, nullable=True)
    insurancePolicy    = Column(String(100), nullable=True)
    insuranceExpiry    = Column(Date, nullable=True)
    currentOdometer    = Column(Integer, default=0, nullable=False)
    notes              = Column(Text, nullable=True)

    # ─── Relationships ─────────────────────────────────────────────────────────
    resource            = relationship("Resource", back_populates="vehicle")
    vehicle_type        = relationship("VehicleType")
    assignments         = relationship("VehicleAssignment", back_populates="vehicle")
    fuel_loads          = relationship("FuelLoad", back_populates="vehicle")
    maintenance_records = relationship("MaintenanceRecord", back_populates="vehicle")

    def __repr__(self):
        return f"<Vehicle id={self.id} plate={self.plateNumber}>"
