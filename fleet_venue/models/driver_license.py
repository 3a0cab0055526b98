import enum
from sqlalchemy import Column, Integer, String, Text, Date, Enum, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet_venue.database import Base


class LicenseStatus(str, enum.Enum):
    ACTIVE    = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    EXPIRED   = "EXPIRED"


class DriverLicense(Base):
    __tablename__ = "driver_licenses"

    id            = Column(Integer, primary_key=True, index=True)
    employeeId    = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    licenseNumber = Column(String(50), unique=True, nullable=False)
    licenseType   = Column(String(20), nullable=False)
    issueDate     = Column(Date, nullable=False)
    expiryDate    = Column(Date, nullable=False)
    status        = Column(Enum(LicenseStatus), default=LicenseStatus.ACTIVE, nullable=False)
    restrictions  = Column(Text, nullable=True)
    createdAt     = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    employee = relationship("Employee", back_populates="licenses")

    def __repr__(self):
        return f"<DriverLicense id={self.id} employeeId={self.employeeId} status={self.status}>"
