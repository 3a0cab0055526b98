from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet_venue.database import Base


class Employee(Base):
    __tablename__ = "employees"

    id           = Column(Integer, primary_key=True, index=True)
    firstName    = Column(String(100), nullable=False)
    lastName     = Column(String(100), nullable=False)
    email        = Column(String(255), nullable=True, index=True)
    phone        = Column(String(30), nullable=True)
    departmentId = Column(Integer, ForeignKey("departments.id"), nullable=False)
    isActive     = Column(Boolean, default=True, nullable=False)
    createdAt    = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    department = relationship("Department", back_populates="employees")
    licenses   = relationship("DriverLicense", back_populates="employee", cascade="all, delete-orphan")
    user       = relationship("User", back_populates="employee", uselist=False)

    @property
    def fullName(self) -> str:
        return f"{self.firstName} {self.lastName}"

    def __repr__(self):
        return f"<Employee id={self.id} name={self.fullName}>"
