"""
Lookup tables. Each has a unique name and an optional description, and is
managed through the generic catalog service.
"""
from sqlalchemy import Column, Integer, String, Boolean
from fleet_venue.database import Base


class VehicleType(Base):
    __tablename__ = "vehicle_types"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String(100), unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<VehicleType id={self.id} name={self.name}>"


class AssignmentType(Base):
    __tablename__ = "assignment_types"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String(100), unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<AssignmentType id={self.id} name={self.name}>"


class MaintenanceType(Base):
    __tablename__ = "maintenance_types"

    id           = Column(Integer, primary_key=True, index=True)
    name         = Column(String(100), unique=True, nullable=False)
    description  = Column(String(255), nullable=True)
    isCorrective = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<MaintenanceType id={self.id} name={self.name} corrective={self.isCorrective}>"


class Service(Base):
    __tablename__ = "services"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String(150), unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Service id={self.id} name={self.name}>"


class Equipment(Base):
    __tablename__ = "equipment"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String(150), unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Equipment id={self.id} name={self.name}>"


class Tasting(Base):
    __tablename__ = "tastings"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String(150), unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Tasting id={self.id} name={self.name}>"


class LayoutType(Base):
    __tablename__ = "layout_types"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String(100), unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<LayoutType id={self.id} name={self.name}>"


class CostType(Base):
    __tablename__ = "cost_types"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String(100), unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<CostType id={self.id} name={self.name}>"


class PaymentType(Base):
    __tablename__ = "payment_types"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String(100), unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<PaymentType id={self.id} name={self.name}>"
