import enum
from sqlalchemy import Column, Integer, String, Enum, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet_venue.database import Base


class ResourceType(str, enum.Enum):
    VEHICLE = "VEHICLE"
    ROOM    = "ROOM"


class ResourceStatus(str, enum.Enum):
    AVAILABLE   = "AVAILABLE"
    IN_USE      = "IN_USE"
    MAINTENANCE = "MAINTENANCE"
    INACTIVE    = "INACTIVE"


class Resource(Base):
    """Shared id space for everything bookable; lock keys are resource ids."""
    __tablename__ = "resources"

    id        = Column(Integer, primary_key=True, index=True)
    name      = Column(String(200), nullable=False)
    type      = Column(Enum(ResourceType), nullable=False)
    status    = Column(Enum(ResourceStatus), default=ResourceStatus.AVAILABLE, nullable=False)
    createdAt = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                       onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle = relationship("Vehicle", back_populates="resource", uselist=False)
    room    = relationship("Room", back_populates="resource", uselist=False)

    def __repr__(self):
        return f"<Resource id={self.id} name={self.name} type={self.type} status={self.status}>"
