from sqlalchemy import Column, Integer, Text, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from fleet_venue.database import Base


class Room(Base):
    __tablename__ = "rooms"

    id          = Column(Integer, primary_key=True, index=True)
    resourceId  = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"),
                         unique=True, nullable=False)
    length      = Column(Numeric(8, 2), nullable=True)
    width       = Column(Numeric(8, 2), nullable=True)
    stageLength = Column(Numeric(8, 2), nullable=True)
    stageWidth  = Column(Numeric(8, 2), nullable=True)
    note        = Column(Text, nullable=True)

    # ─── Relationships ─────────────────────────────────────────────────────────
    resource          = relationship("Resource", back_populates="room")
    capacities        = relationship("RoomCapacity", back_populates="room", cascade="all, delete-orphan")
    costs             = relationship("RoomCost", back_populates="room", cascade="all, delete-orphan")
    offered_services  = relationship("RoomOfferedService", cascade="all, delete-orphan")
    offered_equipment = relationship("RoomOfferedEquipment", cascade="all, delete-orphan")
    offered_tastings  = relationship("RoomOfferedTasting", cascade="all, delete-orphan")
    reservations      = relationship("RoomReservation", back_populates="room")

    @property
    def hasStage(self) -> bool:
        return self.stageLength is not None and self.stageWidth is not None

    def __repr__(self):
        return f"<Room id={self.id} resourceId={self.resourceId}>"
