from sqlalchemy import Column, Integer, Text, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship
from fleet_venue.database import Base


class RoomCapacity(Base):
    __tablename__ = "room_capacities"
    __table_args__ = (UniqueConstraint("roomId", "layoutTypeId", name="uq_room_capacity_layout"),)

    id           = Column(Integer, primary_key=True, index=True)
    roomId       = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    layoutTypeId = Column(Integer, ForeignKey("layout_types.id"), nullable=False)
    people       = Column(Integer, nullable=False)

    room        = relationship("Room", back_populates="capacities")
    layout_type = relationship("LayoutType")


class RoomCost(Base):
    __tablename__ = "room_costs"
    __table_args__ = (UniqueConstraint("roomId", "costTypeId", name="uq_room_cost_type"),)

    id         = Column(Integer, primary_key=True, index=True)
    roomId     = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    costTypeId = Column(Integer, ForeignKey("cost_types.id"), nullable=False)
    amount     = Column(Numeric(14, 2), nullable=False)

    room      = relationship("Room", back_populates="costs")
    cost_type = relationship("CostType")


# ─── What a room offers (selectable on reservations) ──────────────────────────
class RoomOfferedService(Base):
    __tablename__ = "room_offered_services"
    __table_args__ = (UniqueConstraint("roomId", "serviceId", name="uq_room_service"),)

    id        = Column(Integer, primary_key=True, index=True)
    roomId    = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    serviceId = Column(Integer, ForeignKey("services.id"), nullable=False)
    note      = Column(Text, nullable=True)

    service = relationship("Service")


class RoomOfferedEquipment(Base):
    __tablename__ = "room_offered_equipment"
    __table_args__ = (UniqueConstraint("roomId", "equipmentId", name="uq_room_equipment"),)

    id          = Column(Integer, primary_key=True, index=True)
    roomId      = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    equipmentId = Column(Integer, ForeignKey("equipment.id"), nullable=False)
    note        = Column(Text, nullable=True)

    equipment = relationship("Equipment")


class RoomOfferedTasting(Base):
    __tablename__ = "room_offered_tastings"
    __table_args__ = (UniqueConstraint("roomId", "tastingId", name="uq_room_tasting"),)

    id        = Column(Integer, primary_key=True, index=True)
    roomId    = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    tastingId = Column(Integer, ForeignKey("tastings.id"), nullable=False)
    note      = Column(Text, nullable=True)

    tasting = relationship("Tasting")
