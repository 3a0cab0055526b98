import enum
from sqlalchemy import (
    Column, Integer, String, Text, Date, Time, Boolean, ForeignKey, TIMESTAMP, Enum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet_venue.database import Base
from fleet_venue.models.booking import BookingStatus


class RequesterType(str, enum.Enum):
    INTERNAL = "INTERNAL"
    EXTERNAL = "EXTERNAL"


class ExternalRequester(Base):
    __tablename__ = "external_requesters"

    id        = Column(Integer, primary_key=True, index=True)
    name      = Column(String(150), nullable=False)
    company   = Column(String(150), nullable=True)
    email     = Column(String(255), unique=True, nullable=False, index=True)  # stored lower-cased
    phone     = Column(String(30), nullable=True)
    createdAt = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    reservations = relationship("RoomReservation", back_populates="external_requester")

    def __repr__(self):
        return f"<ExternalRequester id={self.id} email={self.email}>"


class RoomReservation(Base):
    __tablename__ = "room_reservations"

    id                  = Column(Integer, primary_key=True, index=True)
    roomId              = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    eventName           = Column(String(200), nullable=False)
    eventDate           = Column(Date, nullable=False, index=True)
    startTime           = Column(Time, nullable=False)
    endTime             = Column(Time, nullable=False)
    participants        = Column(Integer, nullable=True)
    notes               = Column(Text, nullable=True)
    requesterType       = Column(Enum(RequesterType), nullable=False)
    employeeId          = Column(Integer, ForeignKey("employees.id"), nullable=True)
    externalRequesterId = Column(Integer, ForeignKey("external_requesters.id"), nullable=True)
    layoutTypeId        = Column(Integer, ForeignKey("layout_types.id"), nullable=True)
    capacity            = Column(Integer, nullable=True)
    roomNote            = Column(Text, nullable=True)
    requiresTasting     = Column(Boolean, default=False, nullable=False)
    status              = Column(Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False, index=True)
    contractIssuedAt    = Column(TIMESTAMP(timezone=True), nullable=True)
    createdById         = Column(Integer, ForeignKey("users.id"), nullable=True)
    createdAt           = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt           = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                                 onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    room               = relationship("Room", back_populates="reservations")
    employee           = relationship("Employee")
    external_requester = relationship("ExternalRequester", back_populates="reservations")
    layout_type        = relationship("LayoutType")
    created_by         = relationship("User")
    services           = relationship("ServiceSelection", back_populates="reservation",
                                      cascade="all, delete-orphan")
    equipment          = relationship("EquipmentSelection", back_populates="reservation",
                                      cascade="all, delete-orphan")
    tastings           = relationship("TastingSelection", back_populates="reservation",
                                      cascade="all, delete-orphan")
    payment            = relationship("Payment", back_populates="reservation", uselist=False,
                                      cascade="all, delete-orphan")

    def __repr__(self):
        return f"<RoomReservation id={self.id} status={self.status} roomId={self.roomId}>"


# ─── Detail rows ──────────────────────────────────────────────────────────────
class ServiceSelection(Base):
    __tablename__ = "reservation_services"

    id            = Column(Integer, primary_key=True, index=True)
    reservationId = Column(Integer, ForeignKey("room_reservations.id", ondelete="CASCADE"), nullable=False)
    serviceId     = Column(Integer, ForeignKey("services.id"), nullable=False)
    note          = Column(Text, nullable=True)

    reservation = relationship("RoomReservation", back_populates="services")
    service     = relationship("Service")


class EquipmentSelection(Base):
    __tablename__ = "reservation_equipment"

    id            = Column(Integer, primary_key=True, index=True)
    reservationId = Column(Integer, ForeignKey("room_reservations.id", ondelete="CASCADE"), nullable=False)
    equipmentId   = Column(Integer, ForeignKey("equipment.id"), nullable=False)
    note          = Column(Text, nullable=True)

    reservation = relationship("RoomReservation", back_populates="equipment")
    equipment   = relationship("Equipment")


class TastingSelection(Base):
    __tablename__ = "reservation_tastings"

    id            = Column(Integer, primary_key=True, index=True)
    reservationId = Column(Integer, ForeignKey("room_reservations.id", ondelete="CASCADE"), nullable=False)
    tastingId     = Column(Integer, ForeignKey("tastings.id"), nullable=False)
    note          = Column(Text, nullable=True)

    reservation = relationship("RoomReservation", back_populates="tastings")
    tasting     = relationship("Tasting")
