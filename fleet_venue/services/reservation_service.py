"""
Room reservation orchestration.

Create and update run as one ``atomic`` unit: lock the room, check the
window, resolve the requester, write the reservation, then its selections.
Selection ids that are malformed, unknown, repeated, or tastings sent
without ``requiresTasting`` are skipped and returned as warnings instead
of failing the request.
"""
import logging
from datetime import date, datetime, time, timezone
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from fleet_venue.config import settings
from fleet_venue.models.booking import BookingStatus, NON_TERMINAL_STATUSES
from fleet_venue.models.audit_log import BookingChangeAudit
from fleet_venue.models.catalog import LayoutType, PaymentType, Service, Equipment, Tasting
from fleet_venue.models.employee import Employee
from fleet_venue.models.payment import Payment
from fleet_venue.models.reservation import (
    RoomReservation, ExternalRequester, RequesterType,
    ServiceSelection, EquipmentSelection, TastingSelection,
)
from fleet_venue.models.resource import ResourceStatus
from fleet_venue.models.room import Room
from fleet_venue.models.room_config import RoomCapacity
from fleet_venue.models.user import User
from fleet_venue.schemas.reservation import (
    ReservationCreateRequest, ReservationUpdateRequest, PaymentCreateRequest,
)
from fleet_venue.services.conflict_checker import (
    check_reservation_conflicts, find_reservation_conflicts, lock_resource,
)
from fleet_venue.services.lifecycle import reservation_lifecycle, parse_statuses
from fleet_venue.services.query_builder import QueryFilter, Equals, OneOf, AtLeast, AtMost, Contains
from fleet_venue.utils.audit import log_action, record_field_changes
from fleet_venue.utils.exceptions import (
    NotFoundException, ResourceUnavailableException, InvalidDateRangeException,
    BookingNotPendingException, StateException, ValidationException, ErrorCode,
)
from fleet_venue.utils.transaction import atomic

logger = logging.getLogger(__name__)

CALENDAR_COLORS = {
    BookingStatus.AUTHORIZED: "#2a8617ff",
    BookingStatus.PENDING:    "#e6650fff",
}
CALENDAR_DEFAULT_COLOR = "#501d1bff"

CONTRACT_STATUSES = (BookingStatus.AUTHORIZED, BookingStatus.FINALIZED)

# selection kind -> (detail model, id column, catalog model, label)
SELECTION_KINDS = {
    "services":  (ServiceSelection,   "serviceId",   Service,   "service"),
    "equipment": (EquipmentSelection, "equipmentId", Equipment, "equipment"),
    "tastings":  (TastingSelection,   "tastingId",   Tasting,   "tasting"),
}


# ─── Serializers ──────────────────────────────────────────────────────────────
def _requester(r: RoomReservation) -> dict | None:
    if r.requesterType == RequesterType.INTERNAL and r.employee:
        e = r.employee
        return {
            "type":       RequesterType.INTERNAL.value,
            "id":         e.id,
            "name":       e.fullName,
            "email":      e.email,
            "department": e.department.name if e.department else None,
        }
    if r.external_requester:
        x = r.external_requester
        return {
            "type":    RequesterType.EXTERNAL.value,
            "id":      x.id,
            "name":    x.name,
            "company": x.company,
            "email":   x.email,
            "phone":   x.phone,
        }
    return None


def _selections(r: RoomReservation) -> dict:
    return {
        "services":  [{"id": s.serviceId, "name": s.service.name, "note": s.note} for s in r.services],
        "equipment": [{"id": s.equipmentId, "name": s.equipment.name, "note": s.note} for s in r.equipment],
        "tastings":  [{"id": s.tastingId, "name": s.tasting.name, "note": s.note} for s in r.tastings],
    }


def _serialize(r: RoomReservation, detail: bool = False) -> dict:
    data = {
        "id":              r.id,
        "status":          r.status.value,
        "eventName":       r.eventName,
        "eventDate":       r.eventDate.isoformat(),
        "startTime":       r.startTime.strftime("%H:%M:%S"),
        "endTime":         r.endTime.strftime("%H:%M:%S"),
        "participants":    r.participants,
        "room":            {"id": r.room.id, "name": r.room.resource.name},
        "requester":       _requester(r),
        "layoutType":      {"id": r.layout_type.id, "name": r.layout_type.name} if r.layout_type else None,
        "capacity":        r.capacity,
        "requiresTasting": r.requiresTasting,
        "hasPayment":      r.payment is not None,
        "createdAt":       r.createdAt.isoformat() if r.createdAt else None,
    }
    if detail:
        data["notes"] = r.notes
        data["roomNote"] = r.roomNote
        data["contractIssuedAt"] = r.contractIssuedAt.isoformat() if r.contractIssuedAt else None
        data.update(_selections(r))
    return data


def _serialize_payment(p: Payment) -> dict:
    return {
        "id":            p.id,
        "reservationId": p.reservationId,
        "paymentType":   {"id": p.payment_type.id, "name": p.payment_type.name},
        "total":         float(p.total),
        "advance":       float(p.advance),
        "balance":       float(p.balance),
        "receiptNumber": p.receiptNumber,
        "notes":         p.notes,
        "status":        p.status,
        "paidAt":        p.paidAt.isoformat() if p.paidAt else None,
    }


def _serialize_change(c: BookingChangeAudit) -> dict:
    return {
        "id":        c.id,
        "field":     c.field,
        "oldValue":  c.oldValue,
        "newValue":  c.newValue,
        "reason":    c.reason,
        "changedBy": c.changed_by.name if c.changed_by else None,
        "createdAt": c.createdAt.isoformat() if c.createdAt else None,
    }


class ReservationService:

    # ─── Helpers ──────────────────────────────────────────────────────────────
    def get(self, db: Session, reservation_id: int) -> RoomReservation:
        r = db.query(RoomReservation).filter(RoomReservation.id == reservation_id).first()
        if not r:
            raise NotFoundException("Reservation")
        return r

    def _get_room(self, db: Session, room_id: int) -> Room:
        room = db.query(Room).filter(Room.id == room_id).first()
        if not room:
            raise NotFoundException("Room")
        return room

    def _lock_room(self, db: Session, room: Room) -> None:
        lock_resource(db, room.resourceId)
        db.refresh(room.resource)
        if room.resource.status == ResourceStatus.INACTIVE:
            raise ResourceUnavailableException(f"Room {room.resource.name} is INACTIVE")

    def _resolve_external(self, db: Session, data) -> ExternalRequester:
        email = str(data.email).strip().lower()
        found = db.query(ExternalRequester).filter(ExternalRequester.email == email).first()
        if found:
            return found
        ext = ExternalRequester(name=data.name, company=data.company, email=email, phone=data.phone)
        db.add(ext)
        db.flush()
        logger.info(f"External requester #{ext.id} registered ({email})")
        return ext

    def _check_layout(self, db: Session, room: Room, layout_type_id: int | None, capacity: int | None):
        if layout_type_id is None:
            return
        if not db.query(LayoutType).filter(LayoutType.id == layout_type_id).first():
            raise NotFoundException("Layout type")
        cap = db.query(RoomCapacity).filter(
            RoomCapacity.roomId == room.id, RoomCapacity.layoutTypeId == layout_type_id,
        ).first()
        if cap and capacity and capacity > cap.people:
            raise ValidationException(
                f"Capacity {capacity} exceeds the room's {cap.people} for this layout", field="capacity",
            )

    def _resolve_items(self, db: Session, kind: str, raw_items: list, warnings: list[str]) -> list[tuple[int, str | None]]:
        """Turn raw selection input into (id, note) pairs, collecting warnings for rejects."""
        _, _, catalog_model, label = SELECTION_KINDS[kind]
        resolved: list[tuple[int, str | None]] = []
        seen: set[int] = set()
        for raw in raw_items or []:
            note = None
            value = raw
            if isinstance(raw, dict):
                value = raw.get("id")
                note = raw.get("note")
            try:
                if isinstance(value, bool):
                    raise ValueError
                item_id = int(str(value).strip())
            except (TypeError, ValueError):
                warnings.append(f"Skipped {label} {raw!r}: not a valid id")
                continue
            if item_id in seen:
                warnings.append(f"Skipped {label} #{item_id}: selected more than once")
                continue
            if not db.query(catalog_model.id).filter(catalog_model.id == item_id).first():
                warnings.append(f"Skipped {label} #{item_id}: does not exist")
                continue
            seen.add(item_id)
            resolved.append((item_id, note))
        return resolved

    def _write_selections(self, db: Session, r: RoomReservation, data, warnings: list[str],
                          replace: bool = False) -> None:
        for kind, (detail_model, column, _, label) in SELECTION_KINDS.items():
            raw = getattr(data, kind)
            if raw is None:
                continue
            if kind == "tastings" and not r.requiresTasting:
                if raw:
                    warnings.append(f"Skipped {len(raw)} tasting(s): the reservation does not require tasting")
                raw = []
            items = self._resolve_items(db, kind, raw, warnings)
            collection = getattr(r, kind)
            if replace:
                collection.clear()
            for item_id, note in items:
                collection.append(detail_model(note=note, **{column: item_id}))
        if warnings:
            logger.info(f"Reservation #{r.id}: {len(warnings)} selection(s) skipped")

    # ─── Reads ────────────────────────────────────────────────────────────────
    def list_reservations(
        self, db: Session, page: int, limit: int,
        room_id: int | None, statuses: list[str] | None,
        start_date: date | None, end_date: date | None, search: str | None,
    ) -> tuple[list[dict], int]:
        filters = QueryFilter(
            Equals(RoomReservation.roomId, room_id),
            OneOf(RoomReservation.status, parse_statuses(statuses)),
            AtLeast(RoomReservation.eventDate, start_date),
            AtMost(RoomReservation.eventDate, end_date),
            Contains(RoomReservation.eventName, search),
        )
        q = filters.apply(db.query(RoomReservation))
        total = q.count()
        items = q.order_by(RoomReservation.eventDate.desc(), RoomReservation.startTime)\
                 .offset((page - 1) * limit).limit(limit).all()
        return [_serialize(r) for r in items], total

    def get_reservation(self, db: Session, reservation_id: int) -> dict:
        return _serialize(self.get(db, reservation_id), detail=True)

    def changes(self, db: Session, reservation_id: int) -> list[dict]:
        self.get(db, reservation_id)
        rows = db.query(BookingChangeAudit).filter(
            BookingChangeAudit.entityType == "RoomReservation",
            BookingChangeAudit.entityId == reservation_id,
        ).order_by(BookingChangeAudit.createdAt, BookingChangeAudit.id).all()
        return [_serialize_change(c) for c in rows]

    # ─── Create ───────────────────────────────────────────────────────────────
    def create(self, db: Session, data: ReservationCreateRequest, actor: User) -> tuple[dict, list[str]]:
        warnings: list[str] = []
        with atomic(db):
            room = self._get_room(db, data.roomId)
            self._lock_room(db, room)
            check_reservation_conflicts(db, room, data.eventDate, data.startTime, data.endTime)

            employee_id = external_id = None
            if data.requesterType == RequesterType.INTERNAL:
                if not db.query(Employee).filter(Employee.id == data.employeeId).first():
                    raise NotFoundException("Employee")
                employee_id = data.employeeId
            else:
                external_id = self._resolve_external(db, data.externalRequester).id

            self._check_layout(db, room, data.layoutTypeId, data.capacity)

            r = RoomReservation(
                roomId=room.id,
                eventName=data.eventName,
                eventDate=data.eventDate,
                startTime=data.startTime,
                endTime=data.endTime,
                participants=data.participants,
                notes=data.notes,
                requesterType=data.requesterType,
                employeeId=employee_id,
                externalRequesterId=external_id,
                layoutTypeId=data.layoutTypeId,
                capacity=data.capacity,
                roomNote=data.roomNote,
                requiresTasting=data.requiresTasting,
                status=BookingStatus.PENDING,
                createdById=actor.id,
            )
            db.add(r)
            db.flush()
            self._write_selections(db, r, data, warnings)
            db.flush()
            reservation_lifecycle.enter(db, r, actor)

        db.refresh(r)
        logger.info(f"Reservation #{r.id} created for room {room.resource.name} on {r.eventDate}")
        return _serialize(r, detail=True), warnings

    # ─── Update ───────────────────────────────────────────────────────────────
    def update(self, db: Session, reservation_id: int, data: ReservationUpdateRequest,
               actor: User) -> tuple[dict, list[str]]:
        warnings: list[str] = []
        with atomic(db):
            r = self.get(db, reservation_id)
            if r.status not in NON_TERMINAL_STATUSES:
                raise StateException(
                    f"A {r.status.value} reservation can no longer be edited", ErrorCode.INVALID_TRANSITION,
                )

            room = self._get_room(db, data.roomId) if data.roomId else r.room
            self._lock_room(db, room)

            new_date  = data.eventDate or r.eventDate
            new_start = data.startTime or r.startTime
            new_end   = data.endTime or r.endTime
            if new_end <= new_start:
                raise InvalidDateRangeException("endTime must be after startTime")
            if (room.id, new_date, new_start, new_end) != (r.roomId, r.eventDate, r.startTime, r.endTime):
                check_reservation_conflicts(db, room, new_date, new_start, new_end, exclude_id=r.id)

            layout_type_id = data.layoutTypeId or r.layoutTypeId
            self._check_layout(db, room, layout_type_id, data.capacity or r.capacity)

            new_name = data.eventName or r.eventName
            record_field_changes(db, "RoomReservation", r.id, [
                ("eventDate", r.eventDate, new_date,  data.dateChangeReason),
                ("startTime", r.startTime, new_start, data.timeChangeReason),
                ("endTime",   r.endTime,   new_end,   data.timeChangeReason),
                ("eventName", r.eventName, new_name,  None),
            ], actor.id)

            r.room = room
            r.eventDate = new_date
            r.startTime = new_start
            r.endTime = new_end
            r.eventName = new_name
            r.layoutTypeId = layout_type_id
            if data.participants is not None:     r.participants    = data.participants
            if data.notes is not None:            r.notes           = data.notes
            if data.capacity is not None:         r.capacity        = data.capacity
            if data.roomNote is not None:         r.roomNote        = data.roomNote
            if data.requiresTasting is not None:  r.requiresTasting = data.requiresTasting
            if r.requiresTasting is False and data.tastings is None and r.tastings:
                r.tastings.clear()

            self._write_selections(db, r, data, warnings, replace=True)
            log_action(db, actor.id, "UPDATE", "RoomReservation", r.id, f"Reservation #{r.id} updated")

        db.refresh(r)
        return _serialize(r, detail=True), warnings

    # ─── Status / payment / contract ──────────────────────────────────────────
    def change_status(self, db: Session, reservation_id: int, target: BookingStatus,
                      reason: str | None, actor: User) -> dict:
        with atomic(db):
            r = self.get(db, reservation_id)
            lock_resource(db, r.room.resourceId)
            reservation_lifecycle.transition(db, r, target, actor, reason=reason)
        db.refresh(r)
        return _serialize(r, detail=True)

    def create_payment(self, db: Session, reservation_id: int, data: PaymentCreateRequest, actor: User) -> dict:
        """Record the payment and authorize the reservation in one unit."""
        with atomic(db):
            r = self.get(db, reservation_id)
            if r.status != BookingStatus.PENDING:
                raise BookingNotPendingException(r.status.value)
            if not db.query(PaymentType).filter(PaymentType.id == data.paymentTypeId).first():
                raise NotFoundException("Payment type")
            lock_resource(db, r.room.resourceId)

            payment = Payment(
                paymentTypeId=data.paymentTypeId,
                total=data.total,
                advance=data.advance,
                balance=data.balance,
                receiptNumber=data.receiptNumber,
                notes=data.notes,
                createdById=actor.id,
            )
            r.payment = payment
            db.flush()
            log_action(db, actor.id, "PAYMENT", "RoomReservation", r.id,
                       f"Payment of {data.total} recorded for reservation #{r.id}")
            reservation_lifecycle.transition(db, r, BookingStatus.AUTHORIZED, actor)

        db.refresh(payment)
        return {"payment": _serialize_payment(payment), "reservation": _serialize(r)}

    def get_payment(self, db: Session, reservation_id: int) -> dict:
        r = self.get(db, reservation_id)
        if not r.payment:
            raise NotFoundException("Payment")
        return _serialize_payment(r.payment)

    def contract(self, db: Session, reservation_id: int) -> dict:
        r = self.get(db, reservation_id)
        if r.status not in CONTRACT_STATUSES:
            raise StateException(
                f"A contract is only available for AUTHORIZED or FINALIZED reservations (current: {r.status.value})",
                ErrorCode.INVALID_TRANSITION,
            )
        costs = {c.costTypeId: c.amount for c in r.room.costs}
        base = costs.get(settings.BASE_PRICE_COST_TYPE_ID, Decimal("0"))
        deposit = costs.get(settings.DEPOSIT_COST_TYPE_ID, Decimal("0"))
        return {
            "reservationId": r.id,
            "status":        r.status.value,
            "eventName":     r.eventName,
            "eventDate":     r.eventDate.isoformat(),
            "startTime":     r.startTime.strftime("%H:%M:%S"),
            "endTime":       r.endTime.strftime("%H:%M:%S"),
            "participants":  r.participants,
            "room":          r.room.resource.name,
            "layoutType":    r.layout_type.name if r.layout_type else None,
            "capacity":      r.capacity,
            "costs": {
                "items":     [{"costType": c.cost_type.name, "amount": float(c.amount)} for c in r.room.costs],
                "basePrice": float(base),
                "deposit":   float(deposit),
            },
            "payment":     _serialize_payment(r.payment) if r.payment else None,
            "requester":   _requester(r),
            **_selections(r),
            "generatedAt": datetime.now(timezone.utc).isoformat(),
        }

    def issue_contract(self, db: Session, reservation_id: int, actor: User) -> dict:
        r = self.get(db, reservation_id)
        if r.status == BookingStatus.AUTHORIZED:
            self.change_status(db, reservation_id, BookingStatus.FINALIZED, None, actor)
        return self.contract(db, reservation_id)

    # ─── Calendar / lookups ───────────────────────────────────────────────────
    def calendar(self, db: Session, start_date: date | None, end_date: date | None,
                 room_id: int | None) -> list[dict]:
        filters = QueryFilter(
            AtLeast(RoomReservation.eventDate, start_date),
            AtMost(RoomReservation.eventDate, end_date),
            Equals(RoomReservation.roomId, room_id),
            OneOf(RoomReservation.status, list(NON_TERMINAL_STATUSES) + [BookingStatus.FINALIZED]),
        )
        rows = filters.apply(db.query(RoomReservation))\
                      .order_by(RoomReservation.eventDate, RoomReservation.startTime).all()
        return [{
            "id":    r.id,
            "title": f"{r.eventName} ({r.room.resource.name}) - {r.status.value}",
            "start": datetime.combine(r.eventDate, r.startTime).isoformat(),
            "end":   datetime.combine(r.eventDate, r.endTime).isoformat(),
            "color": CALENDAR_COLORS.get(r.status, CALENDAR_DEFAULT_COLOR),
            "extendedProps": {"roomId": r.roomId, "status": r.status.value},
        } for r in rows]

    def check_overlap(self, db: Session, event_date: date, start_time: time,
                      end_time: time | None, room_id: int | None) -> dict:
        if end_time is not None and end_time <= start_time:
            raise InvalidDateRangeException("endTime must be after startTime")
        conflicts = find_reservation_conflicts(db, event_date, start_time, end_time, room_id=room_id)
        return {"overlap": bool(conflicts), "conflicts": conflicts}

    def search_external(self, db: Session, q: str | None) -> list[dict]:
        term = (q or "").strip()
        if len(term) < settings.EXTERNAL_SEARCH_MIN_LENGTH:
            return []
        filters = QueryFilter(Contains(
            [ExternalRequester.name, ExternalRequester.company, ExternalRequester.email], term,
        ))
        rows = filters.apply(db.query(ExternalRequester)).order_by(ExternalRequester.name).limit(20).all()
        return [{"id": x.id, "name": x.name, "company": x.company, "email": x.email, "phone": x.phone}
                for x in rows]

    # ─── Report ───────────────────────────────────────────────────────────────
    def summary_report(self, db: Session, start_date: date | None, end_date: date | None,
                       room_id: int | None) -> dict:
        period = QueryFilter(
            AtLeast(RoomReservation.eventDate, start_date),
            AtMost(RoomReservation.eventDate, end_date),
            Equals(RoomReservation.roomId, room_id),
        )
        by_status = {s.value: 0 for s in BookingStatus}
        for status, count in period.apply(
            db.query(RoomReservation.status, func.count(RoomReservation.id))
        ).group_by(RoomReservation.status).all():
            by_status[status.value] = count

        by_room = period.apply(
            db.query(Room.id, func.count(RoomReservation.id))
              .join(RoomReservation, RoomReservation.roomId == Room.id)
        ).group_by(Room.id).order_by(func.count(RoomReservation.id).desc()).all()
        room_names = {r.id: r.resource.name for r in db.query(Room).all()}

        collected = period.apply(
            db.query(func.coalesce(func.sum(Payment.total), 0), func.coalesce(func.sum(Payment.advance), 0))
              .join(RoomReservation, RoomReservation.id == Payment.reservationId)
        ).first()

        return {
            "period":            {"startDate": start_date.isoformat() if start_date else None,
                                  "endDate": end_date.isoformat() if end_date else None},
            "totalReservations": sum(by_status.values()),
            "byStatus":          by_status,
            "byRoom":            [{"roomId": rid, "roomName": room_names.get(rid), "reservations": n}
                                  for rid, n in by_room],
            "paymentsTotal":     float(collected[0] or 0),
            "advancesTotal":     float(collected[1] or 0),
        }


reservation_service = ReservationService()
