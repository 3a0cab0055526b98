"""
Room reservations: conflicts, selection warnings, payment-driven authorization
and the contract.
"""
from datetime import date, datetime, time
from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st
from sqlalchemy.exc import OperationalError

from fleet_venue.models import (
    BookingStatus, ExternalRequester, Payment, RequesterType, ResourceStatus, RoomReservation,
    ServiceSelection,
)
from fleet_venue.schemas.reservation import (
    ReservationCreateRequest, ReservationUpdateRequest, PaymentCreateRequest,
)
from fleet_venue.services.conflict_checker import windows_overlap
from fleet_venue.services.reservation_service import reservation_service
from fleet_venue.utils.exceptions import (
    BookingConflictException, BookingNotPendingException, PaymentRequiredException,
    ResourceUnavailableException, StateException, ValidationException,
)

EVENT_DAY = date(2030, 9, 14)


def _request(room, requester, start="10:00", end="12:00", **overrides) -> ReservationCreateRequest:
    data = dict(
        roomId=room.id,
        eventName="Quarterly review",
        eventDate=EVENT_DAY,
        startTime=start,
        endTime=end,
        participants=30,
        requesterType=RequesterType.INTERNAL,
        employeeId=requester.id,
    )
    data.update(overrides)
    return ReservationCreateRequest(**data)


def _pay(db, reservation_id, catalogs, actor):
    return reservation_service.create_payment(db, reservation_id, PaymentCreateRequest(
        paymentTypeId=catalogs["payment"].id, total=Decimal("1800"), advance=Decimal("500"),
    ), actor)


# ─── Create / conflicts ───────────────────────────────────────────────────────
def test_create_internal_reservation(db, room, requester, admin_user):
    data, warnings = reservation_service.create(db, _request(room, requester), admin_user)

    assert data["status"] == "PENDING"
    assert data["startTime"] == "10:00:00"
    assert data["requester"]["type"] == "INTERNAL"
    assert data["requester"]["id"] == requester.id
    assert warnings == []


def test_overlap_in_same_room_conflicts(db, room, requester, admin_user):
    first, _ = reservation_service.create(db, _request(room, requester), admin_user)

    with pytest.raises(BookingConflictException) as exc:
        reservation_service.create(db, _request(room, requester, "11:30", "13:00"), admin_user)

    assert exc.value.status_code == 409
    assert [c["id"] for c in exc.value.conflicts] == [first["id"]]
    assert db.query(RoomReservation).count() == 1


def test_touching_reservations_are_allowed(db, room, requester, admin_user):
    reservation_service.create(db, _request(room, requester, "10:00", "12:00"), admin_user)
    reservation_service.create(db, _request(room, requester, "12:00", "14:00"), admin_user)
    reservation_service.create(db, _request(room, requester, "08:00", "10:00"), admin_user)
    assert db.query(RoomReservation).count() == 3


def test_other_room_same_time_is_free(db, room, requester, admin_user, make_room):
    other = make_room("Salon Verde")
    reservation_service.create(db, _request(room, requester), admin_user)
    data, _ = reservation_service.create(db, _request(other, requester), admin_user)
    assert data["room"]["name"] == "Salon Verde"


def test_cancelled_reservation_frees_window(db, room, requester, admin_user):
    first, _ = reservation_service.create(db, _request(room, requester), admin_user)
    reservation_service.change_status(db, first["id"], BookingStatus.CANCELLED, "Client withdrew", admin_user)

    second, _ = reservation_service.create(db, _request(room, requester), admin_user)
    assert second["status"] == "PENDING"


def test_inactive_room_cannot_be_reserved(db, room, requester, admin_user):
    room.resource.status = ResourceStatus.INACTIVE
    db.commit()

    with pytest.raises(ResourceUnavailableException):
        reservation_service.create(db, _request(room, requester), admin_user)


def test_capacity_above_layout_rejected(db, room, requester, admin_user, catalogs):
    with pytest.raises(ValidationException) as exc:
        reservation_service.create(db, _request(
            room, requester, layoutTypeId=catalogs["layout"].id, capacity=80,
        ), admin_user)

    assert exc.value.status_code == 400
    assert db.query(RoomReservation).count() == 0


def test_external_requester_reused_by_email(db, room, admin_user):
    external = {"name": "Maria Paz", "email": "Maria@Events.example.com", "company": "Events SA"}
    first, _ = reservation_service.create(db, ReservationCreateRequest(
        roomId=room.id, eventName="Launch", eventDate=EVENT_DAY, startTime="09:00", endTime="10:00",
        requesterType=RequesterType.EXTERNAL, externalRequester=external,
    ), admin_user)
    second, _ = reservation_service.create(db, ReservationCreateRequest(
        roomId=room.id, eventName="Launch follow-up", eventDate=EVENT_DAY, startTime="15:00", endTime="16:00",
        requesterType=RequesterType.EXTERNAL, externalRequester={**external, "email": "maria@events.example.com"},
    ), admin_user)

    assert first["requester"]["email"] == "maria@events.example.com"
    assert first["requester"]["id"] == second["requester"]["id"]
    assert db.query(ExternalRequester).count() == 1
    assert [x["id"] for x in reservation_service.search_external(db, "events")] == [first["requester"]["id"]]
    assert reservation_service.search_external(db, "ev") == []


# ─── Selections ───────────────────────────────────────────────────────────────
def test_bad_selections_become_warnings(db, room, requester, admin_user, catalogs):
    service_id = catalogs["service"].id
    data, warnings = reservation_service.create(db, _request(
        room, requester,
        services=[service_id, "abc", 9999, str(service_id)],
        equipment=[{"id": catalogs["equipment"].id, "note": "HDMI cable"}],
        tastings=[catalogs["tasting"].id],
    ), admin_user)

    assert [s["id"] for s in data["services"]] == [service_id]
    assert data["equipment"] == [{"id": catalogs["equipment"].id, "name": "Projector", "note": "HDMI cable"}]
    assert data["tastings"] == []
    assert len(warnings) == 4
    assert any("does not require tasting" in w for w in warnings)


def test_tastings_kept_when_required(db, room, requester, admin_user, catalogs):
    data, warnings = reservation_service.create(db, _request(
        room, requester, requiresTasting=True, tastings=[catalogs["tasting"].id],
    ), admin_user)
    assert [t["name"] for t in data["tastings"]] == ["Menu tasting"]
    assert warnings == []


def test_update_replaces_selections_and_audits_changes(db, room, requester, admin_user, catalogs):
    created, _ = reservation_service.create(db, _request(room, requester, services=[catalogs["service"].id]),
                                            admin_user)

    data, warnings = reservation_service.update(db, created["id"], ReservationUpdateRequest(
        eventDate=date(2030, 9, 15), dateChangeReason="Venue request",
        startTime="11:00", endTime="13:00", timeChangeReason="Speaker delayed",
        services=[],
    ), admin_user)

    assert data["eventDate"] == "2030-09-15"
    assert data["services"] == []
    assert warnings == []
    changes = {c["field"]: c for c in reservation_service.changes(db, created["id"])}
    assert set(changes) == {"eventDate", "startTime", "endTime"}
    assert changes["eventDate"]["oldValue"] == "2030-09-14"
    assert changes["eventDate"]["reason"] == "Venue request"
    assert changes["startTime"]["reason"] == "Speaker delayed"


# ─── Payment / authorization ──────────────────────────────────────────────────
def test_payment_authorizes_reservation(db, room, requester, admin_user, catalogs):
    created, _ = reservation_service.create(db, _request(room, requester), admin_user)

    result = _pay(db, created["id"], catalogs, admin_user)

    assert result["reservation"]["status"] == "AUTHORIZED"
    assert result["payment"]["balance"] == 1300.0
    assert reservation_service.get_payment(db, created["id"])["total"] == 1800.0


def test_second_payment_rejected(db, room, requester, admin_user, catalogs):
    created, _ = reservation_service.create(db, _request(room, requester), admin_user)
    _pay(db, created["id"], catalogs, admin_user)

    with pytest.raises(BookingNotPendingException) as exc:
        _pay(db, created["id"], catalogs, admin_user)

    assert "AUTHORIZED" in exc.value.message
    assert db.query(Payment).count() == 1


def test_authorize_without_payment_rejected(db, room, requester, admin_user):
    created, _ = reservation_service.create(db, _request(room, requester), admin_user)

    with pytest.raises(PaymentRequiredException):
        reservation_service.change_status(db, created["id"], BookingStatus.AUTHORIZED, None, admin_user)

    assert reservation_service.get(db, created["id"]).status == BookingStatus.PENDING


def test_failed_authorization_rolls_back_payment(db, room, requester, admin_user, catalogs):
    created, _ = reservation_service.create(db, _request(room, requester), admin_user)
    # A row that bypassed the service check now overlaps the first reservation
    db.add(RoomReservation(roomId=room.id, eventName="Legacy import", eventDate=EVENT_DAY,
                           startTime=time(11), endTime=time(12), requesterType=RequesterType.INTERNAL,
                           employeeId=requester.id, status=BookingStatus.AUTHORIZED))
    db.commit()

    with pytest.raises(BookingConflictException):
        _pay(db, created["id"], catalogs, admin_user)

    assert db.query(Payment).count() == 0
    assert reservation_service.get(db, created["id"]).status == BookingStatus.PENDING


# ─── Contract / calendar ──────────────────────────────────────────────────────
def test_contract_requires_authorization(db, room, requester, admin_user, catalogs):
    created, _ = reservation_service.create(db, _request(room, requester), admin_user)
    with pytest.raises(StateException):
        reservation_service.contract(db, created["id"])

    _pay(db, created["id"], catalogs, admin_user)
    contract = reservation_service.issue_contract(db, created["id"], admin_user)

    assert contract["status"] == "FINALIZED"
    assert contract["costs"]["basePrice"] == 1500.0
    assert contract["costs"]["deposit"] == 300.0
    assert contract["payment"]["advance"] == 500.0
    assert reservation_service.get(db, created["id"]).contractIssuedAt is not None


def test_calendar_colors_by_state(db, room, requester, admin_user, catalogs):
    pending, _ = reservation_service.create(db, _request(room, requester, "08:00", "09:00"), admin_user)
    paid, _ = reservation_service.create(db, _request(room, requester, "10:00", "11:00"), admin_user)
    cancelled, _ = reservation_service.create(db, _request(room, requester, "12:00", "13:00"), admin_user)
    _pay(db, paid["id"], catalogs, admin_user)
    reservation_service.change_status(db, cancelled["id"], BookingStatus.CANCELLED, None, admin_user)

    events = {e["id"]: e for e in reservation_service.calendar(db, EVENT_DAY, EVENT_DAY, None)}

    assert set(events) == {pending["id"], paid["id"]}
    assert events[pending["id"]]["color"] == "#e6650fff"
    assert events[paid["id"]]["color"] == "#2a8617ff"
    assert events[paid["id"]]["title"] == "Quarterly review (Salon Azul) - AUTHORIZED"


def test_check_overlap_point_and_window(db, room, requester, admin_user):
    created, _ = reservation_service.create(db, _request(room, requester), admin_user)

    assert reservation_service.check_overlap(db, EVENT_DAY, time(11), None, room.id)["overlap"] is True
    assert reservation_service.check_overlap(db, EVENT_DAY, time(12), None, room.id)["overlap"] is False
    result = reservation_service.check_overlap(db, EVENT_DAY, time(9), time(10, 30), None)
    assert [c["id"] for c in result["conflicts"]] == [created["id"]]


# ─── Atomicity ────────────────────────────────────────────────────────────────
def test_store_failure_in_detail_rows_leaves_no_parent(db, room, requester, admin_user, catalogs, monkeypatch):
    def failing_write(db_, r, data, warnings, replace=False):
        r.services.append(ServiceSelection(serviceId=catalogs["service"].id))
        db_.flush()
        raise OperationalError("INSERT INTO reservation_services", {}, Exception("disk I/O error"))

    monkeypatch.setattr(reservation_service, "_write_selections", failing_write)

    with pytest.raises(OperationalError):
        reservation_service.create(db, _request(room, requester), admin_user)

    assert db.query(RoomReservation).count() == 0
    assert db.query(ServiceSelection).count() == 0


def test_store_failure_maps_to_500_envelope(client, db, admin_headers, room, requester, catalogs, monkeypatch):
    def failing_write(db_, r, data, warnings, replace=False):
        raise OperationalError("INSERT INTO reservation_services", {}, Exception("disk I/O error"))

    monkeypatch.setattr(reservation_service, "_write_selections", failing_write)

    res = client.post("/api/v1/reservations", headers=admin_headers, json={
        "roomId": room.id, "eventName": "Offsite", "eventDate": "2030-09-14",
        "startTime": "10:00", "endTime": "11:00",
        "requesterType": "INTERNAL", "employeeId": requester.id,
    })

    assert res.status_code == 500
    assert res.json()["error"]["code"] == "STORE_ERROR"
    assert "disk I/O" not in res.text
    assert db.query(RoomReservation).count() == 0


# ─── No double booking ────────────────────────────────────────────────────────
start_hours = st.integers(6, 20)
durations = st.integers(1, 3)
operations = st.lists(
    st.one_of(
        st.tuples(st.just("create"), start_hours, durations),
        st.tuples(st.just("move"), st.integers(0, 7), start_hours, durations),
        st.tuples(st.just("cancel"), st.integers(0, 7)),
    ),
    min_size=1, max_size=10,
)


def _live_windows(db, room):
    rows = db.query(RoomReservation).filter(
        RoomReservation.roomId == room.id,
        RoomReservation.status.in_([BookingStatus.PENDING, BookingStatus.AUTHORIZED, BookingStatus.ACTIVE]),
    ).all()
    return [(datetime.combine(r.eventDate, r.startTime), datetime.combine(r.eventDate, r.endTime)) for r in rows]


@settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(operations)
def test_live_reservations_never_overlap(db, room, requester, admin_user, ops):
    db.query(RoomReservation).delete()
    db.commit()

    ids = []
    for op in ops:
        kind = op[0]
        if kind == "create":
            start, end = f"{op[1]:02d}:00", f"{op[1] + op[2]:02d}:00"
            begin = datetime.combine(EVENT_DAY, time(op[1]))
            finish = datetime.combine(EVENT_DAY, time(op[1] + op[2]))
            before = _live_windows(db, room)
            try:
                created, _ = reservation_service.create(db, _request(room, requester, start, end), admin_user)
                ids.append(created["id"])
            except BookingConflictException:
                assert any(windows_overlap(begin, finish, s, e) for s, e in before)
        elif ids and kind == "move":
            try:
                reservation_service.update(db, ids[op[1] % len(ids)], ReservationUpdateRequest(
                    startTime=f"{op[2]:02d}:00", endTime=f"{op[2] + op[3]:02d}:00",
                ), admin_user)
            except (BookingConflictException, StateException):
                pass
        elif ids and kind == "cancel":
            try:
                reservation_service.change_status(db, ids[op[1] % len(ids)], BookingStatus.CANCELLED,
                                                  "property run", admin_user)
            except StateException:
                pass

        windows = _live_windows(db, room)
        for i, a in enumerate(windows):
            for b in windows[i + 1:]:
                assert not windows_overlap(a[0], a[1], b[0], b[1])
