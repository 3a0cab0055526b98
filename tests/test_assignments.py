"""
Vehicle assignment orchestration: creation guards, lifecycle side effects,
trip logging and rollback on failure.
"""
from datetime import date, datetime, timedelta

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from fleet_venue.models import (
    AuditLog, BookingChangeAudit, BookingStatus, DriverLicense, ResourceStatus, TripLog, VehicleAssignment,
)
from fleet_venue.schemas.assignment import (
    AssignmentCreateRequest, AssignmentUpdateRequest, AssignmentFinalizeRequest,
)
from fleet_venue.schemas.maintenance import MaintenanceCreateRequest
from fleet_venue.schemas.vehicle import VehicleStatusRequest
from fleet_venue.services.assignment_service import assignment_service
from fleet_venue.services.conflict_checker import windows_overlap
from fleet_venue.services.maintenance_service import maintenance_service
from fleet_venue.services.vehicle_service import vehicle_service
from fleet_venue.utils.exceptions import (
    BookingConflictException, InvalidLicenseException, InvalidOdometerException,
    InvalidTransitionException, ResourceInUseException, ResourceUnavailableException,
    StateException, ValidationException,
)

DAY = datetime(2030, 5, 20)


def _request(vehicle, driver, start_hour=8, end_hour=12, **overrides) -> AssignmentCreateRequest:
    data = dict(
        vehicleId=vehicle.id,
        driverId=driver.id,
        startDate=DAY + timedelta(hours=start_hour),
        endDate=DAY + timedelta(hours=end_hour) if end_hour is not None else None,
        startOdometer=vehicle.currentOdometer,
        purpose="Deliver documents",
    )
    data.update(overrides)
    return AssignmentCreateRequest(**data)


# ─── Happy path ───────────────────────────────────────────────────────────────
def test_create_then_finalize_logs_trip(db, vehicle, driver, admin_user):
    created = assignment_service.create(db, _request(vehicle, driver), admin_user)

    assert created["status"] == "ACTIVE"
    assert vehicle.resource.status == ResourceStatus.IN_USE

    result = assignment_service.finalize(
        db, created["id"], AssignmentFinalizeRequest(endOdometer=1050, endFuelLevel="1/2"), admin_user,
    )

    assert result["status"] == "FINALIZED"
    assert result["distance"] == 50
    db.refresh(vehicle)
    assert vehicle.currentOdometer == 1050
    assert vehicle.resource.status == ResourceStatus.AVAILABLE

    trips = db.query(TripLog).filter(TripLog.assignmentId == created["id"]).all()
    assert len(trips) == 1
    assert trips[0].distance == 50
    assert trips[0].startOdometer == 1000 and trips[0].endOdometer == 1050


def test_authorization_flow(db, vehicle, driver, admin_user):
    created = assignment_service.create(db, _request(vehicle, driver, requiresAuthorization=True), admin_user)
    assert created["status"] == "PENDING"
    assert vehicle.resource.status == ResourceStatus.AVAILABLE

    authorized = assignment_service.authorize(db, created["id"], admin_user)
    assert authorized["status"] == "AUTHORIZED"
    assert authorized["authorizedBy"]["id"] == admin_user.id
    assert vehicle.resource.status == ResourceStatus.IN_USE

    started = assignment_service.start(db, created["id"], admin_user)
    assert started["status"] == "ACTIVE"

    actions = [a.action for a in db.query(AuditLog).filter(AuditLog.entityType == "VehicleAssignment")
                                  .order_by(AuditLog.id).all()]
    assert actions == ["CREATE", "AUTHORIZE", "START"]


def test_open_ended_finalize_closes_window(db, vehicle, driver, admin_user):
    created = assignment_service.create(db, _request(vehicle, driver, end_hour=None), admin_user)
    assert created["endDate"] is None

    result = assignment_service.finalize(
        db, created["id"],
        AssignmentFinalizeRequest(endOdometer=1200, returnedAt=DAY + timedelta(hours=18)),
        admin_user,
    )
    assert result["endDate"] == (DAY + timedelta(hours=18)).isoformat()
    assert result["distance"] == 200


# ─── Guards ───────────────────────────────────────────────────────────────────
def test_expired_license_rejected_without_side_effects(db, vehicle, driver, admin_user):
    lic = db.query(DriverLicense).filter(DriverLicense.employeeId == driver.id).one()
    lic.expiryDate = date.today() - timedelta(days=1)
    db.commit()

    with pytest.raises(InvalidLicenseException) as exc:
        assignment_service.create(db, _request(vehicle, driver), admin_user)

    assert exc.value.status_code == 400
    assert db.query(VehicleAssignment).count() == 0
    db.refresh(vehicle.resource)
    assert vehicle.resource.status == ResourceStatus.AVAILABLE
    assert vehicle.currentOdometer == 1000


def test_license_expiring_today_is_not_valid(db, vehicle, driver, admin_user):
    lic = db.query(DriverLicense).filter(DriverLicense.employeeId == driver.id).one()
    lic.expiryDate = date.today()
    db.commit()

    with pytest.raises(InvalidLicenseException):
        assignment_service.create(db, _request(vehicle, driver), admin_user)


def test_overlapping_assignment_conflicts(db, vehicle, driver, admin_user):
    first = assignment_service.create(db, _request(vehicle, driver, 8, 12, requiresAuthorization=True), admin_user)

    with pytest.raises(BookingConflictException) as exc:
        assignment_service.create(db, _request(vehicle, driver, 11, 14, requiresAuthorization=True), admin_user)

    assert exc.value.status_code == 409
    assert [c["id"] for c in exc.value.conflicts] == [first["id"]]
    assert db.query(VehicleAssignment).count() == 1


def test_back_to_back_assignments_allowed(db, vehicle, driver, admin_user):
    assignment_service.create(db, _request(vehicle, driver, 8, 12, requiresAuthorization=True), admin_user)
    second = assignment_service.create(db, _request(vehicle, driver, 12, 15, requiresAuthorization=True), admin_user)
    assert second["status"] == "PENDING"


def test_vehicle_in_maintenance_is_unavailable(db, vehicle, driver, admin_user):
    vehicle.resource.status = ResourceStatus.MAINTENANCE
    db.commit()

    with pytest.raises(ResourceUnavailableException):
        assignment_service.create(db, _request(vehicle, driver), admin_user)


def test_start_odometer_below_current_reading(db, vehicle, driver, admin_user):
    with pytest.raises(ValidationException) as exc:
        assignment_service.create(db, _request(vehicle, driver, startOdometer=900), admin_user)
    assert exc.value.status_code == 400


def test_finalize_rejects_odometer_not_past_start(db, vehicle, driver, admin_user):
    created = assignment_service.create(db, _request(vehicle, driver), admin_user)

    with pytest.raises(InvalidOdometerException):
        assignment_service.finalize(db, created["id"], AssignmentFinalizeRequest(endOdometer=1000), admin_user)

    a = assignment_service.get(db, created["id"])
    assert a.status == BookingStatus.ACTIVE
    assert db.query(TripLog).count() == 0
    assert vehicle.resource.status == ResourceStatus.IN_USE


def test_cancel_twice_is_an_invalid_transition(db, vehicle, driver, admin_user):
    created = assignment_service.create(db, _request(vehicle, driver), admin_user)

    cancelled = assignment_service.cancel(db, created["id"], "Trip called off", admin_user)
    assert cancelled["status"] == "CANCELLED"
    assert "Trip called off" in cancelled["notes"]
    assert vehicle.resource.status == ResourceStatus.AVAILABLE

    with pytest.raises(InvalidTransitionException):
        assignment_service.cancel(db, created["id"], "again", admin_user)

    a = assignment_service.get(db, created["id"])
    assert a.status == BookingStatus.CANCELLED
    assert "again" not in a.notes


def test_corrective_maintenance_blocked_while_active(db, vehicle, driver, admin_user, maintenance_types):
    assignment_service.create(db, _request(vehicle, driver), admin_user)

    with pytest.raises(ResourceInUseException):
        maintenance_service.create_record(db, MaintenanceCreateRequest(
            vehicleId=vehicle.id, maintenanceTypeId=maintenance_types["corrective"].id,
            description="Brakes squeal", serviceDate=date(2030, 5, 20),
        ), admin_user)


def test_authorize_refused_after_corrective_maintenance(db, vehicle, driver, admin_user, maintenance_types):
    created = assignment_service.create(db, _request(vehicle, driver, requiresAuthorization=True), admin_user)
    maintenance_service.create_record(db, MaintenanceCreateRequest(
        vehicleId=vehicle.id, maintenanceTypeId=maintenance_types["corrective"].id,
        description="Gearbox noise", serviceDate=date(2030, 5, 18),
    ), admin_user)
    assert vehicle.resource.status == ResourceStatus.MAINTENANCE

    with pytest.raises(ResourceUnavailableException):
        assignment_service.authorize(db, created["id"], admin_user)

    assert assignment_service.get(db, created["id"]).status == BookingStatus.PENDING
    db.refresh(vehicle.resource)
    assert vehicle.resource.status == ResourceStatus.MAINTENANCE


def test_start_refused_when_vehicle_went_to_the_shop(db, vehicle, driver, admin_user, maintenance_types):
    created = assignment_service.create(db, _request(vehicle, driver, requiresAuthorization=True), admin_user)
    assignment_service.authorize(db, created["id"], admin_user)
    maintenance_service.create_record(db, MaintenanceCreateRequest(
        vehicleId=vehicle.id, maintenanceTypeId=maintenance_types["corrective"].id,
        description="Flat tyre", serviceDate=date(2030, 5, 19),
    ), admin_user)

    with pytest.raises(ResourceUnavailableException):
        assignment_service.start(db, created["id"], admin_user)

    assert assignment_service.get(db, created["id"]).status == BookingStatus.AUTHORIZED
    db.refresh(vehicle.resource)
    assert vehicle.resource.status == ResourceStatus.MAINTENANCE


# ─── Manual vehicle status ────────────────────────────────────────────────────
def test_deactivation_refused_while_assignment_open(db, vehicle, driver, admin_user):
    assignment_service.create(db, _request(vehicle, driver, requiresAuthorization=True), admin_user)

    with pytest.raises(ResourceInUseException):
        vehicle_service.update_status(db, vehicle.id, VehicleStatusRequest(status=ResourceStatus.INACTIVE),
                                      admin_user)

    db.refresh(vehicle.resource)
    assert vehicle.resource.status == ResourceStatus.AVAILABLE


def test_status_pinned_while_assignment_active(db, vehicle, driver, admin_user):
    created = assignment_service.create(db, _request(vehicle, driver), admin_user)

    for target in (ResourceStatus.AVAILABLE, ResourceStatus.MAINTENANCE, ResourceStatus.INACTIVE):
        with pytest.raises(ResourceInUseException):
            vehicle_service.update_status(db, vehicle.id, VehicleStatusRequest(status=target), admin_user)

    db.refresh(vehicle.resource)
    assert vehicle.resource.status == ResourceStatus.IN_USE
    assert assignment_service.get(db, created["id"]).status == BookingStatus.ACTIVE


def test_status_change_allowed_when_vehicle_is_free(db, vehicle, admin_user):
    result = vehicle_service.update_status(db, vehicle.id, VehicleStatusRequest(
        status=ResourceStatus.MAINTENANCE, reason="Annual inspection",
    ), admin_user)
    assert result["resource"]["status"] == "MAINTENANCE"

    result = vehicle_service.update_status(db, vehicle.id, VehicleStatusRequest(status=ResourceStatus.AVAILABLE),
                                           admin_user)
    assert result["resource"]["status"] == "AVAILABLE"


# ─── Update ───────────────────────────────────────────────────────────────────
def test_update_window_records_change_audit(db, vehicle, driver, admin_user):
    created = assignment_service.create(db, _request(vehicle, driver, requiresAuthorization=True), admin_user)

    updated = assignment_service.update(db, created["id"], AssignmentUpdateRequest(
        startDate=DAY + timedelta(hours=9), reason="Driver arrives later",
    ), admin_user)

    assert updated["startDate"] == (DAY + timedelta(hours=9)).isoformat()
    rows = db.query(BookingChangeAudit).filter(BookingChangeAudit.entityId == created["id"]).all()
    assert [(r.field, r.reason) for r in rows] == [("startDate", "Driver arrives later")]


def test_update_into_conflict_rejected(db, vehicle, driver, admin_user):
    assignment_service.create(db, _request(vehicle, driver, 8, 10, requiresAuthorization=True), admin_user)
    second = assignment_service.create(db, _request(vehicle, driver, 12, 14, requiresAuthorization=True), admin_user)

    with pytest.raises(BookingConflictException):
        assignment_service.update(db, second["id"], AssignmentUpdateRequest(startDate=DAY + timedelta(hours=9)),
                                  admin_user)

    assert assignment_service.get(db, second["id"]).startDate == DAY + timedelta(hours=12)


def test_active_assignment_cannot_be_edited(db, vehicle, driver, admin_user):
    created = assignment_service.create(db, _request(vehicle, driver), admin_user)
    with pytest.raises(StateException):
        assignment_service.update(db, created["id"], AssignmentUpdateRequest(purpose="Other"), admin_user)


def test_update_start_odometer_below_current_reading(db, vehicle, driver, admin_user):
    created = assignment_service.create(db, _request(vehicle, driver, requiresAuthorization=True), admin_user)

    with pytest.raises(ValidationException) as exc:
        assignment_service.update(db, created["id"], AssignmentUpdateRequest(startOdometer=900), admin_user)

    assert exc.value.detail["error"]["field"] == "startOdometer"
    assert assignment_service.get(db, created["id"]).startOdometer == 1000


# ─── Reports ──────────────────────────────────────────────────────────────────
def test_statistics_sum_trip_distance(db, vehicle, driver, admin_user):
    created = assignment_service.create(db, _request(vehicle, driver), admin_user)
    assignment_service.finalize(db, created["id"], AssignmentFinalizeRequest(endOdometer=1050), admin_user)

    stats = assignment_service.statistics(db, 5, 2030)

    assert stats["totalAssignments"] == 1
    assert stats["byStatus"]["FINALIZED"] == 1
    assert stats["totalKilometers"] == 50
    assert stats["topVehicles"][0]["plateNumber"] == "P123ABC"
    assert assignment_service.statistics(db, 6, 2030)["totalAssignments"] == 0


# ─── No double booking ────────────────────────────────────────────────────────
hours = st.integers(0, 40)
lengths = st.one_of(st.none(), st.integers(1, 8))
operations = st.lists(
    st.one_of(
        st.tuples(st.just("create"), hours, lengths),
        st.tuples(st.just("move"), st.integers(0, 7), hours, lengths),
        st.tuples(st.just("cancel"), st.integers(0, 7)),
    ),
    min_size=1, max_size=10,
)


def _window(start, length):
    begin = DAY + timedelta(hours=start)
    return begin, (begin + timedelta(hours=length) if length else None)


def _live_windows(db, vehicle):
    rows = db.query(VehicleAssignment).filter(
        VehicleAssignment.vehicleId == vehicle.id,
        VehicleAssignment.status.in_([BookingStatus.PENDING, BookingStatus.AUTHORIZED, BookingStatus.ACTIVE]),
    ).all()
    return [(a.startDate, a.endDate) for a in rows]


def _assert_pairwise_disjoint(windows):
    for i, a in enumerate(windows):
        for b in windows[i + 1:]:
            assert not windows_overlap(a[0], a[1], b[0], b[1])


@settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(operations)
def test_live_windows_never_overlap(db, vehicle, driver, admin_user, ops):
    db.query(VehicleAssignment).delete()
    db.commit()

    ids = []
    for op in ops:
        kind = op[0]
        if kind == "create":
            begin, end = _window(op[1], op[2])
            before = _live_windows(db, vehicle)
            try:
                created = assignment_service.create(db, AssignmentCreateRequest(
                    vehicleId=vehicle.id, driverId=driver.id, startDate=begin, endDate=end,
                    startOdometer=vehicle.currentOdometer, requiresAuthorization=True,
                ), admin_user)
                ids.append(created["id"])
            except BookingConflictException:
                assert any(windows_overlap(begin, end, s, e) for s, e in before)
        elif ids and kind == "move":
            target = ids[op[1] % len(ids)]
            begin, end = _window(op[2], op[3])
            try:
                assignment_service.update(db, target, AssignmentUpdateRequest(
                    startDate=begin, endDate=end, clearEndDate=end is None,
                ), admin_user)
            except (BookingConflictException, StateException):
                pass
        elif ids and kind == "cancel":
            try:
                assignment_service.cancel(db, ids[op[1] % len(ids)], "property run", admin_user)
            except StateException:
                pass

        _assert_pairwise_disjoint(_live_windows(db, vehicle))
