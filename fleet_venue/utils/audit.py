from sqlalchemy.orm import Session
from fleet_venue.models.audit_log import AuditLog, BookingChangeAudit


def log_action(
    db: Session,
    user_id: int | None,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    description: str | None = None,
) -> None:
    """
    Write an audit log entry.

    Args:
        db:          Active DB session (adds but does NOT commit; caller commits)
        user_id:     ID of user performing the action (None = system action)
        action:      Verb: CREATE, UPDATE, DELETE, AUTHORIZE, CANCEL, LOGIN, LOGOUT, etc.
        entity_type: Model name: "VehicleAssignment", "RoomReservation", "Vehicle", etc.
        entity_id:   Primary key of the affected record
        description: Human-readable description (shown in audit log UI)
    """
    entry = AuditLog(
        userId=user_id,
        action=action,
        entityType=entity_type,
        entityId=entity_id,
        description=description,
    )
    db.add(entry)


def _as_text(value) -> str | None:
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def record_field_changes(
    db: Session,
    entity_type: str,
    entity_id: int,
    changes: list[tuple[str, object, object, str | None]],
    actor_id: int | None,
) -> int:
    """
    Append one BookingChangeAudit row per (field, old, new, reason) whose value
    actually changed. Rows are append-only. Returns the number written.
    """
    written = 0
    for field, old, new, reason in changes:
        if _as_text(old) == _as_text(new):
            continue
        db.add(BookingChangeAudit(
            entityType=entity_type,
            entityId=entity_id,
            field=field,
            oldValue=_as_text(old),
            newValue=_as_text(new),
            reason=reason,
            changedById=actor_id,
        ))
        written += 1
    return written
