from datetime import datetime, timedelta, timezone

import pytest

from fleet_venue.models import UserSession
from fleet_venue.services.session_registry import SessionRegistry, is_live
from fleet_venue.utils.exceptions import SessionActiveException, SessionExpiredException


def _now():
    return datetime.now(timezone.utc)


def _expire(db, session):
    session.expiresAt = _now() - timedelta(minutes=1)
    db.commit()


def test_open_creates_live_session(db, admin_user):
    registry = SessionRegistry(ttl_minutes=30)
    session = registry.open(db, admin_user.id)
    db.commit()

    assert is_live(session)
    assert len(session.sessionId) == 32
    assert db.query(UserSession).count() == 1


def test_second_login_refused_while_live(db, admin_user):
    registry = SessionRegistry(ttl_minutes=30)
    registry.open(db, admin_user.id)
    db.commit()

    with pytest.raises(SessionActiveException) as exc:
        registry.open(db, admin_user.id)
    assert exc.value.status_code == 403


def test_expired_session_is_replaced(db, admin_user):
    registry = SessionRegistry(ttl_minutes=30)
    first = registry.open(db, admin_user.id)
    db.commit()
    old_id = first.sessionId
    _expire(db, first)

    second = registry.open(db, admin_user.id)
    db.commit()

    assert second.sessionId != old_id
    assert db.query(UserSession).count() == 1


def test_touch_rejects_unknown_or_expired(db, admin_user):
    registry = SessionRegistry(ttl_minutes=30)
    session = registry.open(db, admin_user.id)
    db.commit()

    with pytest.raises(SessionExpiredException):
        registry.touch(db, admin_user.id, "not-the-session")
    with pytest.raises(SessionExpiredException):
        registry.touch(db, admin_user.id, None)

    _expire(db, session)
    with pytest.raises(SessionExpiredException):
        registry.touch(db, admin_user.id, session.sessionId)


def test_touch_slides_expiry(db, admin_user):
    registry = SessionRegistry(ttl_minutes=30, touch_interval_seconds=0)
    session = registry.open(db, admin_user.id)
    session.lastSeenAt = _now() - timedelta(minutes=20)
    session.expiresAt = _now() + timedelta(minutes=1)
    db.commit()

    registry.touch(db, admin_user.id, session.sessionId)

    assert session.expiresAt.replace(tzinfo=timezone.utc) > _now() + timedelta(minutes=29)


def test_touch_within_interval_does_not_write(db, admin_user):
    registry = SessionRegistry(ttl_minutes=30, touch_interval_seconds=3600)
    session = registry.open(db, admin_user.id)
    db.commit()
    before = session.expiresAt

    registry.touch(db, admin_user.id, session.sessionId)

    assert session.expiresAt == before


def test_purge_and_close(db, admin_user, fleet_staff):
    registry = SessionRegistry(ttl_minutes=30)
    stale = registry.open(db, admin_user.id)
    registry.open(db, fleet_staff.id)
    db.commit()
    _expire(db, stale)

    assert [s.userId for s in registry.list_live(db)] == [fleet_staff.id]
    assert registry.purge_expired(db) == 1
    db.commit()
    assert registry.close(db, fleet_staff.id) is True
    assert registry.close(db, fleet_staff.id) is False
    db.commit()
    assert db.query(UserSession).count() == 0
