"""
Login session registry.

One row per user in ``user_sessions``. A session is live until ``expiresAt``;
each authenticated request slides the expiry forward (at most once per touch
interval, to keep writes down). A second login while a live session exists is
refused; an expired session is simply replaced, so a client that vanished
without logging out blocks its account for at most one TTL.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from fleet_venue.config import settings
from fleet_venue.models.user_session import UserSession
from fleet_venue.utils.exceptions import SessionActiveException, SessionExpiredException

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(ts: datetime) -> datetime:
    # SQLite hands back naive timestamps
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def is_live(session: UserSession, now: datetime | None = None) -> bool:
    return _aware(session.expiresAt) > (now or _now())


class SessionRegistry:

    def __init__(self, ttl_minutes: int | None = None, touch_interval_seconds: int | None = None):
        self._ttl = ttl_minutes
        self._touch = touch_interval_seconds

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self._ttl if self._ttl is not None else settings.SESSION_TTL_MINUTES)

    @property
    def touch_interval(self) -> timedelta:
        seconds = self._touch if self._touch is not None else settings.SESSION_TOUCH_INTERVAL_SECONDS
        return timedelta(seconds=seconds)

    def open(self, db: Session, user_id: int) -> UserSession:
        """Start a session for ``user_id``. Caller commits."""
        now = _now()
        existing = db.query(UserSession).filter(UserSession.userId == user_id).first()
        if existing:
            if is_live(existing, now):
                raise SessionActiveException()
            logger.info(f"Replacing expired session for user {user_id}")
            db.delete(existing)
            db.flush()

        session = UserSession(
            userId=user_id,
            sessionId=secrets.token_hex(16),
            lastSeenAt=now,
            expiresAt=now + self.ttl,
        )
        db.add(session)
        db.flush()
        return session

    def touch(self, db: Session, user_id: int, session_id: str | None) -> UserSession:
        """Validate the caller's session and slide its expiry. Commits when it writes."""
        now = _now()
        session = db.query(UserSession).filter(
            UserSession.userId == user_id,
            UserSession.sessionId == session_id,
        ).first()
        if not session or not is_live(session, now):
            raise SessionExpiredException()

        if now - _aware(session.lastSeenAt) >= self.touch_interval:
            session.lastSeenAt = now
            session.expiresAt = now + self.ttl
            db.commit()
        return session

    def close(self, db: Session, user_id: int) -> bool:
        """Drop the user's session, live or not. Caller commits."""
        deleted = db.query(UserSession).filter(UserSession.userId == user_id).delete()
        return bool(deleted)

    def purge_expired(self, db: Session) -> int:
        """Remove every expired session. Caller commits."""
        now = _now()
        stale = [s for s in db.query(UserSession).all() if not is_live(s, now)]
        for s in stale:
            db.delete(s)
        if stale:
            logger.info(f"Purged {len(stale)} expired session(s)")
        return len(stale)

    def list_live(self, db: Session) -> list[UserSession]:
        now = _now()
        return [s for s in db.query(UserSession).order_by(UserSession.lastSeenAt.desc()).all()
                if is_live(s, now)]


session_registry = SessionRegistry()
