import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from fleet_venue.config import settings
from fleet_venue.models.user import User
from fleet_venue.schemas.auth import LoginRequest
from fleet_venue.services.session_registry import session_registry
from fleet_venue.utils.security import verify_password, create_access_token
from fleet_venue.utils.audit import log_action
from fleet_venue.utils.exceptions import (
    UnauthorizedException, AccountInactiveException, AccountLockedException, NotFoundException,
)

logger = logging.getLogger(__name__)


def serialize_me(user: User) -> dict:
    return {
        "id":         user.id,
        "name":       user.name,
        "email":      user.email,
        "role":       user.role.name.value,
        "employeeId": user.employeeId,
        "modules":    user.module_codes,
    }


def _serialize_session(s) -> dict:
    return {
        "userId":     s.userId,
        "userName":   s.user.name,
        "email":      s.user.email,
        "createdAt":  s.createdAt.isoformat() if s.createdAt else None,
        "lastSeenAt": s.lastSeenAt.isoformat(),
        "expiresAt":  s.expiresAt.isoformat(),
    }


class AuthService:

    # ─── Login ────────────────────────────────────────────────────────────────
    def login(self, db: Session, data: LoginRequest) -> dict:
        user = db.query(User).filter(User.email == str(data.email).lower()).first()
        if not user:
            raise UnauthorizedException("Invalid email or password")
        if not user.isActive:
            raise AccountInactiveException()
        if user.isLocked:
            raise AccountLockedException()

        if not verify_password(data.password, user.password):
            user.failedAttempts = (user.failedAttempts or 0) + 1
            locked = user.failedAttempts >= settings.MAX_FAILED_LOGINS
            if locked:
                user.isLocked = True
            log_action(db, user.id, "LOGIN_FAILED", "User", user.id,
                       f"Failed login #{user.failedAttempts}" + (" (account locked)" if locked else ""))
            db.commit()
            if locked:
                logger.warning(f"User {user.email} locked after {user.failedAttempts} failed logins")
                raise AccountLockedException()
            raise UnauthorizedException("Invalid email or password")

        session_registry.purge_expired(db)
        session = session_registry.open(db, user.id)
        user.failedAttempts = 0
        user.lastLoginAt = datetime.now(timezone.utc)
        access_token = create_access_token(user.id, user.role.name.value, user.module_codes, session.sessionId)

        log_action(db, user.id, "LOGIN", "User", user.id, f"{user.name} logged in")
        db.commit()
        logger.info(f"User {user.email} logged in")

        return {
            "accessToken": access_token,
            "tokenType":   "Bearer",
            "expiresIn":   settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "user":        serialize_me(user),
        }

    # ─── Logout ───────────────────────────────────────────────────────────────
    def logout(self, db: Session, user: User) -> None:
        session_registry.close(db, user.id)
        log_action(db, user.id, "LOGOUT", "User", user.id, f"{user.name} logged out")
        db.commit()

    def me(self, user: User) -> dict:
        return serialize_me(user)

    # ─── Session administration ───────────────────────────────────────────────
    def list_sessions(self, db: Session) -> list[dict]:
        return [_serialize_session(s) for s in session_registry.list_live(db)]

    def close_session(self, db: Session, user_id: int, actor: User) -> None:
        if not session_registry.close(db, user_id):
            raise NotFoundException("Session")
        log_action(db, actor.id, "CLOSE_SESSION", "User", user_id, f"Session of user #{user_id} closed by admin")
        db.commit()

    def purge_sessions(self, db: Session, actor: User) -> int:
        count = session_registry.purge_expired(db)
        log_action(db, actor.id, "PURGE_SESSIONS", "UserSession", None, f"{count} expired session(s) removed")
        db.commit()
        return count


auth_service = AuthService()
