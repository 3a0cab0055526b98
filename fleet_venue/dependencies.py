from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from fleet_venue.database import get_db
from fleet_venue.models.module import ModuleCode
from fleet_venue.models.user import User
from fleet_venue.models.role import RoleName
from fleet_venue.services.session_registry import session_registry
from fleet_venue.utils.security import verify_access_token
from fleet_venue.utils.exceptions import (
    UnauthorizedException,
    ForbiddenException,
    ModuleRequiredException,
    AccountInactiveException,
    AccountLockedException,
)

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


# ─── Get Current User ─────────────────────────────────────────────────────────
def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Validate the Bearer token, its registry session, and return the User.
    Raises 401 if the token or session is missing, invalid, or expired.
    Raises 403 if the account is inactive or locked.
    """
    if not credentials:
        raise UnauthorizedException("No authentication token provided")

    payload = verify_access_token(credentials.credentials)
    user_id: str | None = payload.get("sub")
    if user_id is None:
        raise UnauthorizedException("Invalid token payload")

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise UnauthorizedException("User no longer exists")
    if not user.isActive:
        raise AccountInactiveException()
    if user.isLocked:
        raise AccountLockedException()

    session_registry.touch(db, user.id, payload.get("sid"))
    return user


# ─── Role Guards ──────────────────────────────────────────────────────────────
def require_roles(*roles: RoleName):
    """
    Factory that returns a FastAPI dependency requiring one of the given roles.

    Usage:
        @router.get("/admin-only")
        def admin_route(current_user = Depends(require_roles(RoleName.ADMIN))):
            ...
    """
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role.name not in roles:
            raise ForbiddenException(
                f"This action requires one of these roles: {[r.value for r in roles]}"
            )
        return current_user
    return dependency


# ─── Module Guards ────────────────────────────────────────────────────────────
def require_modules(*codes: str):
    """
    Dependency factory requiring the user to hold every module in ``codes``.
    Admins pass regardless of their grants.

        @router.get("/vehicles")
        def list_vehicles(current_user = Depends(require_modules(ModuleCode.FLEET))):
            ...
    """
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        check_modules(current_user, *codes)
        return current_user
    return dependency


def check_modules(user: User, *codes: str) -> None:
    if user.role.name == RoleName.ADMIN:
        return
    missing = [c for c in codes if c not in user.module_codes]
    if missing:
        raise ModuleRequiredException(missing)


# ─── Pre-built dependencies ──────────────────────────────────────────────────
def get_admin_user(current_user: User = Depends(require_roles(RoleName.ADMIN))) -> User:
    return current_user

fleet_user = require_modules(ModuleCode.FLEET)
rooms_user = require_modules(ModuleCode.ROOMS)
reservations_user = require_modules(ModuleCode.RESERVATIONS)
