from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fleet_venue.database import get_db
from fleet_venue.dependencies import get_current_user, get_admin_user
from fleet_venue.models.user import User
from fleet_venue.schemas.auth import LoginRequest
from fleet_venue.schemas.common import SuccessResponse, success_response
from fleet_venue.services.auth_service import auth_service

router = APIRouter(prefix="/auth")


# ─── POST /auth/login ─────────────────────────────────────────────────────────
@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    summary="Login and receive an access token",
    response_model=SuccessResponse,
)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """
    Authenticate user and open a session.
    - Wrong password increments the failure counter; the account locks at the limit.
    - A second login while a session is live is refused (403 SESSION_ACTIVE).
    """
    result = auth_service.login(db, data)
    return success_response("Login successful", result)


# ─── POST /auth/logout ────────────────────────────────────────────────────────
@router.post("/logout", summary="Close the current session", response_model=SuccessResponse)
def logout(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    auth_service.logout(db, current_user)
    return success_response("Logged out successfully")


# ─── GET /auth/me ─────────────────────────────────────────────────────────────
@router.get("/me", summary="Current user profile and modules", response_model=SuccessResponse)
def me(current_user: User = Depends(get_current_user)):
    return success_response("User profile retrieved", auth_service.me(current_user))


# ─── Sessions (Admin) ─────────────────────────────────────────────────────────
@router.get("/sessions", summary="List live sessions (Admin)", response_model=SuccessResponse)
def list_sessions(db: Session = Depends(get_db), _: User = Depends(get_admin_user)):
    return success_response("Sessions retrieved", auth_service.list_sessions(db))


@router.delete("/sessions/expired", summary="Purge expired sessions (Admin)", response_model=SuccessResponse)
def purge_sessions(db: Session = Depends(get_db), current_user: User = Depends(get_admin_user)):
    count = auth_service.purge_sessions(db, current_user)
    return success_response(f"{count} expired session(s) removed", {"removed": count})


@router.delete("/sessions/{user_id}", summary="Force-close a user's session (Admin)",
               response_model=SuccessResponse)
def close_session(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_admin_user)):
    auth_service.close_session(db, user_id, current_user)
    return success_response("Session closed")
