from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet_venue.database import get_db
from fleet_venue.dependencies import get_current_user, get_admin_user
from fleet_venue.models.role import RoleName
from fleet_venue.models.user import User
from fleet_venue.schemas.user import UserCreateRequest, UserUpdateRequest, ModuleAssignRequest
from fleet_venue.schemas.common import success_response, paginated_response
from fleet_venue.services.user_service import user_service

router = APIRouter(prefix="/users")


# GET /users (Admin)
@router.get("", status_code=status.HTTP_200_OK, summary="List all users (paginated)")
def list_users(
    page:     int                = Query(1,    ge=1),
    limit:    int                = Query(20,   ge=1, le=100),
    search:   Optional[str]      = Query(None, description="Search by name or email"),
    role:     Optional[RoleName] = Query(None),
    isActive: Optional[bool]     = Query(None),
    db:       Session            = Depends(get_db),
    _:        User               = Depends(get_admin_user),
):
    data, total = user_service.list_users(db, page, limit, search, role, isActive)
    return paginated_response("Users retrieved successfully", data, total, page, limit)


# GET /users/roles (any authenticated user, for dropdowns)
@router.get("/roles", status_code=status.HTTP_200_OK, summary="List all roles")
def list_roles(
    db: Session = Depends(get_db),
    _:  User    = Depends(get_current_user),
):
    return success_response("Roles retrieved", user_service.list_roles(db))


@router.get("/{user_id}", status_code=status.HTTP_200_OK, summary="Get user by ID")
def get_user(
    user_id: int,
    db:      Session = Depends(get_db),
    _:       User    = Depends(get_admin_user),
):
    return success_response("User retrieved", user_service.get_user(db, user_id))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create new user")
def create_user(
    body: UserCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    data = user_service.create_user(db, body, current_user)
    return success_response("User created successfully", data)


@router.put("/{user_id}", status_code=status.HTTP_200_OK, summary="Update user")
def update_user(
    user_id: int,
    body:    UserUpdateRequest,
    db:      Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    data = user_service.update_user(db, user_id, body, current_user)
    return success_response("User updated successfully", data)


@router.patch("/{user_id}/unlock", status_code=status.HTTP_200_OK, summary="Unlock a locked account")
def unlock_user(
    user_id: int,
    db:      Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    data = user_service.unlock_user(db, user_id, current_user)
    return success_response("User unlocked successfully", data)


@router.put("/{user_id}/modules", status_code=status.HTTP_200_OK, summary="Replace the user's module grants")
def assign_modules(
    user_id: int,
    body:    ModuleAssignRequest,
    db:      Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    data = user_service.assign_modules(db, user_id, body.modules, current_user)
    return success_response("Modules assigned successfully", data)


@router.delete("/{user_id}", status_code=status.HTTP_200_OK, summary="Delete user")
def delete_user(
    user_id: int,
    db:      Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    user_service.delete_user(db, user_id, current_user)
    return success_response("User deleted successfully", None)
