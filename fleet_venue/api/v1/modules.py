from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fleet_venue.database import get_db
from fleet_venue.dependencies import get_current_user, get_admin_user
from fleet_venue.models.user import User
from fleet_venue.schemas.user import ModuleCreateRequest
from fleet_venue.schemas.common import success_response
from fleet_venue.services.user_service import user_service

router = APIRouter(prefix="/modules")


@router.get("", summary="List modules")
def list_modules(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return success_response("Modules retrieved", user_service.list_modules(db))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create module (Admin)")
def create_module(
    body: ModuleCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    return success_response("Module created successfully", user_service.create_module(db, body, current_user))
