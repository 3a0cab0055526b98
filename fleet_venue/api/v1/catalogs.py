"""
One router for every lookup catalog: /catalogs/{slug}[/{item_id}].

Reads need any authenticated user; writes need the module that owns the
catalog (FLEET, ROOMS or RESERVATIONS).
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet_venue.database import get_db
from fleet_venue.dependencies import get_current_user, check_modules
from fleet_venue.models.user import User
from fleet_venue.schemas.catalog import CatalogItemRequest, CatalogItemUpdateRequest
from fleet_venue.schemas.common import success_response
from fleet_venue.services.catalog_service import CATALOGS, get_catalog

router = APIRouter(prefix="/catalogs")


def _writer(slug: str, current_user: User):
    service = get_catalog(slug)
    check_modules(current_user, service.module)
    return service


@router.get("", summary="List available catalogs")
def list_catalogs(_: User = Depends(get_current_user)):
    return success_response("Catalogs retrieved", [
        {"slug": slug, "label": svc.label, "module": svc.module} for slug, svc in CATALOGS.items()
    ])


@router.get("/{slug}", summary="List catalog items")
def list_items(
    slug:   str,
    search: Optional[str] = Query(None),
    db:     Session = Depends(get_db),
    _:      User = Depends(get_current_user),
):
    return success_response("Catalog items retrieved", get_catalog(slug).list_items(db, search))


@router.get("/{slug}/{item_id}", summary="Get catalog item")
def get_item(slug: str, item_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    service = get_catalog(slug)
    return success_response("Catalog item retrieved", service.serialize(service.get(db, item_id)))


@router.post("/{slug}", status_code=status.HTTP_201_CREATED, summary="Create catalog item")
def create_item(
    slug: str,
    body: CatalogItemRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = _writer(slug, current_user)
    return success_response(f"{service.label} created", service.create(db, body, current_user))


@router.put("/{slug}/{item_id}", summary="Update catalog item")
def update_item(
    slug:    str,
    item_id: int,
    body:    CatalogItemUpdateRequest,
    db:      Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = _writer(slug, current_user)
    return success_response(f"{service.label} updated", service.update(db, item_id, body, current_user))


@router.delete("/{slug}/{item_id}", summary="Delete catalog item (409 while referenced)")
def delete_item(
    slug:    str,
    item_id: int,
    db:      Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = _writer(slug, current_user)
    service.delete(db, item_id, current_user)
    return success_response(f"{service.label} deleted", None)
