# respos/routers/organizations.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from respos.core.database import get_db
from respos.core.serialization import envelope
from respos.deps import CurrentUser, get_current_user
from respos.schemas.organizations import OrganizationBootstrap, SuperAdminOrgSwitch
from respos.services import organizations as organization_service

router = APIRouter(prefix="/users", tags=["organizations"])


@router.post("/organization", status_code=status.HTTP_201_CREATED)
def register_organization(payload: OrganizationBootstrap, db: Session = Depends(get_db)):
    """Public sign-up: organization, its first address and its owner."""
    return envelope(organization_service.bootstrap_organization(db, payload))


def _list_organizations(
    page: Optional[str],
    limit: Optional[str],
    search: Optional[str],
    sort_by: Optional[str],
    sort_order: Optional[str],
    db: Session,
):
    return envelope(
        organization_service.list_organizations(
            db,
            page=page,
            limit=limit,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    )


@router.get("/organizations")
def list_organizations(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _list_organizations(page, limit, search, sort_by, sort_order, db)


@router.get("/organizations/list")
def list_organizations_alias(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _list_organizations(page, limit, search, sort_by, sort_order, db)


@router.get("/organization/{uoid}/details")
def organization_details(
    uoid: int,
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return envelope(organization_service.get_organization_details(db, uoid))


@router.get("/organization/{uoid}")
def get_organization(
    uoid: int,
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return envelope(organization_service.get_organization(db, uoid))


@router.get("/address/{uaid}")
def get_address(
    uaid: int,
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return envelope(organization_service.get_address(db, uaid))


@router.patch("/super-admin/uoid")
def switch_super_admin_org(
    payload: SuperAdminOrgSwitch,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    mapping = organization_service.switch_super_admin_org(
        db,
        uid=user.uid,
        roleid=user.roleid,
        new_uoid=payload.newUoid,
    )
    return envelope(mapping)
