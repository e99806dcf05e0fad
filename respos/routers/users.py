# respos/routers/users.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from respos.core.database import get_db
from respos.core.serialization import envelope
from respos.deps import CurrentUser, get_current_user
from respos.schemas.users import (
    AccountStatusUpdate,
    CustomerCreate,
    CustomerDetailsRequest,
    CustomerFilter,
    ProfileStatusUpdate,
    UserFilter,
    UserPayload,
)
from respos.services import customers as customer_service
from respos.services import users as user_service
from respos.services import waiters as waiter_service

# every route here needs a session; /{user_id} routes come last
router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(get_current_user)])


@router.get("/getsaveusermodal")
def user_form_model():
    return envelope(user_service.new_user_form())


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserPayload,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    created = user_service.create_user(db, payload, org_id=user.uoid, actor_uid=user.uid)
    return envelope(created)


@router.get("")
def list_users(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return envelope(user_service.list_users(db, user.uoid))


@router.post("/filter")
def filter_users(
    criteria: UserFilter,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return envelope(user_service.search_users(db, user.uoid, criteria))


@router.post("/customer", status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    created = customer_service.add_customer(db, payload, org_id=user.uoid, actor_uid=user.uid)
    return envelope(created)


@router.get("/search-customer/{mobile}")
def search_customer(
    mobile: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return envelope(customer_service.search_customers_by_mobile(db, mobile, org_id=user.uoid))


@router.post("/customers")
def list_customers(
    criteria: CustomerFilter,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return envelope(customer_service.list_customers(db, criteria, org_id=user.uoid))


@router.post("/customer/{customer_id}")
def customer_details(
    customer_id: int,
    body: Optional[CustomerDetailsRequest] = None,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    details = customer_service.customer_details(
        db, customer_id, body or CustomerDetailsRequest(), org_id=user.uoid
    )
    return envelope(details)


@router.get("/waiter/{waiter_id}")
def waiter_bookings(
    waiter_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return envelope(waiter_service.waiter_bookings(db, waiter_id, org_id=user.uoid))


@router.get("/{user_id}")
def get_user(
    user_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return envelope(user_service.get_user(db, user_id, org_id=user.uoid))


@router.put("/{user_id}")
def edit_user(
    user_id: int,
    payload: UserPayload,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = user_service.edit_user(db, user_id, payload, org_id=user.uoid, actor_uid=user.uid)
    return envelope(updated)


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return envelope(user_service.soft_delete_user(db, user_id, org_id=user.uoid, actor_uid=user.uid))


@router.patch("/{user_id}/profile-status")
def update_profile_status(
    user_id: int,
    payload: ProfileStatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = user_service.update_profile_status(
        db, user_id, payload.profileStatus, org_id=user.uoid, actor_uid=user.uid
    )
    return envelope(updated)


@router.patch("/{user_id}/account-status")
def update_account_status(
    user_id: int,
    payload: AccountStatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = user_service.update_account_status(
        db, user_id, payload.accountStatus, org_id=user.uoid, actor_uid=user.uid
    )
    return envelope(updated)
