from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from respos.core.constants import CUSTOMER_MOBILE_MIN_DIGITS, CUSTOMER_MOBILE_SEARCH_LIMIT, CUSTOMER_ROLE_ID
from respos.core.database import transaction
from respos.core.errors import NotFoundError, ValidationError, translate_integrity_error
from respos.core.serialization import row_to_dict
from respos.models.order import Order
from respos.models.user import User
from respos.models.user_role_mapping import UserRoleMapping
from respos.schemas.users import CustomerCreate, CustomerDetailsRequest, CustomerFilter
from respos.services.search import PageRequest, PredicateSet, paginate
from respos.services.users import require_org, user_to_dict

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


def _customer_ids(org_id: int):
    return select(UserRoleMapping.uid).where(
        UserRoleMapping.roleid == CUSTOMER_ROLE_ID,
        UserRoleMapping.uoid == org_id,
        UserRoleMapping.isdeleted.is_(False),
    )


def _customer_scope(org_id: int) -> PredicateSet:
    return PredicateSet(User.isdeleted.is_(False), User.uid.in_(_customer_ids(org_id)))


def add_customer(
    db: Session,
    payload: CustomerCreate,
    *,
    org_id: Optional[int],
    actor_uid: Optional[int],
) -> Dict[str, Any]:
    """Customers never log in: no credential and no login record."""
    org = require_org(org_id)
    try:
        with transaction(db):
            customer = User(
                fullname=payload.fullname.strip(),
                mobno=payload.mobno,
                canlogin=False,
                isdeleted=False,
                createdby=actor_uid,
            )
            db.add(customer)
            db.flush()
            db.add(
                UserRoleMapping(
                    uid=customer.uid,
                    uoid=org,
                    roleid=CUSTOMER_ROLE_ID,
                    isdeleted=False,
                    createdby=actor_uid,
                )
            )
    except IntegrityError as exc:
        raise translate_integrity_error(exc) from exc

    logger.info("customer created uid=%s org=%s", customer.uid, org)
    return user_to_dict(customer)


def search_customers_by_mobile(db: Session, mobile: str, *, org_id: Optional[int]) -> List[Dict[str, Any]]:
    digits = _NON_DIGITS.sub("", mobile or "")
    if len(digits) < CUSTOMER_MOBILE_MIN_DIGITS:
        raise ValidationError(f"Mobile number must have at least {CUSTOMER_MOBILE_MIN_DIGITS} digits")

    predicates = _customer_scope(require_org(org_id)).startswith(User.mobno, digits)
    rows = (
        db.query(User.uid, User.fullname, User.mobno)
        .filter(predicates.clause())
        .order_by(User.mobno.asc(), User.uid.asc())
        .limit(CUSTOMER_MOBILE_SEARCH_LIMIT)
        .all()
    )
    return [{"uid": row.uid, "fullname": row.fullname, "mobno": row.mobno} for row in rows]


def _role_models_by_user(db: Session, uids: List[int]) -> Dict[int, List[Dict[str, Any]]]:
    grouped: Dict[int, List[Dict[str, Any]]] = defaultdict(list)
    if not uids:
        return grouped
    rows = (
        db.query(UserRoleMapping)
        .filter(UserRoleMapping.uid.in_(uids), UserRoleMapping.isdeleted.is_(False))
        .order_by(UserRoleMapping.urmid.asc())
        .all()
    )
    for row in rows:
        grouped[row.uid].append(row_to_dict(row))
    return grouped


def list_customers(db: Session, criteria: CustomerFilter, *, org_id: Optional[int]) -> Dict[str, Any]:
    predicates = (
        _customer_scope(require_org(org_id))
        .contains(User.fullname, criteria.name)
        .contains(User.mobno, criteria.phoneNumber)
    )
    request = PageRequest.of(criteria.pagination.page, criteria.pagination.limit)
    page = paginate(
        db.query(User).filter(predicates.clause()),
        request,
        order_by=[User.createddate.desc(), User.uid.desc()],
    )

    role_models = _role_models_by_user(db, [customer.uid for customer in page.items])
    data = []
    for customer in page.items:
        row = user_to_dict(customer)
        row["roleModels"] = role_models.get(customer.uid, [])
        data.append(row)

    return {
        "data": data,
        "pagination": {
            "total": page.total,
            "page": request.page,
            "limit": request.size,
            "pages": page.pages,
        },
    }


def customer_details(
    db: Session,
    customer_id: int,
    request_body: CustomerDetailsRequest,
    *,
    org_id: Optional[int],
) -> Dict[str, Any]:
    customer = (
        db.query(User)
        .filter(User.uid == customer_id, _customer_scope(require_org(org_id)).clause())
        .first()
    )
    if not customer:
        raise NotFoundError("Customer not found")

    order_filter = (Order.buyerid == customer.uid, Order.isdeleted.is_(False))
    request = PageRequest.of(request_body.page, request_body.limit)
    page = paginate(
        db.query(Order).filter(*order_filter),
        request,
        order_by=[Order.orderdate.desc(), Order.orderid.desc()],
        transform=row_to_dict,
    )
    # summed over every order, not just this page
    total_spent = db.query(func.coalesce(func.sum(Order.ordertotal), 0)).filter(*order_filter).scalar()

    return {
        "customer": {
            "uid": customer.uid,
            "fullname": customer.fullname,
            "emailid": customer.emailid,
            "mobno": customer.mobno,
            "joined_date": customer.createddate,
        },
        "orders": page.items,
        "total_orders": page.total,
        # display-only figure; float drops sub-cent precision on very large sums
        "total_spent": float(total_spent or 0),
        "pagination": {
            "page": request.page,
            "limit": request.size,
            "total": page.total,
            "pages": page.pages,
        },
    }
