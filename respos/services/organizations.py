from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from respos.core.constants import (
    DEFAULT_ADDRESS_TYPE,
    ORGANIZATION_MAX_PAGE_SIZE,
    ORGANIZATION_SORT_FIELDS,
    SUPER_ADMIN_ROLE_ID,
)
from respos.core.database import transaction
from respos.core.errors import AuthError, ConflictError, NotFoundError, translate_integrity_error
from respos.core.serialization import row_to_dict
from respos.models.address import Address
from respos.models.org_address_mapping import OrgAddressMapping
from respos.models.organization import Organization
from respos.models.user import User
from respos.models.user_login import UserLogin
from respos.models.user_role_mapping import UserRoleMapping
from respos.schemas.organizations import OrgAddressPayload, OrganizationBootstrap
from respos.services.passwords import hash_password
from respos.services.search import PageRequest, PredicateSet, paginate

logger = logging.getLogger(__name__)

DUPLICATE_ORGANIZATION = "Email or mobile number already exists"

_ORG_FIELDS = ("uoid", "orgname", "orgemail", "orgmobile", "isdeleted", "createddate", "modifieddate")
_OWNER_FIELDS = ("uid", "fullname", "emailid", "mobno")
_ADDRESS_FIELDS = (
    "uaid",
    "address1",
    "address2",
    "city",
    "state",
    "country",
    "pincode",
    "latitude",
    "longitude",
)
_LISTED_ADDRESS_FIELDS = ("uaid", "address1", "city", "state", "country", "pincode")


def _pick(obj: Any, fields: tuple) -> Optional[Dict[str, Any]]:
    if obj is None:
        return None
    return {field: getattr(obj, field) for field in fields}


def _create_address(db: Session, address: OrgAddressPayload) -> Address:
    row = Address(
        address1=address.address1,
        address2=address.address2,
        city=address.city,
        state=address.state,
        country=address.country,
        pincode=address.pincode,
        latitude=address.latitude,
        longitude=address.longitude,
        isdeleted=False,
    )
    db.add(row)
    db.flush()
    return row


def _email_or_mobile_taken(db: Session, email: str, mobile: str) -> bool:
    user = (
        db.query(User.uid)
        .filter(User.isdeleted.is_(False), (User.emailid == email) | (User.mobno == mobile))
        .first()
    )
    if user:
        return True
    org = (
        db.query(Organization.uoid)
        .filter(Organization.isdeleted.is_(False), Organization.orgemail == email)
        .first()
    )
    return org is not None


def bootstrap_organization(db: Session, payload: OrganizationBootstrap) -> Dict[str, Any]:
    """Create an organization with its first address and owner in one transaction.

    The owner does not exist when the organization and address rows are
    written, so both get their owner reference back-filled once the user
    row has an id. Nothing persists unless every step succeeds.
    """
    email = payload.orgEmail.lower()
    if _email_or_mobile_taken(db, email, payload.orgMobile):
        raise ConflictError(DUPLICATE_ORGANIZATION)

    hashed = hash_password(payload.password)
    role_id = payload.userRoleTypeId or SUPER_ADMIN_ROLE_ID

    try:
        with transaction(db):
            organization = Organization(
                orgname=payload.orgName,
                orgemail=email,
                orgmobile=payload.orgMobile,
                isdeleted=False,
            )
            db.add(organization)
            db.flush()

            address = _create_address(db, payload.orgAddress)

            user = User(
                fullname=payload.userFullName,
                firstname=payload.userFirstName,
                lastname=payload.userLastName,
                emailid=email,
                mobno=payload.orgMobile,
                password=hashed,
                canlogin=True,
                isapproved=bool(payload.isActive),
                isdeleted=False,
            )
            db.add(user)
            db.flush()

            organization.uid = user.uid
            organization.createdby = user.uid
            address.uid = user.uid
            address.createdby = user.uid

            db.add(
                OrgAddressMapping(
                    uaid=address.uaid,
                    uoid=organization.uoid,
                    uid=user.uid,
                    isdefault=True,
                    addrtype=DEFAULT_ADDRESS_TYPE,
                    isdeleted=False,
                    createdby=user.uid,
                )
            )
            db.add(
                UserRoleMapping(
                    uid=user.uid,
                    uoid=organization.uoid,
                    roleid=role_id,
                    roletypeid=None,
                    isdeleted=False,
                    createdby=user.uid,
                )
            )
            db.add(
                UserLogin(
                    uid=user.uid,
                    username=email,
                    uoid=organization.uoid,
                    roleid=role_id,
                    roleid_orgid=organization.uoid,
                    isdeleted=False,
                )
            )
    except IntegrityError as exc:
        logger.warning("organization bootstrap rejected by constraint: %s", exc.orig)
        raise translate_integrity_error(exc, DUPLICATE_ORGANIZATION) from exc

    logger.info("organization bootstrapped uoid=%s owner=%s", organization.uoid, user.uid)
    return {
        "organization": {"uoid": organization.uoid, "orgName": organization.orgname},
        "user": {"uid": user.uid, "fullName": user.fullname},
        "address": {"uaid": address.uaid},
    }


def _active_organization(db: Session, uoid: int) -> Organization:
    organization = (
        db.query(Organization)
        .filter(Organization.uoid == uoid, Organization.isdeleted.is_(False))
        .first()
    )
    if not organization:
        raise NotFoundError("Organization not found")
    return organization


def get_organization(db: Session, uoid: int) -> Dict[str, Any]:
    return _pick(_active_organization(db, uoid), _ORG_FIELDS)


def get_address(db: Session, uaid: int) -> Dict[str, Any]:
    address = db.query(Address).filter(Address.uaid == uaid, Address.isdeleted.is_(False)).first()
    if not address:
        raise NotFoundError("Address not found")
    return _pick(address, _ADDRESS_FIELDS)


def _first_addresses(db: Session, uoids: List[int]) -> Dict[int, Address]:
    """First live address mapped to each organization, default mapping first."""
    if not uoids:
        return {}
    rows = (
        db.query(OrgAddressMapping.uoid, Address)
        .join(Address, Address.uaid == OrgAddressMapping.uaid)
        .filter(OrgAddressMapping.uoid.in_(uoids), OrgAddressMapping.isdeleted.is_(False))
        .order_by(OrgAddressMapping.uoid, OrgAddressMapping.isdefault.desc(), OrgAddressMapping.uoamid.asc())
        .all()
    )
    first: Dict[int, Address] = {}
    for uoid, address in rows:
        first.setdefault(uoid, address)
    return first


def _owners(db: Session, uids: List[int]) -> Dict[int, User]:
    uids = [uid for uid in uids if uid is not None]
    if not uids:
        return {}
    return {user.uid: user for user in db.query(User).filter(User.uid.in_(uids)).all()}


def get_organization_details(db: Session, uoid: int) -> Dict[str, Any]:
    organization = _active_organization(db, uoid)
    owner = _owners(db, [organization.uid]).get(organization.uid)
    address = _first_addresses(db, [organization.uoid]).get(organization.uoid)
    return {
        "organization": _pick(organization, ("uoid", "orgname", "orgemail", "orgmobile")),
        "user": _pick(owner, _OWNER_FIELDS),
        "address": _pick(address, _ADDRESS_FIELDS),
    }


def list_organizations(
    db: Session,
    *,
    page: Any = None,
    limit: Any = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> Dict[str, Any]:
    request = PageRequest.of(page, limit, max_size=ORGANIZATION_MAX_PAGE_SIZE)
    sort_field = sort_by if sort_by in ORGANIZATION_SORT_FIELDS else "createddate"
    column = getattr(Organization, sort_field)
    direction = column.asc() if (sort_order or "").lower() == "asc" else column.desc()

    predicates = PredicateSet(Organization.isdeleted.is_(False)).any_contains(
        (Organization.orgname, Organization.orgemail), search
    )
    result = paginate(
        db.query(Organization).filter(predicates.clause()),
        request,
        order_by=[direction, Organization.uoid.asc()],
    )

    owners = _owners(db, [org.uid for org in result.items])
    addresses = _first_addresses(db, [org.uoid for org in result.items])
    organizations = []
    for org in result.items:
        row = _pick(org, ("uoid", "orgname", "orgemail", "orgmobile", "createddate"))
        owner = owners.get(org.uid)
        row["user"] = _pick(owner, ("fullname", "emailid", "mobno"))
        row["address"] = _pick(addresses.get(org.uoid), _LISTED_ADDRESS_FIELDS)
        organizations.append(row)

    return {
        "organizations": organizations,
        "pagination": {
            "total": result.total,
            "pages": result.pages,
            "page": request.page,
            "limit": request.size,
        },
    }


def switch_super_admin_org(
    db: Session,
    *,
    uid: int,
    roleid: Optional[int],
    new_uoid: int,
) -> Dict[str, Any]:
    """Move a super admin's role mapping and login record to another organization."""
    if roleid is None or int(roleid) != SUPER_ADMIN_ROLE_ID:
        raise AuthError("Only a super admin can switch organization")
    _active_organization(db, new_uoid)

    mapping = (
        db.query(UserRoleMapping)
        .filter(UserRoleMapping.uid == uid, UserRoleMapping.isdeleted.is_(False))
        .order_by(UserRoleMapping.urmid.asc())
        .first()
    )
    if not mapping:
        raise NotFoundError("Role mapping not found for this user")

    with transaction(db):
        mapping.uoid = new_uoid
        mapping.modifiedby = uid
        mapping.modifieddate = datetime.now(timezone.utc)
        db.query(UserLogin).filter(UserLogin.uid == uid).update(
            {UserLogin.uoid: new_uoid, UserLogin.roleid_orgid: new_uoid},
            synchronize_session=False,
        )

    logger.info("super admin uid=%s switched to uoid=%s", uid, new_uoid)
    return row_to_dict(mapping)
