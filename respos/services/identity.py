from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from respos.core.constants import SUPER_ADMIN_ROLE_ID
from respos.core.errors import AuthError, NotFoundError, ValidationError
from respos.models.org_address_mapping import OrgAddressMapping
from respos.models.organization import Organization
from respos.models.user import User
from respos.models.user_login import UserLogin
from respos.services.auth import create_access_token
from respos.services.passwords import burn_verification, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass
class SessionResult:
    ulid: int
    uid: int
    uoid: Optional[int]
    username: str
    roleid: Optional[int]
    roleid_orgid: Optional[int]
    fullname: Optional[str]
    uaid: Optional[int]
    profilestatus: Optional[int]
    orgname: Optional[str]
    token: str

    def as_payload(self) -> dict[str, Any]:
        return asdict(self)


def resolve_effective_org(
    roleid: Optional[int],
    uoid: Optional[int],
    roleid_orgid: Optional[int],
) -> Optional[int]:
    """Pick the organization a login acts on.

    Super admins act on their primary organization, even when it is empty.
    Everybody else acts on the organization of their role assignment and
    falls back to the primary one only when that is missing.
    """
    if roleid is not None and int(roleid) == SUPER_ADMIN_ROLE_ID:
        return uoid
    return roleid_orgid if roleid_orgid is not None else uoid


def _find_login(db: Session, username: str) -> Optional[tuple[UserLogin, User]]:
    return (
        db.query(UserLogin, User)
        .join(User, User.uid == UserLogin.uid)
        .filter(
            func.lower(UserLogin.username) == username.strip().lower(),
            UserLogin.isdeleted.is_(False),
            User.isdeleted.is_(False),
        )
        .order_by(UserLogin.ulid.asc())
        .first()
    )


def _find_org_address_id(db: Session, uoid: Optional[int]) -> Optional[int]:
    if uoid is None:
        return None
    mapping = (
        db.query(OrgAddressMapping.uaid)
        .filter(OrgAddressMapping.uoid == uoid, OrgAddressMapping.isdeleted.is_(False))
        .order_by(OrgAddressMapping.isdefault.desc(), OrgAddressMapping.uoamid.asc())
        .first()
    )
    return mapping.uaid if mapping else None


def _find_org_name(db: Session, uoid: Optional[int]) -> Optional[str]:
    if uoid is None:
        return None
    row = (
        db.query(Organization.orgname)
        .filter(Organization.uoid == uoid, Organization.isdeleted.is_(False))
        .first()
    )
    return row.orgname if row else None


def authenticate(db: Session, username: str, password: str) -> SessionResult:
    if not username or not password:
        raise ValidationError("Username and password are required")

    found = _find_login(db, username)
    if found is None:
        # same cost and same error as a wrong password
        burn_verification()
        logger.warning("authentication failed: unknown username")
        raise AuthError(INVALID_CREDENTIALS)

    login, user = found
    if not verify_password(password, user.password):
        logger.warning("authentication failed: bad credential uid=%s", user.uid)
        raise AuthError(INVALID_CREDENTIALS)

    effective_org = resolve_effective_org(login.roleid, login.uoid, login.roleid_orgid)
    uaid = _find_org_address_id(db, effective_org)
    orgname = _find_org_name(db, effective_org)

    token = create_access_token(
        {
            "uid": user.uid,
            "uoid": effective_org,
            "username": login.username,
            "roleid": login.roleid,
            "roleid_orgid": login.roleid_orgid,
            "fullname": user.fullname,
            "uaid": uaid,
        }
    )

    logger.info(
        "user authenticated uid=%s effective_org=%s uaid=%s",
        user.uid,
        effective_org,
        uaid,
    )

    return SessionResult(
        ulid=login.ulid,
        uid=user.uid,
        uoid=effective_org,
        username=login.username,
        roleid=login.roleid,
        roleid_orgid=login.roleid_orgid,
        fullname=user.fullname,
        uaid=uaid,
        profilestatus=user.profilestatus,
        orgname=orgname,
        token=token,
    )


def record_login(db: Session, ulid: int) -> None:
    """Second half of the login protocol: stamp the login time on the account row."""
    updated = (
        db.query(UserLogin)
        .filter(UserLogin.ulid == ulid)
        .update({UserLogin.logintime: datetime.now(timezone.utc)}, synchronize_session=False)
    )
    if not updated:
        db.rollback()
        raise NotFoundError("Login record not found")
    db.commit()


def record_logout(db: Session, ulid: int) -> None:
    """Stamp the logout time. Never raises: a failed stamp must not block a logout."""
    try:
        updated = (
            db.query(UserLogin)
            .filter(UserLogin.ulid == ulid)
            .update({UserLogin.logouttime: datetime.now(timezone.utc)}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("error updating logout time ulid=%s", ulid)
        return
    if not updated:
        logger.warning("logout for unknown login record ulid=%s", ulid)
