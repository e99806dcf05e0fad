from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from respos.core.constants import ACCOUNT_STATUSES, ASSIGNABLE_ROLES, PROFILE_STATUSES
from respos.core.database import transaction
from respos.core.errors import AuthError, ConflictError, NotFoundError, translate_integrity_error
from respos.core.serialization import row_to_dict
from respos.models.user import User
from respos.models.user_login import UserLogin
from respos.models.user_rights_mapping import UserRightsMapping
from respos.models.user_role_mapping import UserRoleMapping
from respos.schemas.users import RightsOfUserModel, RoleModel, UserFilter, UserPayload
from respos.services.passwords import hash_password, password_looks_hashed
from respos.services.search import PageRequest, PredicateSet, paginate

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_ON_CREATE = "User with this email already exists"
DUPLICATE_EMAIL_ON_EDIT = "Email already exists"
EMAIL_COLUMNS = ("emailid",)

# columns that reject NULL; a null sent for them is ignored
_NOT_NULL_FLAGS = ("canlogin", "isapproved", "isadmin")

_MAPPING_KEYS = {"roleModels", "rightsOfUserModel"}

_FORM_FIELDS = (
    "fullname",
    "firstname",
    "lastname",
    "emailid",
    "mobno",
    "employee_id",
    "usercode",
    "image",
    "password",
    "profilestatus",
    "accountstatus",
    "marketsegement",
    "languageid",
    "currencyid",
)


def require_org(org_id: Optional[int]) -> int:
    if org_id is None:
        raise AuthError("Organization context missing from session")
    return int(org_id)


def user_to_dict(user: User) -> Dict[str, Any]:
    return row_to_dict(user, exclude=("password",))


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _members_of(org_id: int):
    """A user belongs to an organization through a live role mapping there or a login scoped to it."""
    by_role = select(UserRoleMapping.uid).where(
        UserRoleMapping.uoid == org_id,
        UserRoleMapping.isdeleted.is_(False),
    )
    by_login = select(UserLogin.uid).where(
        UserLogin.roleid_orgid == org_id,
        UserLogin.isdeleted.is_(False),
    )
    return or_(User.uid.in_(by_role), User.uid.in_(by_login))


def _active_user(db: Session, user_id: int, org_id: Optional[int]) -> User:
    org = require_org(org_id)
    user = (
        db.query(User)
        .filter(User.uid == user_id, User.isdeleted.is_(False), _members_of(org))
        .first()
    )
    if not user:
        raise NotFoundError("User not found")
    return user


def _email_taken(db: Session, email: str, *, except_uid: Optional[int] = None) -> bool:
    query = db.query(User.uid).filter(
        func.lower(User.emailid) == email.lower(),
        User.isdeleted.is_(False),
    )
    if except_uid is not None:
        query = query.filter(User.uid != except_uid)
    return query.first() is not None


def _role_mappings(
    roles: List[RoleModel],
    uid: int,
    org_id: Optional[int],
    actor_uid: Optional[int],
) -> List[UserRoleMapping]:
    # a mapping without an organization lands in the caller's
    now = _now()
    return [
        UserRoleMapping(
            uid=uid,
            uoid=role.uoid if role.uoid is not None else org_id,
            roleid=role.roleid,
            roletypeid=role.roletypeid,
            isdeleted=False,
            createdby=actor_uid,
            modifiedby=actor_uid,
            modifieddate=now,
        )
        for role in roles
    ]


def _rights_mappings(
    rights: Optional[RightsOfUserModel],
    uid: int,
    actor_uid: Optional[int],
) -> List[UserRightsMapping]:
    if rights is None:
        return []
    return [
        UserRightsMapping(userid=uid, rightid=right_id, isdeleted=False, createdby=actor_uid, modifiedby=actor_uid)
        for right_id in rights.selected_right_ids()
    ]


def _provision_login(
    db: Session,
    user: User,
    mappings: List[UserRoleMapping],
    org_id: Optional[int],
) -> UserLogin:
    primary = mappings[0] if mappings else None
    login = UserLogin(
        uid=user.uid,
        username=user.emailid.lower(),
        uoid=org_id,
        roleid=primary.roleid if primary else None,
        roleid_orgid=primary.uoid if primary and primary.uoid is not None else org_id,
        isdeleted=False,
    )
    db.add(login)
    return login


def _sync_login(
    db: Session,
    user: User,
    mappings: Optional[List[UserRoleMapping]],
    org_id: Optional[int],
) -> None:
    login = db.query(UserLogin).filter(UserLogin.uid == user.uid).first()
    if login is None:
        if user.emailid and user.canlogin:
            if mappings is None:
                mappings = _active_role_rows(db, user.uid)
            _provision_login(db, user, mappings, org_id)
        return
    if user.emailid:
        login.username = user.emailid.lower()
    if mappings is not None:
        primary = mappings[0] if mappings else None
        login.roleid = primary.roleid if primary else None
        login.roleid_orgid = primary.uoid if primary else None


def _active_role_rows(db: Session, uid: int) -> List[UserRoleMapping]:
    return (
        db.query(UserRoleMapping)
        .filter(UserRoleMapping.uid == uid, UserRoleMapping.isdeleted.is_(False))
        .order_by(UserRoleMapping.urmid.asc())
        .all()
    )


def _active_rights_rows(db: Session, uid: int) -> List[UserRightsMapping]:
    return (
        db.query(UserRightsMapping)
        .filter(UserRightsMapping.userid == uid, UserRightsMapping.isdeleted.is_(False))
        .order_by(UserRightsMapping.urid.asc())
        .all()
    )


def new_user_form() -> Dict[str, Any]:
    """Blank user form plus the roles an admin may assign."""
    user = {field: None for field in _FORM_FIELDS}
    user.update({"canlogin": True, "isapproved": False, "isadmin": False, "roleModels": []})
    return {"user": user, "roles": list(ASSIGNABLE_ROLES)}


def create_user(
    db: Session,
    payload: UserPayload,
    *,
    org_id: Optional[int],
    actor_uid: Optional[int],
) -> Dict[str, Any]:
    if payload.emailid and _email_taken(db, payload.emailid):
        raise ConflictError(DUPLICATE_EMAIL_ON_CREATE)

    fields = payload.model_dump(exclude=_MAPPING_KEYS | {"password"})
    fields = {key: value for key, value in fields.items() if value is not None}
    hashed = hash_password(payload.password) if payload.password else None

    try:
        with transaction(db):
            user = User(**fields, password=hashed, isdeleted=False, createdby=actor_uid)
            db.add(user)
            db.flush()

            roles = _role_mappings(payload.roleModels or [], user.uid, org_id, actor_uid)
            db.add_all(roles)
            db.add_all(_rights_mappings(payload.rightsOfUserModel, user.uid, actor_uid))
            if user.emailid and user.canlogin is not False:
                _provision_login(db, user, roles, org_id)
    except IntegrityError as exc:
        logger.warning("create user rejected by constraint: %s", exc.orig)
        raise translate_integrity_error(exc, DUPLICATE_EMAIL_ON_CREATE, columns=EMAIL_COLUMNS) from exc

    logger.info("user created uid=%s roles=%s", user.uid, len(roles))
    return user_to_dict(user)


def _user_details(db: Session, user: User) -> Dict[str, Any]:
    data = user_to_dict(user)
    data["role_mappings"] = [row_to_dict(row) for row in _active_role_rows(db, user.uid)]
    data["rights_mappings"] = [row_to_dict(row) for row in _active_rights_rows(db, user.uid)]
    return data


def get_user(db: Session, user_id: int, *, org_id: Optional[int]) -> Dict[str, Any]:
    return _user_details(db, _active_user(db, user_id, org_id))


def edit_user(
    db: Session,
    user_id: int,
    payload: UserPayload,
    *,
    org_id: Optional[int],
    actor_uid: Optional[int],
) -> Dict[str, Any]:
    """Apply the sent fields and replace whichever mapping sets were sent.

    A mapping set that is sent replaces the stored one entirely, an empty
    list clears it. The result is read back from the database.
    """
    user = _active_user(db, user_id, org_id)
    changes = payload.model_dump(exclude_unset=True, exclude=_MAPPING_KEYS)

    password = changes.pop("password", None)
    if password and not password_looks_hashed(password):
        changes["password"] = hash_password(password)

    for flag in _NOT_NULL_FLAGS:
        if flag in changes and changes[flag] is None:
            changes.pop(flag)

    new_email = changes.get("emailid")
    if new_email and _email_taken(db, new_email, except_uid=user.uid):
        raise ConflictError(DUPLICATE_EMAIL_ON_EDIT)

    try:
        with transaction(db):
            for key, value in changes.items():
                setattr(user, key, value)
            user.modifiedby = actor_uid
            user.modifieddate = _now()

            roles = None
            if payload.roleModels is not None:
                db.query(UserRoleMapping).filter(UserRoleMapping.uid == user.uid).delete(
                    synchronize_session=False
                )
                roles = _role_mappings(payload.roleModels, user.uid, org_id, actor_uid)
                db.add_all(roles)

            if payload.rightsOfUserModel is not None:
                db.query(UserRightsMapping).filter(UserRightsMapping.userid == user.uid).delete(
                    synchronize_session=False
                )
                db.add_all(_rights_mappings(payload.rightsOfUserModel, user.uid, actor_uid))

            _sync_login(db, user, roles, org_id)
    except IntegrityError as exc:
        logger.warning("edit user rejected by constraint uid=%s: %s", user_id, exc.orig)
        raise translate_integrity_error(exc, DUPLICATE_EMAIL_ON_EDIT, columns=EMAIL_COLUMNS) from exc

    logger.info("user updated uid=%s fields=%s", user_id, sorted(changes))
    # unscoped: the new mappings may have moved the user to another organization
    return _user_details(db, user)


def soft_delete_user(
    db: Session,
    user_id: int,
    *,
    org_id: Optional[int],
    actor_uid: Optional[int],
) -> Dict[str, str]:
    user = _active_user(db, user_id, org_id)
    with transaction(db):
        user.isdeleted = True
        user.deletedby = actor_uid
        user.deleteddate = _now()
    logger.info("user soft-deleted uid=%s by=%s", user_id, actor_uid)
    return {"message": "User deleted successfully"}


def _set_status(
    db: Session,
    user_id: int,
    column: str,
    code: int,
    *,
    org_id: Optional[int],
    actor_uid: Optional[int],
) -> Dict[str, Any]:
    user = _active_user(db, user_id, org_id)
    with transaction(db):
        setattr(user, column, code)
        user.modifiedby = actor_uid
        user.modifieddate = _now()
    logger.info("user status changed uid=%s %s=%s", user_id, column, code)
    return user_to_dict(user)


def update_profile_status(
    db: Session, user_id: int, code: int, *, org_id: Optional[int], actor_uid: Optional[int]
) -> Dict[str, Any]:
    return _set_status(db, user_id, "profilestatus", code, org_id=org_id, actor_uid=actor_uid)


def update_account_status(
    db: Session, user_id: int, code: int, *, org_id: Optional[int], actor_uid: Optional[int]
) -> Dict[str, Any]:
    return _set_status(db, user_id, "accountstatus", code, org_id=org_id, actor_uid=actor_uid)


def _account_row(row) -> Dict[str, Any]:
    user, login = row
    data = user_to_dict(user)
    data.update(
        {
            "ulid": login.ulid,
            "username": login.username,
            "uoid": login.uoid,
            "roleid": login.roleid,
            "roleid_orgid": login.roleid_orgid,
        }
    )
    return data


def _accounts(db: Session):
    return db.query(User, UserLogin).join(UserLogin, UserLogin.uid == User.uid)


def _org_scope(org_id: int) -> PredicateSet:
    return PredicateSet(
        UserLogin.roleid_orgid == org_id,
        UserLogin.isdeleted.is_(False),
        User.isdeleted.is_(False),
    )


def list_users(db: Session, org_id: Optional[int]) -> List[Dict[str, Any]]:
    org = require_org(org_id)
    rows = (
        _accounts(db)
        .filter(_org_scope(org).clause())
        .order_by(User.uid.asc())
        .all()
    )
    return [_account_row(row) for row in rows]


def search_users(db: Session, org_id: Optional[int], criteria: UserFilter) -> Dict[str, Any]:
    """Filtered, paginated user search inside one organization.

    Status codes outside their whitelist are dropped rather than rejected,
    so an unknown status simply widens the search.
    """
    org = require_org(org_id)
    predicates = (
        _org_scope(org)
        .contains(User.fullname, criteria.name)
        .one_of(User.profilestatus, criteria.profilestatus, PROFILE_STATUSES)
        .one_of(User.accountstatus, criteria.accountstatus, ACCOUNT_STATUSES)
        .equals(UserLogin.roleid, criteria.role)
        .not_equals(UserLogin.roleid, criteria.exclude)
    )
    logger.debug("user search org=%s predicates=%s", org, len(predicates))

    request = PageRequest.of(criteria.pagination.currentPage, criteria.pagination.itemPerPage)
    page = paginate(
        _accounts(db).filter(predicates.clause()),
        request,
        order_by=[User.uid.asc()],
        transform=_account_row,
    )
    return {
        "users": page.items,
        "pagination": {
            "totalUsers": page.total,
            "itemsPerPage": request.size,
            "currentPage": request.page,
            "totalPages": page.pages,
        },
    }
