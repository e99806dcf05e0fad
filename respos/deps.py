# respos/deps.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from respos.core.errors import AuthError
from respos.core.request_context import bind_caller
from respos.services.auth import decode_access_token

# auto_error=False so a missing header goes through our own 401 payload
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    uid: int
    uoid: Optional[int]
    username: Optional[str]
    roleid: Optional[int]
    roleid_orgid: Optional[int]
    fullname: Optional[str]
    uaid: Optional[int]


def _as_int(value: Any) -> Optional[int]:
    """Token claims carry ids as strings; accept ints too."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def current_user_from_claims(claims: Dict[str, Any]) -> CurrentUser:
    uid = _as_int(claims.get("uid"))
    if uid is None:
        raise AuthError("Invalid or expired token")
    roleid_orgid = _as_int(claims.get("roleid_orgid"))
    uoid = _as_int(claims.get("uoid"))
    return CurrentUser(
        uid=uid,
        uoid=uoid if uoid is not None else roleid_orgid,
        username=claims.get("username"),
        roleid=_as_int(claims.get("roleid")),
        roleid_orgid=roleid_orgid,
        fullname=claims.get("fullname"),
        uaid=_as_int(claims.get("uaid")),
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """Read the bearer token, verify it and expose the caller's identity."""
    if credentials is None or not credentials.credentials:
        raise AuthError("No token, authorization denied")

    claims = decode_access_token(credentials.credentials)
    user = current_user_from_claims(claims)

    request.state.user = user
    bind_caller(org_id=user.uoid, user_id=user.uid)
    return user
