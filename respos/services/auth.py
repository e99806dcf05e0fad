from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from respos.core.config import DEV_JWT_SECRET, IS_PROD, JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_SECRET_KEY
from respos.core.errors import AuthError

logger = logging.getLogger(__name__)

TOKEN_CLAIMS = ("uid", "uoid", "username", "roleid", "roleid_orgid", "fullname", "uaid")


def _secret() -> str:
    if JWT_SECRET_KEY:
        return JWT_SECRET_KEY
    if IS_PROD:
        raise RuntimeError("JWT_SECRET_KEY is not configured.")
    return DEV_JWT_SECRET


def _claim(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def create_access_token(
    claims: Dict[str, Any],
    expires_minutes: int = JWT_EXPIRE_MINUTES,
) -> str:
    """Sign the session claims.

    Identifier claims are always emitted as decimal strings; ``fullname`` and
    ``username`` stay plain text. Unknown keys are dropped.
    """
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {key: _claim(claims.get(key)) for key in TOKEN_CLAIMS}
    payload["iat"] = int(now.timestamp())
    payload["exp"] = int((now + timedelta(minutes=expires_minutes)).timestamp())
    return jwt.encode(payload, _secret(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Return the verified claims or raise AuthError for a bad/expired token."""
    try:
        return jwt.decode(token, _secret(), algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        logger.warning("token verification failed: %s", exc)
        raise AuthError("Invalid or expired token") from exc
