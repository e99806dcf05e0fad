from __future__ import annotations

from functools import lru_cache

import bcrypt

from respos.core.config import BCRYPT_ROUNDS
from respos.core.constants import BCRYPT_HASH_PREFIXES


# bcrypt only looks at the first 72 bytes; newer bcrypt releases raise instead
# of truncating, so we truncate ourselves to keep existing hashes valid.
def _normalize_password_for_bcrypt(password: str) -> bytes:
    pw = (password or "").encode("utf-8")
    if len(pw) <= 72:
        return pw
    return pw[:72]


def password_looks_hashed(password: str | None) -> bool:
    return bool(password) and password.startswith(BCRYPT_HASH_PREFIXES)


def hash_password(password: str) -> str:
    pw = _normalize_password_for_bcrypt(password)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw, salt).decode("utf-8")


@lru_cache(maxsize=1)
def _dummy_hash() -> bytes:
    return bcrypt.hashpw(b"respos-timing-guard", bcrypt.gensalt(rounds=BCRYPT_ROUNDS))


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    try:
        pw = _normalize_password_for_bcrypt(plain_password)
        ph = (password_hash or "").encode("utf-8")
        return bcrypt.checkpw(pw, ph)
    except ValueError:
        return False


def burn_verification() -> None:
    """Spend the same bcrypt work as a real check when there is nothing to check."""
    bcrypt.checkpw(b"respos-timing-guard-miss", _dummy_hash())
