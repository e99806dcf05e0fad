# respos/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from respos.core.database import get_db
from respos.core.errors import ValidationError
from respos.core.serialization import envelope
from respos.schemas.auth import LoginPayload, LogoutPayload
from respos.services.identity import authenticate, record_login, record_logout
from respos.services.search import parse_code

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
def login(payload: LoginPayload, db: Session = Depends(get_db)):
    email = (payload.email or "").strip().lower()
    session = authenticate(db, email, payload.password or "")
    # the login stamp is a separate step, not part of authentication
    record_login(db, session.ulid)

    body = envelope(session.as_payload())
    body["message"] = "Login successful"
    return body


@router.post("/logout")
def logout(payload: LogoutPayload, db: Session = Depends(get_db)):
    ulid = parse_code(payload.ulid)
    if ulid is None:
        raise ValidationError("ulid is required")

    record_logout(db, ulid)
    return envelope({"message": "Logout successful"})
