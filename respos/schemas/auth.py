from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel


class LoginPayload(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LogoutPayload(BaseModel):
    ulid: Optional[Union[int, str]] = None
