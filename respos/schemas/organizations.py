from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class OrgAddressPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    address1: str = Field(..., min_length=1)
    address2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: Optional[int] = None
    country: Optional[str] = None
    pincode: Optional[str] = Field(default=None, max_length=20)
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None


class OrganizationBootstrap(BaseModel):
    model_config = ConfigDict(extra="ignore")

    orgName: str = Field(..., min_length=1, max_length=200)
    orgEmail: EmailStr
    orgMobile: str = Field(..., min_length=1, max_length=30)
    orgAddress: OrgAddressPayload
    userFullName: str = Field(..., min_length=1)
    userFirstName: Optional[str] = None
    userLastName: Optional[str] = None
    password: str = Field(..., min_length=1)
    userRoleTypeId: Optional[int] = None
    isActive: Optional[bool] = None


class SuperAdminOrgSwitch(BaseModel):
    newUoid: int
