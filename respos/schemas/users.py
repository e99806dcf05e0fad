from __future__ import annotations

from typing import List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

LooseCode = Optional[Union[int, str]]


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _zero_to_none(value):
    # the web client sends 0 for "not chosen"
    if value in (0, "0"):
        return None
    return value


class RoleModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    uoid: Optional[int] = None
    roleid: Optional[int] = None
    roletypeid: Optional[int] = None

    @field_validator("uoid", "roleid", "roletypeid", mode="before")
    @classmethod
    def _unset_zero_ids(cls, value):
        return _zero_to_none(value)


class RightItem(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    right_id: Optional[int] = Field(default=None, alias="rightId")
    right_name: Optional[str] = Field(default=None, alias="rightName")
    selected: bool = False


class RightsModule(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    module_name: Optional[str] = Field(default=None, alias="moduleName")
    rights_list: List[RightItem] = Field(default_factory=list, alias="rightsList")


class RightsOfUserModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    modules: List[RightsModule] = Field(default_factory=list)

    def selected_right_ids(self) -> List[int]:
        return [
            right.right_id
            for module in self.modules
            for right in module.rights_list
            if right.selected and right.right_id is not None
        ]


class UserPayload(BaseModel):
    """Body of user create/edit. On edit only the keys actually sent are applied."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    fullname: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    emailid: Optional[str] = None
    mobno: Optional[str] = None
    employee_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("employeeid", "employee_id")
    )
    canlogin: Optional[bool] = None
    password: Optional[str] = None
    usercode: Optional[str] = None
    image: Optional[str] = None
    profilestatus: Optional[int] = None
    accountstatus: Optional[int] = None
    isapproved: Optional[bool] = None
    isadmin: Optional[bool] = None
    marketsegement: Optional[int] = None
    languageid: Optional[int] = None
    currencyid: Optional[int] = None

    roleModels: Optional[List[RoleModel]] = None
    rightsOfUserModel: Optional[RightsOfUserModel] = None

    @field_validator(
        "fullname",
        "firstname",
        "lastname",
        "emailid",
        "mobno",
        "employee_id",
        "password",
        "usercode",
        "image",
        mode="before",
    )
    @classmethod
    def _strip_blanks(cls, value):
        return _blank_to_none(value)

    @field_validator(
        "profilestatus", "accountstatus", "marketsegement", "languageid", "currencyid", mode="before"
    )
    @classmethod
    def _unset_zero_codes(cls, value):
        return _zero_to_none(value)

    @field_validator("emailid")
    @classmethod
    def _lower_email(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else value


class CustomerCreate(BaseModel):
    fullname: str = Field(..., min_length=1)
    mobno: Optional[str] = None

    @field_validator("mobno", mode="before")
    @classmethod
    def _strip_blank_mobile(cls, value):
        return _blank_to_none(value)


class ProfileStatusUpdate(BaseModel):
    profileStatus: int


class AccountStatusUpdate(BaseModel):
    accountStatus: int


class FilterPagination(BaseModel):
    model_config = ConfigDict(extra="ignore")

    itemPerPage: LooseCode = None
    currentPage: LooseCode = None


class UserFilter(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    profilestatus: LooseCode = None
    accountstatus: LooseCode = None
    role: LooseCode = None
    exclude: LooseCode = None
    pagination: FilterPagination = Field(default_factory=FilterPagination)

    @field_validator("role", "exclude", mode="before")
    @classmethod
    def _unset_zero_roles(cls, value):
        return _zero_to_none(value)


class PagePagination(BaseModel):
    model_config = ConfigDict(extra="ignore")

    page: LooseCode = None
    limit: LooseCode = None


class CustomerFilter(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    phoneNumber: Optional[str] = None
    pagination: PagePagination = Field(default_factory=PagePagination)


class CustomerDetailsRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    page: LooseCode = None
    limit: LooseCode = None
