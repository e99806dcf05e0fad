"""Reusable seed data for backend test scenarios."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from respos.core.constants import CUSTOMER_ROLE_ID, WAITER_ROLE_ID
from respos.models.address import Address
from respos.models.booking import TableBooking, TableInformation
from respos.models.org_address_mapping import OrgAddressMapping
from respos.models.order import Order
from respos.models.organization import Organization
from respos.models.user import User
from respos.models.user_login import UserLogin
from respos.models.user_role_mapping import UserRoleMapping
from respos.services.auth import create_access_token
from respos.services.passwords import hash_password

DEFAULT_PASSWORD = "correct-horse"

ORGANIZATION_SIGNUP = {
    "orgName": "Blue Bay Bistro",
    "orgEmail": "Owner@BlueBay.pt",
    "orgMobile": "5550001111",
    "orgAddress": {
        "address1": "12 Harbour Road",
        "address2": "Unit 4",
        "city": "Porto",
        "state": 13,
        "country": "PT",
        "pincode": "4000-001",
        "latitude": "41.1496100",
        "longitude": "-8.6109900",
    },
    "userFullName": "Ana Costa",
    "userFirstName": "Ana",
    "userLastName": "Costa",
    "password": "bay-owner-pass",
    "isActive": True,
}

STAFF_PAYLOAD = {
    "fullname": "Rui Mendes",
    "firstname": "Rui",
    "lastname": "Mendes",
    "emailid": "Rui.Mendes@example.com",
    "mobno": "5552223333",
    "employeeid": "EMP-042",
    "canlogin": True,
    "password": "waiter-pass",
    "profilestatus": 8,
    "accountstatus": 1,
    "roleModels": [{"uoid": 0, "roleid": 3, "roletypeid": 0}],
    "rightsOfUserModel": {
        "modules": [
            {
                "moduleName": "Orders",
                "rightsList": [
                    {"rightId": 11, "rightName": "View", "selected": True},
                    {"rightId": 12, "rightName": "Edit", "selected": False},
                ],
            },
            {
                "moduleName": "Tables",
                "rightsList": [{"rightId": 21, "rightName": "Book", "selected": True}],
            },
        ]
    },
}


def seed_org(db, name: str = "Main Outlet", email: str = "outlet@example.com") -> Organization:
    org = Organization(orgname=name, orgemail=email, orgmobile="5550000000", isdeleted=False)
    db.add(org)
    db.commit()
    return org


def seed_address(db, org: Organization, *, city: str = "Lisbon", isdefault: bool = True) -> Address:
    address = Address(address1="1 Main Street", city=city, state=11, country="PT", isdeleted=False)
    db.add(address)
    db.flush()
    db.add(
        OrgAddressMapping(
            uaid=address.uaid,
            uoid=org.uoid,
            isdefault=isdefault,
            addrtype=1,
            isdeleted=False,
        )
    )
    db.commit()
    return address


def seed_user(
    db,
    *,
    email: Optional[str],
    fullname: str,
    org: Optional[Organization] = None,
    roleid: Optional[int] = None,
    password: str = DEFAULT_PASSWORD,
    profilestatus: Optional[int] = None,
    accountstatus: Optional[int] = None,
    mobno: Optional[str] = None,
    login: bool = True,
    primary_uoid: Optional[int] = None,
    roleid_orgid: Optional[int] = None,
    isdeleted: bool = False,
) -> User:
    user = User(
        fullname=fullname,
        emailid=email,
        mobno=mobno,
        password=hash_password(password),
        canlogin=login,
        profilestatus=profilestatus,
        accountstatus=accountstatus,
        isdeleted=isdeleted,
    )
    db.add(user)
    db.flush()
    if org is not None and roleid is not None:
        db.add(UserRoleMapping(uid=user.uid, uoid=org.uoid, roleid=roleid, isdeleted=False))
    if login and email:
        org_id = org.uoid if org is not None else None
        db.add(
            UserLogin(
                uid=user.uid,
                username=email.lower(),
                uoid=primary_uoid if primary_uoid is not None else org_id,
                roleid=roleid,
                roleid_orgid=roleid_orgid if roleid_orgid is not None else org_id,
                isdeleted=False,
            )
        )
    db.commit()
    return user


def seed_customer(db, org: Organization, fullname: str, mobno: Optional[str] = None) -> User:
    return seed_user(
        db,
        email=None,
        fullname=fullname,
        org=org,
        roleid=CUSTOMER_ROLE_ID,
        mobno=mobno,
        login=False,
    )


def seed_waiter(db, org: Organization, fullname: str = "Wendy Waiter") -> User:
    return seed_user(
        db,
        email=f"{fullname.split()[0].lower()}@example.com",
        fullname=fullname,
        org=org,
        roleid=WAITER_ROLE_ID,
    )


def seed_order(db, customer: User, total: str, orderdate: datetime, *, isdeleted: bool = False) -> Order:
    amount = Decimal(total)
    order = Order(
        buyerid=customer.uid,
        orderdate=orderdate,
        orderitemtotal=amount,
        ordertaxtotal=Decimal("0.00"),
        orderdiscount=Decimal("0.00"),
        ordertotal=amount,
        isdeleted=isdeleted,
    )
    db.add(order)
    db.commit()
    return order


def seed_table(db, org: Organization, name: str, capacity: int = 4) -> TableInformation:
    table = TableInformation(uoid=org.uoid, table_name=name, capacity=capacity, status="free")
    db.add(table)
    db.commit()
    return table


def seed_booking(
    db,
    waiter: User,
    booking_time: datetime,
    *,
    customer: Optional[User] = None,
    table: Optional[TableInformation] = None,
    merged: Optional[list] = None,
) -> TableBooking:
    booking = TableBooking(
        uid=customer.uid if customer else None,
        waiter_id=waiter.uid,
        table_id=table.table_id if table else None,
        merge_table_id=merged,
        booking_time=booking_time,
        no_of_guests=2,
        is_reservation=True,
        is_deleted=False,
    )
    db.add(booking)
    db.commit()
    return booking


def auth_headers(
    uid: int,
    uoid: Optional[int],
    *,
    roleid: int = 2,
    roleid_orgid: Optional[int] = None,
    username: str = "staff@example.com",
) -> dict:
    token = create_access_token(
        {
            "uid": uid,
            "uoid": uoid,
            "username": username,
            "roleid": roleid,
            "roleid_orgid": roleid_orgid if roleid_orgid is not None else uoid,
            "fullname": "Test Caller",
            "uaid": None,
        }
    )
    return {"Authorization": f"Bearer {token}"}


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)
