import copy

import pytest

from respos.core.constants import SUPER_ADMIN_ROLE_ID
from respos.core.errors import ConflictError
from respos.models.address import Address
from respos.models.org_address_mapping import OrgAddressMapping
from respos.models.organization import Organization
from respos.models.user import User
from respos.models.user_login import UserLogin
from respos.models.user_role_mapping import UserRoleMapping
from respos.schemas.organizations import OrganizationBootstrap
from respos.services import organizations as organization_service
from tests.fixtures_data import ORGANIZATION_SIGNUP, auth_headers, seed_address, seed_org, seed_user


def _counts(db):
    return {
        model.__tablename__: db.query(model).count()
        for model in (Organization, Address, User, OrgAddressMapping, UserRoleMapping, UserLogin)
    }


def test_bootstrap_creates_linked_rows(client, db):
    response = client.post("/users/organization", json=ORGANIZATION_SIGNUP)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["organization"]["orgName"] == "Blue Bay Bistro"
    assert data["user"]["fullName"] == "Ana Costa"

    uoid = int(data["organization"]["uoid"])
    uid = int(data["user"]["uid"])
    uaid = int(data["address"]["uaid"])

    org = db.get(Organization, uoid)
    address = db.get(Address, uaid)
    assert org.uid == uid and org.createdby == uid
    assert address.uid == uid and address.createdby == uid
    assert db.get(User, uid).emailid == "owner@bluebay.pt"

    mapping = db.query(OrgAddressMapping).one()
    assert (mapping.uoid, mapping.uaid, mapping.uid, mapping.isdefault, mapping.addrtype) == (uoid, uaid, uid, True, 1)

    role = db.query(UserRoleMapping).one()
    assert (role.uid, role.uoid, role.roleid, role.roletypeid) == (uid, uoid, SUPER_ADMIN_ROLE_ID, None)


def test_bootstrapped_owner_can_log_in(client, db):
    client.post("/users/organization", json=ORGANIZATION_SIGNUP)

    response = client.post(
        "/auth/login",
        json={"email": "owner@bluebay.pt", "password": "bay-owner-pass"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["orgname"] == "Blue Bay Bistro"
    assert data["uaid"] is not None


def test_bootstrap_uses_requested_role(db):
    payload = OrganizationBootstrap(**{**ORGANIZATION_SIGNUP, "userRoleTypeId": 2})

    organization_service.bootstrap_organization(db, payload)

    assert db.query(UserRoleMapping).one().roleid == 2
    assert db.query(UserLogin).one().roleid == 2


def test_failed_address_step_rolls_back_everything(db, monkeypatch):
    def _broken_address(*_args, **_kwargs):
        raise RuntimeError("address service unavailable")

    monkeypatch.setattr(organization_service, "_create_address", _broken_address)

    with pytest.raises(RuntimeError):
        organization_service.bootstrap_organization(db, OrganizationBootstrap(**ORGANIZATION_SIGNUP))

    assert set(_counts(db).values()) == {0}


def test_duplicate_email_surfaces_single_conflict(client, db):
    seed_user(db, email="owner@bluebay.pt", fullname="Existing", login=False)
    before = _counts(db)

    response = client.post("/users/organization", json=ORGANIZATION_SIGNUP)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Email or mobile number already exists"
    assert _counts(db) == before


def test_constraint_violation_inside_bootstrap_is_conflict(db, monkeypatch):
    seed_user(db, email="owner@bluebay.pt", fullname="Existing", login=False)
    before = _counts(db)
    monkeypatch.setattr(organization_service, "_email_or_mobile_taken", lambda *_: False)

    with pytest.raises(ConflictError) as exc:
        organization_service.bootstrap_organization(db, OrganizationBootstrap(**ORGANIZATION_SIGNUP))

    assert exc.value.message == "Email or mobile number already exists"
    assert _counts(db) == before


def test_bootstrap_rejects_invalid_payload(client):
    payload = copy.deepcopy(ORGANIZATION_SIGNUP)
    payload["orgEmail"] = "not-an-email"

    response = client.post("/users/organization", json=payload)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_organization_and_address_lookups(client, db):
    org = seed_org(db, "Lookup", "lookup@example.com")
    address = seed_address(db, org)
    admin = seed_user(db, email="admin@example.com", fullname="Admin", org=org, roleid=2)
    headers = auth_headers(admin.uid, org.uoid)

    found = client.get(f"/users/organization/{org.uoid}", headers=headers)
    addr = client.get(f"/users/address/{address.uaid}", headers=headers)
    missing = client.get("/users/organization/9999", headers=headers)

    assert found.status_code == 200
    assert found.json()["data"]["orgname"] == "Lookup"
    assert addr.json()["data"]["city"] == "Lisbon"
    assert addr.json()["data"]["state"] == "11"
    assert missing.status_code == 404
    assert missing.json()["error"]["message"] == "Organization not found"


def test_organization_details_projection(client, db):
    client.post("/users/organization", json=ORGANIZATION_SIGNUP)
    org = db.query(Organization).one()
    owner = db.query(User).one()

    response = client.get(
        f"/users/organization/{org.uoid}/details",
        headers=auth_headers(owner.uid, org.uoid, roleid=1),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["organization"]["orgemail"] == "owner@bluebay.pt"
    assert data["user"]["fullname"] == "Ana Costa"
    assert data["address"]["address1"] == "12 Harbour Road"
    assert data["address"]["latitude"] == "41.1496100"


def test_super_admin_switch_moves_mapping_and_login(client, db):
    home = seed_org(db, "Home", "home@example.com")
    target = seed_org(db, "Target", "target@example.com")
    admin = seed_user(db, email="root@example.com", fullname="Root", org=home, roleid=1)

    response = client.patch(
        "/users/super-admin/uoid",
        json={"newUoid": target.uoid},
        headers=auth_headers(admin.uid, home.uoid, roleid=1),
    )

    assert response.status_code == 200
    assert response.json()["data"]["uoid"] == str(target.uoid)
    login = db.query(UserLogin).one()
    db.refresh(login)
    assert login.uoid == target.uoid
    assert login.roleid_orgid == target.uoid


def test_super_admin_switch_requires_super_admin(client, db):
    home = seed_org(db, "Home", "home@example.com")
    target = seed_org(db, "Target", "target@example.com")
    manager = seed_user(db, email="boss@example.com", fullname="Boss", org=home, roleid=2)

    response = client.patch(
        "/users/super-admin/uoid",
        json={"newUoid": target.uoid},
        headers=auth_headers(manager.uid, home.uoid, roleid=2),
    )

    assert response.status_code == 401
