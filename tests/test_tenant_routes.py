from __future__ import annotations

from notes_saas.core import config
from tests.fixtures_data import ACME_ADMIN, ACME_MEMBER, GLOBEX_ADMIN


def test_get_own_tenant(login):
    response = login(ACME_MEMBER).get("/tenant/acme")

    assert response.status_code == 200
    assert response.json()["data"]["tenant"]["name"] == "Acme Corporation"


def test_member_cannot_upgrade(login):
    response = login(ACME_MEMBER).post("/tenant/acme/upgrade")

    assert response.status_code == 403
    assert response.json()["code"] == "INSUFFICIENT_PERMISSIONS"


def test_admin_cannot_upgrade_another_tenant(login):
    response = login(ACME_ADMIN).post("/tenant/globex/upgrade")

    assert response.status_code == 403
    assert response.json()["code"] == "TENANT_MISMATCH"
    assert login(GLOBEX_ADMIN).get("/tenant/globex").json()["data"]["tenant"]["plan"] == "free"


def test_unknown_tenant_slug(login):
    response = login(ACME_ADMIN).post("/tenant/initech/upgrade")

    assert response.status_code == 404
    assert response.json()["code"] == "TENANT_NOT_FOUND"


def test_upgrade_twice_reports_already_on_plan(login):
    admin = login(ACME_ADMIN)

    first = admin.post("/tenant/acme/upgrade")
    second = admin.post("/tenant/acme/upgrade")

    assert first.status_code == 200
    assert first.json()["message"] == "Tenant upgraded to Pro successfully"
    assert second.status_code == 400
    assert second.json()["code"] == "ALREADY_ON_PLAN"


def test_toggle_mode_flips_between_plans(login, monkeypatch):
    monkeypatch.setattr(config, "PLAN_CHANGE_MODE", "toggle")
    admin = login(ACME_ADMIN)

    up = admin.post("/tenant/acme/upgrade").json()
    down = admin.post("/tenant/acme/upgrade").json()

    assert up["data"]["tenant"]["plan"] == "pro"
    assert down["message"] == "Tenant downgraded to Free successfully"
    assert down["data"]["tenant"]["plan"] == "free"
    assert down["data"]["tenant"]["max_notes"] == 3


def test_admin_invites_user_who_can_log_in(login):
    admin = login(ACME_ADMIN)

    response = admin.post(
        "/tenant/acme/users",
        json={"email": "New.Hire@Acme-Corp.com", "password": "s3cret-pass", "role": "member"},
    )

    assert response.status_code == 201
    invited = response.json()["data"]["user"]
    assert invited["email"] == "new.hire@acme-corp.com"
    assert invited["role"] == "member"

    me = login("new.hire@acme-corp.com", "s3cret-pass").get("/auth/me").json()["data"]
    assert me["tenant"]["slug"] == "acme"


def test_invite_rejects_duplicate_email_across_tenants(login):
    payload = {"email": "shared@contractor.com", "password": "another-pass", "role": "member"}
    assert login(GLOBEX_ADMIN).post("/tenant/globex/users", json=payload).status_code == 201

    response = login(ACME_ADMIN).post("/tenant/acme/users", json=payload)

    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_VALUE"


def test_invite_validates_role_and_email(login):
    admin = login(ACME_ADMIN)

    bad_role = admin.post(
        "/tenant/acme/users",
        json={"email": "x@acme-corp.com", "password": "long-enough", "role": "owner"},
    )
    bad_email = admin.post(
        "/tenant/acme/users",
        json={"email": "not-an-email", "password": "long-enough", "role": "member"},
    )

    assert bad_role.status_code == 400
    assert bad_email.status_code == 400
    assert bad_email.json()["code"] == "VALIDATION_ERROR"


def test_member_cannot_invite_or_list_users(login):
    member = login(ACME_MEMBER)

    invite = member.post(
        "/tenant/acme/users",
        json={"email": "x@acme-corp.com", "password": "long-enough", "role": "member"},
    )
    listing = member.get("/tenant/acme/users")

    assert invite.status_code == 403
    assert listing.status_code == 403


def test_user_listing_is_scoped_to_tenant(login):
    users = login(ACME_ADMIN).get("/tenant/acme/users").json()["data"]["users"]

    assert sorted(user["email"] for user in users) == [ACME_ADMIN, ACME_MEMBER]


def test_malformed_slug_does_not_fold_into_own_tenant(login):
    admin = login(ACME_ADMIN)

    for path in ("/tenant/AC!ME/upgrade", "/tenant/-acme-/upgrade"):
        response = admin.post(path)
        assert response.status_code == 404
        assert response.json()["code"] == "TENANT_NOT_FOUND"

    assert admin.get("/tenant/ACME").json()["data"]["tenant"]["plan"] == "free"
