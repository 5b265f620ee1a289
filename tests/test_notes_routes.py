from __future__ import annotations

from fastapi.testclient import TestClient

from notes_saas.models.note import Note
from notes_saas.models.tenant import Tenant
from tests.fixtures_data import ACME_ADMIN, ACME_MEMBER, NOTE_PAYLOAD, note_payload


def _create(client, payload=None):
    return client.post("/notes", json=payload or NOTE_PAYLOAD)


def test_create_note_sets_author_and_tenant(login, tenants):
    client = login(ACME_MEMBER)

    response = _create(client)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Note created successfully"
    note = body["data"]["note"]
    assert note["title"] == NOTE_PAYLOAD["title"]
    assert note["tenant_id"] == tenants["acme"].id
    assert note["author_email"] == ACME_MEMBER


def test_create_note_rejects_blank_fields(login):
    client = login(ACME_MEMBER)

    blank_title = _create(client, {"title": "   ", "content": "body"})
    missing_content = _create(client, {"title": "title"})

    for response in (blank_title, missing_content):
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert response.json()["message"] == "Title and content are required"


def test_create_note_rejects_overlong_title(login):
    response = _create(login(ACME_MEMBER), {"title": "x" * 201, "content": "body"})

    assert response.status_code == 400
    assert "200" in response.json()["message"]


def test_notes_require_authentication(app):
    response = TestClient(app).get("/notes")

    assert response.status_code == 401
    assert response.json()["code"] == "ACCESS_TOKEN_MISSING"


def test_free_plan_quota_then_upgrade_unlocks_creation(login, session_factory, tenants):
    admin = login(ACME_ADMIN)

    for index in range(3):
        assert _create(admin, note_payload(index)).status_code == 201

    blocked = _create(admin, note_payload(3))
    assert blocked.status_code == 403
    assert blocked.json() == {
        "success": False,
        "message": "Note limit reached. Upgrade to Pro for unlimited notes.",
        "code": "NOTE_LIMIT_REACHED",
    }

    upgraded = admin.post("/tenant/acme/upgrade")
    assert upgraded.status_code == 200
    assert upgraded.json()["data"]["tenant"]["plan"] == "pro"
    assert upgraded.json()["data"]["tenant"]["max_notes"] == -1

    assert _create(admin, note_payload(3)).status_code == 201
    assert _create(admin, note_payload(4)).status_code == 201

    db = session_factory()
    try:
        assert db.query(Note).filter(Note.tenant_id == tenants["acme"].id).count() == 5
    finally:
        db.close()


def test_quota_is_shared_by_every_user_of_the_tenant(login):
    admin = login(ACME_ADMIN)
    member = login(ACME_MEMBER)

    assert _create(admin, note_payload(1)).status_code == 201
    assert _create(member, note_payload(2)).status_code == 201
    assert _create(admin, note_payload(3)).status_code == 201

    assert _create(member, note_payload(4)).json()["code"] == "NOTE_LIMIT_REACHED"


def test_delete_frees_a_quota_slot(login, session_factory, tenants):
    client = login(ACME_MEMBER)
    ids = [_create(client, note_payload(i)).json()["data"]["note"]["id"] for i in range(3)]
    assert _create(client, note_payload(9)).status_code == 403

    assert client.delete(f"/notes/{ids[0]}").status_code == 200

    assert _create(client, note_payload(9)).status_code == 201
    db = session_factory()
    try:
        assert db.query(Tenant).filter(Tenant.id == tenants["acme"].id).one().note_count == 3
    finally:
        db.close()


def test_list_is_tenant_wide_and_paginated(login):
    admin = login(ACME_ADMIN)
    member = login(ACME_MEMBER)
    admin.post("/tenant/acme/upgrade")
    for index in range(4):
        _create(admin, note_payload(index))
    _create(member, note_payload(99))

    first_page = member.get("/notes", params={"page": 1, "limit": 2})

    assert first_page.status_code == 200
    data = first_page.json()["data"]
    assert [note["title"] for note in data["notes"]] == ["Note 99", "Note 3"]
    assert data["pagination"] == {
        "current_page": 1,
        "total_pages": 3,
        "total_count": 5,
        "has_more": True,
    }

    last_page = member.get("/notes", params={"page": 3, "limit": 2}).json()["data"]
    assert [note["title"] for note in last_page["notes"]] == ["Note 0"]
    assert last_page["pagination"]["has_more"] is False


def test_list_defaults_to_six_per_page(login):
    client = login(ACME_ADMIN)
    client.post("/tenant/acme/upgrade")
    for index in range(7):
        _create(client, note_payload(index))

    data = client.get("/notes").json()["data"]

    assert len(data["notes"]) == 6
    assert data["pagination"]["total_pages"] == 2


def test_list_sorting(login):
    client = login(ACME_MEMBER)
    for title in ("banana", "apple", "cherry"):
        _create(client, {"title": title, "content": "fruit"})

    ascending = client.get("/notes", params={"sort": "title"}).json()["data"]["notes"]
    descending = client.get("/notes", params={"sort": "-title"}).json()["data"]["notes"]

    assert [n["title"] for n in ascending] == ["apple", "banana", "cherry"]
    assert [n["title"] for n in descending] == ["cherry", "banana", "apple"]


def test_list_rejects_bad_paging_and_sort(login):
    client = login(ACME_MEMBER)

    assert client.get("/notes", params={"limit": 0}).status_code == 400
    assert client.get("/notes", params={"limit": 101}).status_code == 400
    assert client.get("/notes", params={"page": 0}).status_code == 400
    assert client.get("/notes", params={"sort": "password_hash"}).status_code == 400


def test_get_note_visible_to_tenant_members(login):
    admin = login(ACME_ADMIN)
    note_id = _create(admin).json()["data"]["note"]["id"]

    response = login(ACME_MEMBER).get(f"/notes/{note_id}")

    assert response.status_code == 200
    assert response.json()["data"]["note"]["id"] == note_id


def test_unknown_and_malformed_ids_are_not_found(login):
    client = login(ACME_MEMBER)

    for path in ("/notes/424242", "/notes/not-an-id"):
        response = client.get(path)
        assert response.status_code == 404
        assert response.json()["code"] == "NOTE_NOT_FOUND"


def test_author_can_update_partially(login):
    client = login(ACME_MEMBER)
    note = _create(client).json()["data"]["note"]

    response = client.put(f"/notes/{note['id']}", json={"title": "Renamed"})

    assert response.status_code == 200
    updated = response.json()["data"]["note"]
    assert updated["title"] == "Renamed"
    assert updated["content"] == NOTE_PAYLOAD["content"]


def test_update_rejects_empty_payload_and_blank_fields(login):
    client = login(ACME_MEMBER)
    note_id = _create(client).json()["data"]["note"]["id"]

    assert client.put(f"/notes/{note_id}", json={}).status_code == 400
    assert client.put(f"/notes/{note_id}", json={"content": "  "}).status_code == 400


def test_non_author_cannot_update_or_delete(login, session_factory):
    author = login(ACME_MEMBER)
    other = login(ACME_ADMIN)
    note_id = _create(author).json()["data"]["note"]["id"]

    update = other.put(f"/notes/{note_id}", json={"title": "hijacked"})
    delete = other.delete(f"/notes/{note_id}")

    for response in (update, delete):
        assert response.status_code == 404
        assert response.json()["code"] == "NOTE_NOT_FOUND"

    db = session_factory()
    try:
        note = db.query(Note).filter(Note.id == note_id).one()
        assert note.title == NOTE_PAYLOAD["title"]
    finally:
        db.close()


def test_author_can_delete(login):
    client = login(ACME_MEMBER)
    note_id = _create(client).json()["data"]["note"]["id"]

    response = client.delete(f"/notes/{note_id}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Note deleted successfully"}
    assert client.get(f"/notes/{note_id}").status_code == 404
