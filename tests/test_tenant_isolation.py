from __future__ import annotations

import random

import pytest

from notes_saas.models.note import Note
from notes_saas.models.tenant import PLAN_PRO, Tenant
from notes_saas.models.user import User
from tests.fixtures_data import ACME_ADMIN, ACME_MEMBER, GLOBEX_ADMIN, GLOBEX_MEMBER

USERS_BY_TENANT = {
    "acme": (ACME_ADMIN, ACME_MEMBER),
    "globex": (GLOBEX_ADMIN, GLOBEX_MEMBER),
}


@pytest.fixture
def populated(db, tenants):
    """Both tenants on pro with a handful of notes from random authors."""
    rng = random.Random(1337)
    db.query(Tenant).update({Tenant.plan: PLAN_PRO, Tenant.max_notes: -1}, synchronize_session=False)
    notes: dict[str, list[int]] = {"acme": [], "globex": []}
    for index in range(12):
        slug = ("acme", "globex")[index % 2]
        author = db.query(User).filter(User.email == rng.choice(USERS_BY_TENANT[slug])).one()
        note = Note(
            title=f"{slug} note {index}",
            content="confidential",
            tenant_id=tenants[slug].id,
            author_id=author.id,
        )
        db.add(note)
        db.flush()
        notes[slug].append(note.id)
    db.commit()
    return notes


@pytest.mark.parametrize("seed", range(5))
def test_no_cross_tenant_access_for_random_pairs(login, populated, seed):
    rng = random.Random(seed)
    own_slug, other_slug = rng.sample(sorted(USERS_BY_TENANT), 2)
    client = login(rng.choice(USERS_BY_TENANT[own_slug]))
    foreign_id = rng.choice(populated[other_slug])

    assert client.get(f"/notes/{foreign_id}").status_code == 404
    assert client.put(f"/notes/{foreign_id}", json={"title": "x"}).status_code == 404
    assert client.delete(f"/notes/{foreign_id}").status_code == 404

    listed = client.get("/notes", params={"limit": 100}).json()["data"]
    listed_ids = {note["id"] for note in listed["notes"]}
    assert listed_ids == set(populated[own_slug])
    assert listed["pagination"]["total_count"] == len(populated[own_slug])


def test_foreign_note_survives_attempted_delete(login, populated, session_factory):
    foreign_id = populated["acme"][0]

    login(GLOBEX_ADMIN).delete(f"/notes/{foreign_id}")

    db = session_factory()
    try:
        assert db.query(Note).filter(Note.id == foreign_id).first() is not None
    finally:
        db.close()


@pytest.mark.parametrize(
    "email, slug",
    [(ACME_ADMIN, "globex"), (ACME_MEMBER, "globex"), (GLOBEX_ADMIN, "acme"), (GLOBEX_MEMBER, "acme")],
)
def test_tenant_routes_refuse_other_slugs(login, email, slug):
    response = login(email).get(f"/tenant/{slug}")

    assert response.status_code == 403
    assert response.json()["code"] == "TENANT_MISMATCH"


def test_tenant_header_cannot_redirect_scope(login, populated):
    client = login(ACME_MEMBER)

    listed = client.get("/notes", headers={"X-Tenant-Slug": "globex"}).json()["data"]["notes"]

    assert all(note["tenant_id"] == listed[0]["tenant_id"] for note in listed)
    assert {note["id"] for note in listed} <= set(populated["acme"])
