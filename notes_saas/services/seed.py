from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from notes_saas.core.config import FREE_PLAN_MAX_NOTES
from notes_saas.models.tenant import PLAN_FREE, Tenant
from notes_saas.models.user import ROLE_ADMIN, ROLE_MEMBER, User
from notes_saas.services.passwords import hash_password

logger = logging.getLogger(__name__)
SEED_PREFIX = "[SEED]"

DEMO_PASSWORD = "password"
DEMO_TENANTS = (
    {"slug": "acme", "name": "Acme Corporation"},
    {"slug": "globex", "name": "Globex Corporation"},
)
DEMO_USERS = (
    {"email": "admin@acme.test", "role": ROLE_ADMIN, "tenant": "acme"},
    {"email": "user@acme.test", "role": ROLE_MEMBER, "tenant": "acme"},
    {"email": "admin@globex.test", "role": ROLE_ADMIN, "tenant": "globex"},
    {"email": "user@globex.test", "role": ROLE_MEMBER, "tenant": "globex"},
)


def seed_demo_data(db: Session, *, password: str = DEMO_PASSWORD) -> dict[str, int]:
    """Create the demo tenants and users that are missing. Existing rows are left alone."""
    created = {"tenants": 0, "users": 0}
    tenants: dict[str, Tenant] = {}

    for entry in DEMO_TENANTS:
        tenant = db.query(Tenant).filter(Tenant.slug == entry["slug"]).first()
        if tenant is None:
            tenant = Tenant(
                slug=entry["slug"],
                name=entry["name"],
                plan=PLAN_FREE,
                max_notes=FREE_PLAN_MAX_NOTES,
                note_count=0,
            )
            db.add(tenant)
            db.flush()
            created["tenants"] += 1
        tenants[entry["slug"]] = tenant

    password_hash = None
    for entry in DEMO_USERS:
        if db.query(User).filter(User.email == entry["email"]).first() is not None:
            continue
        if password_hash is None:
            password_hash = hash_password(password)
        db.add(
            User(
                email=entry["email"],
                role=entry["role"],
                tenant_id=tenants[entry["tenant"]].id,
                password_hash=password_hash,
            )
        )
        created["users"] += 1

    db.commit()
    logger.info("%s demo data ensured tenants_created=%s users_created=%s", SEED_PREFIX, created["tenants"], created["users"])
    return created
