from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from notes_saas.core.errors import AuthenticationError, ConflictError, ValidationError
from notes_saas.models.tenant import Tenant
from notes_saas.models.user import ROLES, User
from notes_saas.services.passwords import burn_password_check, hash_password, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "INVALID_CREDENTIALS"


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def find_user_by_email(db: Session, email: str) -> User | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.query(User).filter(func.lower(User.email) == normalized).first()


def authenticate_user(db: Session, *, email: Optional[str], password: Optional[str]) -> tuple[User, Tenant]:
    """Check login credentials. Unknown e-mail and wrong password fail identically."""
    if not normalize_email(email) or not password:
        raise ValidationError("Email and password are required")

    user = find_user_by_email(db, email)
    if user is None:
        burn_password_check(password)
        raise AuthenticationError("Invalid credentials", code=INVALID_CREDENTIALS)
    if not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials", code=INVALID_CREDENTIALS)

    tenant = db.query(Tenant).filter(Tenant.id == user.tenant_id).first()
    if tenant is None:
        logger.error("user without tenant user_id=%s tenant_id=%s", user.id, user.tenant_id)
        raise AuthenticationError("Tenant not found", code="TENANT_NOT_FOUND")
    return user, tenant


def create_user(db: Session, tenant: Tenant, *, email: str, password: str, role: str) -> User:
    normalized_email = normalize_email(email)
    normalized_role = (role or "").strip().lower()
    if normalized_role not in ROLES:
        raise ValidationError(f"Invalid role '{role}'. Allowed: {', '.join(ROLES)}")

    if find_user_by_email(db, normalized_email) is not None:
        raise ConflictError("User with this email already exists")

    user = User(
        tenant_id=tenant.id,
        email=normalized_email,
        password_hash=hash_password(password),
        role=normalized_role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user created user_id=%s tenant_id=%s role=%s", user.id, tenant.id, user.role)
    return user


def list_tenant_users(db: Session, tenant: Tenant) -> list[User]:
    return db.query(User).filter(User.tenant_id == tenant.id).order_by(User.id.asc()).all()
