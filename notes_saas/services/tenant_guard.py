from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from sqlalchemy.orm import Session

from notes_saas.core.errors import AuthorizationError, NotFoundError
from notes_saas.models.tenant import Tenant
from notes_saas.models.user import User
from notes_saas.services.session import SessionContext
from notes_saas.utils.slug import normalize_slug

TENANT_MISMATCH = "TENANT_MISMATCH"
TENANT_NOT_FOUND = "TENANT_NOT_FOUND"
INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"


@dataclass(frozen=True)
class TenantScope:
    """Authenticated user plus the tenant every query in the handler is keyed on."""

    user: User
    tenant: Tenant

    @property
    def tenant_id(self) -> int:
        return self.tenant.id

    @property
    def user_id(self) -> int:
        return self.user.id


def resolve_tenant_reference(db: Session, slug: str) -> Tenant:
    candidate = (slug or "").strip().lower()
    # only an already well-formed slug may match; "AC!ME" must not fold into "acme"
    if not candidate or normalize_slug(candidate) != candidate:
        raise NotFoundError("Tenant not found", code=TENANT_NOT_FOUND)
    tenant = db.query(Tenant).filter(Tenant.slug == candidate).first()
    if tenant is None:
        raise NotFoundError("Tenant not found", code=TENANT_NOT_FOUND)
    return tenant


def enforce_isolation(session: SessionContext, requested: Tenant | None) -> TenantScope:
    """Pin the request to the session tenant; a different requested tenant is refused."""
    if requested is not None and requested.id != session.tenant.id:
        raise AuthorizationError("Access denied to this tenant", code=TENANT_MISMATCH)
    return TenantScope(user=session.user, tenant=session.tenant)


def enforce_role(scope: TenantScope, allowed_roles: Iterable[str]) -> TenantScope:
    allowed = {role.strip().lower() for role in allowed_roles}
    if (scope.user.role or "").strip().lower() not in allowed:
        raise AuthorizationError(
            f"Requires one of the following roles: {', '.join(sorted(allowed))}",
            code=INSUFFICIENT_PERMISSIONS,
        )
    return scope
