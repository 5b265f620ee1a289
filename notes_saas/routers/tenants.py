from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from notes_saas.core.database import get_db
from notes_saas.core.responses import ok
from notes_saas.deps import ADMIN_ONLY, ANY_ROLE, require_role
from notes_saas.schemas.auth import TenantRead, UserRead
from notes_saas.schemas.tenants import UserInvitePayload
from notes_saas.services.plans import change_plan
from notes_saas.services.tenant_guard import TenantScope
from notes_saas.services.users import create_user, list_tenant_users

router = APIRouter(prefix="/tenant", tags=["tenant"])
logger = logging.getLogger(__name__)


def _tenant_payload(tenant) -> dict:
    return TenantRead.model_validate(tenant).model_dump(mode="json")


@router.get("/{slug}")
def get_tenant(slug: str, scope: TenantScope = Depends(require_role(ANY_ROLE))):
    return ok("Tenant retrieved successfully", {"tenant": _tenant_payload(scope.tenant)})


@router.post("/{slug}/upgrade")
def upgrade_plan(
    slug: str,
    scope: TenantScope = Depends(require_role(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    change = change_plan(db, scope.tenant)
    logger.info(
        "[PLAN] tenant_id=%s changed by user_id=%s from=%s to=%s",
        scope.tenant_id,
        scope.user_id,
        change.previous_plan,
        change.tenant.plan,
    )
    return ok(change.message, {"tenant": _tenant_payload(change.tenant)})


@router.get("/{slug}/users")
def list_users(
    slug: str,
    scope: TenantScope = Depends(require_role(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    users = list_tenant_users(db, scope.tenant)
    return ok(
        "Users retrieved successfully",
        {"users": [UserRead.model_validate(user).model_dump(mode="json") for user in users]},
    )


@router.post("/{slug}/users")
def invite_user(
    slug: str,
    payload: UserInvitePayload,
    scope: TenantScope = Depends(require_role(ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    user = create_user(
        db,
        scope.tenant,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=ok("User invited successfully", {"user": UserRead.model_validate(user).model_dump(mode="json")}),
    )
