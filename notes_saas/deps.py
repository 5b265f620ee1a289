# notes_saas/deps.py
"""Request pipeline as FastAPI dependencies.

authenticate -> resolve tenant -> isolation -> role. Each stage hands the next
a fully populated object, so handlers only ever see a complete ``TenantScope``.
"""
from __future__ import annotations

import logging
from typing import Iterable

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notes_saas.core.database import get_db
from notes_saas.core.errors import AppError
from notes_saas.core.request_context import bind_request_context
from notes_saas.models.user import ROLE_ADMIN, ROLE_MEMBER
from notes_saas.services.session import (
    AUTH_ERROR,
    SessionContext,
    authenticate_credential,
    extract_access_token,
    load_session,
    session_failure,
)
from notes_saas.services.tenant_guard import (
    TenantScope,
    enforce_isolation,
    enforce_role,
    resolve_tenant_reference,
)

logger = logging.getLogger(__name__)

ANY_ROLE = (ROLE_ADMIN, ROLE_MEMBER)
ADMIN_ONLY = (ROLE_ADMIN,)


def _claims_from_request(request: Request):
    if getattr(request.state, "session_checked", False):
        if request.state.access_claims is not None:
            return request.state.access_claims
        error_code = request.state.auth_error
        if error_code:
            raise session_failure(error_code)
        return authenticate_credential(None)

    # app built without SessionMiddleware
    return authenticate_credential(extract_access_token(request))


def get_session_context(request: Request, db: Session = Depends(get_db)) -> SessionContext:
    claims = _claims_from_request(request)
    try:
        session = load_session(db, claims)
    except AppError:
        raise
    except SQLAlchemyError as exc:
        logger.exception("session lookup failed user_id=%s", claims.user_id)
        raise session_failure(AUTH_ERROR) from exc

    request.state.user = session.user
    request.state.tenant_id = session.tenant.id
    bind_request_context(user_id=session.user.id, tenant_id=session.tenant.id)
    return session


def _log_access_denied(*, reason: str, scope_user, tenant_id: int | None, requested: str | None, request: Request) -> None:
    logger.warning(
        "access denied reason=%s user_id=%s role=%s tenant_id=%s requested=%s endpoint=%s",
        reason,
        getattr(scope_user, "id", None),
        getattr(scope_user, "role", None),
        tenant_id,
        requested,
        request.url.path,
        extra={"reason": reason, "endpoint": request.url.path, "method": request.method},
    )


def get_tenant_scope(
    request: Request,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
) -> TenantScope:
    """Routes carrying ``{slug}`` must target the session tenant; others are pinned to it."""
    requested_slug = request.path_params.get("slug")
    requested = resolve_tenant_reference(db, requested_slug) if requested_slug is not None else None
    try:
        return enforce_isolation(session, requested)
    except AppError:
        _log_access_denied(
            reason="tenant_mismatch",
            scope_user=session.user,
            tenant_id=session.tenant.id,
            requested=requested_slug,
            request=request,
        )
        raise


def require_role(roles: Iterable[str]):
    allowed = tuple(role.strip().lower() for role in roles)

    def _dependency(request: Request, scope: TenantScope = Depends(get_tenant_scope)) -> TenantScope:
        try:
            return enforce_role(scope, allowed)
        except AppError:
            _log_access_denied(
                reason="role_denied",
                scope_user=scope.user,
                tenant_id=scope.tenant_id,
                requested=request.path_params.get("slug"),
                request=request,
            )
            raise

    return _dependency
