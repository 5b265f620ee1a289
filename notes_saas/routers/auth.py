from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from notes_saas.core.database import get_db
from notes_saas.core.responses import error_body, ok
from notes_saas.deps import get_session_context
from notes_saas.schemas.auth import LoginPayload, RefreshPayload, SessionRead, TenantRead, UserRead
from notes_saas.services.auth_cookies import clear_session_cookies, read_refresh_token, set_session_cookies
from notes_saas.services.session import SessionContext
from notes_saas.services.tokens import (
    TokenExpired,
    TokenInvalid,
    TokenNotFound,
    issue_tokens,
    revoke_refresh_token,
    rotate_refresh_token,
)
from notes_saas.services.users import authenticate_user

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

_REFRESH_FAILURES = {
    TokenExpired: ("REFRESH_TOKEN_EXPIRED", "Refresh token has expired"),
    TokenNotFound: ("REFRESH_TOKEN_REVOKED", "Refresh token has been revoked"),
    TokenInvalid: ("REFRESH_TOKEN_INVALID", "Invalid refresh token"),
}


def _session_payload(user, tenant) -> dict:
    return SessionRead(
        user=UserRead.model_validate(user),
        tenant=TenantRead.model_validate(tenant),
    ).model_dump(mode="json")


def _refresh_rejected(code: str, message: str) -> JSONResponse:
    response = JSONResponse(status_code=401, content=error_body(message, code=code))
    clear_session_cookies(response)
    return response


@router.post("/login")
def login(payload: LoginPayload, response: Response, db: Session = Depends(get_db)):
    user, tenant = authenticate_user(db, email=payload.email, password=payload.password)
    pair = issue_tokens(db, user_id=user.id, tenant_id=tenant.id, role=user.role)
    set_session_cookies(response, pair)

    logger.info("[AUTH] login user_id=%s tenant_id=%s", user.id, tenant.id)
    return ok("Login successful", _session_payload(user, tenant))


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    payload: Optional[RefreshPayload] = None,
    db: Session = Depends(get_db),
):
    token = read_refresh_token(request, payload.refreshToken if payload else None)
    revoked = revoke_refresh_token(db, token)
    clear_session_cookies(response)

    logger.info("[AUTH] logout revoked=%s", revoked)
    return ok("Logout successful")


@router.post("/refreshToken")
def refresh_token(
    request: Request,
    response: Response,
    payload: Optional[RefreshPayload] = None,
    db: Session = Depends(get_db),
):
    token = read_refresh_token(request, payload.refreshToken if payload else None)
    if not token:
        return _refresh_rejected("REFRESH_TOKEN_MISSING", "Refresh token required")

    try:
        pair = rotate_refresh_token(db, token)
    except (TokenExpired, TokenNotFound, TokenInvalid) as exc:
        code, message = _REFRESH_FAILURES[type(exc)]
        logger.info("[AUTH] refresh rejected code=%s", code)
        return _refresh_rejected(code, message)

    set_session_cookies(response, pair)
    return ok("Tokens refreshed successfully")


@router.get("/me")
def me(session: SessionContext = Depends(get_session_context)):
    return ok("User retrieved successfully", _session_payload(session.user, session.tenant))
