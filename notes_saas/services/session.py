from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.orm import Session

from notes_saas.core.config import ACCESS_TOKEN_COOKIE
from notes_saas.core.errors import AuthenticationError
from notes_saas.models.tenant import Tenant
from notes_saas.models.user import User
from notes_saas.services.tokens import AccessClaims, TokenExpired, TokenInvalid, verify_access_token

ACCESS_TOKEN_MISSING = "ACCESS_TOKEN_MISSING"
ACCESS_TOKEN_INVALID = "ACCESS_TOKEN_INVALID"
ACCESS_TOKEN_EXPIRED = "ACCESS_TOKEN_EXPIRED"
USER_NOT_FOUND = "USER_NOT_FOUND"
TENANT_NOT_FOUND = "TENANT_NOT_FOUND"
AUTH_ERROR = "AUTH_ERROR"

_MESSAGES = {
    ACCESS_TOKEN_MISSING: "Access token is required",
    ACCESS_TOKEN_INVALID: "Invalid access token",
    ACCESS_TOKEN_EXPIRED: "Access token has expired",
    USER_NOT_FOUND: "User not found",
    TENANT_NOT_FOUND: "Tenant not found",
    AUTH_ERROR: "Authentication error",
}


@dataclass(frozen=True)
class SessionContext:
    user: User
    tenant: Tenant
    claims: AccessClaims


def session_failure(code: str) -> AuthenticationError:
    if code == AUTH_ERROR:
        return AuthenticationError(_MESSAGES[code], code=code, status_code=500)
    return AuthenticationError(
        _MESSAGES.get(code, _MESSAGES[ACCESS_TOKEN_INVALID]),
        code=code,
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_access_token(request: Request) -> str | None:
    """Cookie first, then ``Authorization: Bearer``."""
    cookie_token = (request.cookies.get(ACCESS_TOKEN_COOKIE) or "").strip()
    if cookie_token:
        return cookie_token

    authorization = request.headers.get("authorization") or ""
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def authenticate_credential(token: str | None) -> AccessClaims:
    if not token:
        raise session_failure(ACCESS_TOKEN_MISSING)
    try:
        return verify_access_token(token)
    except TokenExpired as exc:
        raise session_failure(ACCESS_TOKEN_EXPIRED) from exc
    except TokenInvalid as exc:
        raise session_failure(ACCESS_TOKEN_INVALID) from exc


def load_session(db: Session, claims: AccessClaims) -> SessionContext:
    user = db.query(User).filter(User.id == claims.user_id).first()
    if user is None:
        raise session_failure(USER_NOT_FOUND)

    tenant = db.query(Tenant).filter(Tenant.id == user.tenant_id).first()
    if tenant is None:
        raise session_failure(TENANT_NOT_FOUND)

    # user moved or token forged for another tenant
    if tenant.id != claims.tenant_id:
        raise session_failure(ACCESS_TOKEN_INVALID)

    return SessionContext(user=user, tenant=tenant, claims=claims)
