"""Access/refresh token issuing, verification, rotation and revocation.

Access tokens are stateless JWTs signed with ``JWT_SECRET``. Refresh tokens are
JWTs signed with ``JWT_REFRESH_SECRET`` that additionally need a live row in
``refresh_tokens``; deleting the row revokes the token. Rows are looked up by
the SHA-256 of the bearer value.
"""
from __future__ import annotations

import hashlib
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from notes_saas.core import config
from notes_saas.models.refresh_token import RefreshToken
from notes_saas.models.tenant import Tenant
from notes_saas.models.user import User
from notes_saas.utils.clock import utcnow

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenError(Exception):
    pass


class TokenInvalid(TokenError):
    pass


class TokenExpired(TokenError):
    pass


class TokenNotFound(TokenError):
    """Well-formed refresh token with no stored record (revoked or already rotated)."""


@dataclass(frozen=True)
class AccessClaims:
    user_id: int
    tenant_id: int
    role: str
    jti: str
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime


def _secret_for(token_type: str) -> str:
    secret = config.JWT_SECRET if token_type == ACCESS_TOKEN_TYPE else config.JWT_REFRESH_SECRET
    if not secret:
        name = "JWT_SECRET" if token_type == ACCESS_TOKEN_TYPE else "JWT_REFRESH_SECRET"
        raise RuntimeError(f"{name} is not configured.")
    return secret


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _encode(*, user_id: int, tenant_id: int, role: str, token_type: str, expires_at: datetime) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        # "sub" must be a string for python-jose
        "sub": str(user_id),
        "tenant_id": tenant_id,
        "role": role,
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.replace(tzinfo=timezone.utc).timestamp()),
    }
    return jwt.encode(payload, _secret_for(token_type), algorithm=config.JWT_ALGORITHM)


def _decode(token: str, *, token_type: str) -> Dict[str, Any]:
    if not token:
        raise TokenInvalid("empty token")
    try:
        payload = jwt.decode(token, _secret_for(token_type), algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpired("token expired") from exc
    except JWTError as exc:
        raise TokenInvalid("token signature or format invalid") from exc

    if payload.get("type") != token_type:
        raise TokenInvalid(f"expected a {token_type} token")
    return payload


def _parse_int_claim(payload: Dict[str, Any], key: str) -> int:
    raw = payload.get(key)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    raise TokenInvalid(f"claim {key!r} missing or malformed")


def issue_tokens(db: Session, *, user_id: int, tenant_id: int, role: str, commit: bool = True) -> TokenPair:
    """Sign a fresh access/refresh pair and persist the refresh record."""
    now = utcnow()
    access_expires_at = now + timedelta(minutes=config.JWT_ACCESS_EXPIRES_MINUTES)
    refresh_expires_at = now + timedelta(days=config.JWT_REFRESH_EXPIRES_DAYS)

    access_token = _encode(
        user_id=user_id,
        tenant_id=tenant_id,
        role=role,
        token_type=ACCESS_TOKEN_TYPE,
        expires_at=access_expires_at,
    )
    refresh_token = _encode(
        user_id=user_id,
        tenant_id=tenant_id,
        role=role,
        token_type=REFRESH_TOKEN_TYPE,
        expires_at=refresh_expires_at,
    )

    db.query(RefreshToken).filter(
        RefreshToken.user_id == user_id,
        RefreshToken.expires_at <= now,
    ).delete(synchronize_session=False)
    db.add(
        RefreshToken(
            token_hash=hash_token(refresh_token),
            user_id=user_id,
            tenant_id=tenant_id,
            expires_at=refresh_expires_at,
        )
    )
    if commit:
        db.commit()

    return TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
        access_expires_at=access_expires_at,
        refresh_expires_at=refresh_expires_at,
    )


def verify_access_token(token: str) -> AccessClaims:
    payload = _decode(token, token_type=ACCESS_TOKEN_TYPE)
    return AccessClaims(
        user_id=_parse_int_claim(payload, "sub"),
        tenant_id=_parse_int_claim(payload, "tenant_id"),
        role=str(payload.get("role") or ""),
        jti=str(payload.get("jti") or ""),
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc).replace(tzinfo=None),
    )


def rotate_refresh_token(db: Session, token: str) -> TokenPair:
    """Consume ``token`` and return a new pair. A token can be rotated once."""
    payload = _decode(token, token_type=REFRESH_TOKEN_TYPE)
    _parse_int_claim(payload, "sub")

    record = db.query(RefreshToken).filter(RefreshToken.token_hash == hash_token(token)).first()
    if record is None:
        raise TokenNotFound("refresh token revoked or already used")

    if record.expires_at <= utcnow():
        db.delete(record)
        db.commit()
        raise TokenExpired("refresh token expired")

    user_id = record.user_id
    tenant_id = record.tenant_id

    # conditional delete: of two concurrent rotations only one sees rowcount == 1
    deleted = (
        db.query(RefreshToken)
        .filter(RefreshToken.id == record.id)
        .delete(synchronize_session=False)
    )
    if deleted != 1:
        db.rollback()
        raise TokenNotFound("refresh token revoked or already used")

    user = db.query(User).filter(User.id == user_id).first()
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if user is None or tenant is None or user.tenant_id != tenant.id:
        db.commit()
        logger.warning("refresh token for missing user/tenant user_id=%s tenant_id=%s", user_id, tenant_id)
        raise TokenInvalid("refresh token subject no longer exists")

    pair = issue_tokens(db, user_id=user.id, tenant_id=tenant.id, role=user.role, commit=False)
    db.commit()
    return pair


def revoke_refresh_token(db: Session, token: str | None) -> bool:
    """Delete the stored record for ``token``. Unknown or empty tokens are a no-op."""
    if not token:
        return False
    deleted = (
        db.query(RefreshToken)
        .filter(RefreshToken.token_hash == hash_token(token))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0


def purge_expired_refresh_tokens(db: Session) -> int:
    deleted = (
        db.query(RefreshToken)
        .filter(RefreshToken.expires_at <= utcnow())
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("purged expired refresh tokens count=%s", deleted)
    return deleted
