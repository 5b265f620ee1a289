from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import Request, Response

from notes_saas.core import config
from notes_saas.services.tokens import TokenPair
from notes_saas.utils.clock import utcnow


def build_session_cookie_options() -> dict[str, Any]:
    secure = config.SESSION_COOKIE_SECURE
    samesite = config.SESSION_COOKIE_SAMESITE

    # browsers reject SameSite=None without Secure
    if samesite == "none" and not secure:
        samesite = "lax"

    return {
        "domain": config.SESSION_COOKIE_DOMAIN,
        "httponly": True,
        "samesite": samesite,
        "path": "/",
        "secure": secure,
    }


def _max_age(expires_at: datetime) -> int:
    return max(0, int((expires_at - utcnow()).total_seconds()))


def set_session_cookies(response: Response, pair: TokenPair) -> None:
    options = build_session_cookie_options()
    response.set_cookie(
        key=config.ACCESS_TOKEN_COOKIE,
        value=pair.access_token,
        max_age=_max_age(pair.access_expires_at),
        **options,
    )
    response.set_cookie(
        key=config.REFRESH_TOKEN_COOKIE,
        value=pair.refresh_token,
        max_age=_max_age(pair.refresh_expires_at),
        **options,
    )


def clear_session_cookies(response: Response) -> None:
    options = build_session_cookie_options()
    for key in (config.ACCESS_TOKEN_COOKIE, config.REFRESH_TOKEN_COOKIE):
        response.delete_cookie(key=key, **options)


def read_refresh_token(request: Request, body_token: str | None = None) -> str | None:
    token = (request.cookies.get(config.REFRESH_TOKEN_COOKIE) or "").strip()
    if token:
        return token
    return (body_token or "").strip() or None
