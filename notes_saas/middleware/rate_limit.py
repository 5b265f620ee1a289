from __future__ import annotations

import logging
from threading import Lock

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from notes_saas.core.config import RATE_LIMIT_PRUNE_EVERY, RATE_LIMIT_TRUST_PROXY
from notes_saas.core.rate_limiter import RateLimiterService, SlidingWindowRateLimiter
from notes_saas.core.responses import error_body

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/health", "/health/ready"}


class ClientRateLimitMiddleware(BaseHTTPMiddleware):
    """Per client IP request allowance; health probes are never limited.

    ``X-Forwarded-For`` is only honoured with ``trust_proxy``, otherwise any
    caller could pick a fresh key per request.
    """

    def __init__(
        self,
        app,
        *,
        rate_limiter: RateLimiterService | None = None,
        trust_proxy: bool = RATE_LIMIT_TRUST_PROXY,
        prune_every: int = RATE_LIMIT_PRUNE_EVERY,
    ) -> None:
        super().__init__(app)
        self._rate_limiter = rate_limiter or SlidingWindowRateLimiter()
        self._trust_proxy = trust_proxy
        self._prune_every = max(1, prune_every)
        self._checks = 0
        self._checks_lock = Lock()

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        client_key = _client_key(request, trust_proxy=self._trust_proxy)
        decision = self._rate_limiter.check(client_key=client_key)
        self._maybe_prune()
        if not decision.allowed:
            logger.warning("rate limit exceeded client=%s path=%s", client_key, request.url.path)
            return JSONResponse(
                status_code=429,
                content=error_body(
                    "Too many requests from this IP, please try again later.",
                    code="RATE_LIMIT_EXCEEDED",
                ),
                headers={
                    "Retry-After": str(decision.retry_after_seconds),
                    "X-RateLimit-Limit": str(decision.limit),
                    "X-RateLimit-Remaining": str(decision.remaining),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response

    def _maybe_prune(self) -> None:
        with self._checks_lock:
            self._checks += 1
            due = self._checks % self._prune_every == 0
        if due:
            removed = self._rate_limiter.prune()
            if removed:
                logger.info("rate limiter pruned idle clients count=%s", removed)


def _client_key(request: Request, *, trust_proxy: bool = False) -> str:
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "unknown"
