from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from notes_saas.core.errors import AuthenticationError
from notes_saas.core.request_context import bind_request_context
from notes_saas.services.session import authenticate_credential, extract_access_token


class SessionMiddleware(BaseHTTPMiddleware):
    """Verifies the caller's access token once per request.

    Never rejects: the outcome lands on ``request.state`` and the
    ``get_session_context`` dependency decides per route whether it matters.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.access_claims = None
        request.state.auth_error = None

        token = extract_access_token(request)
        if token:
            try:
                claims = authenticate_credential(token)
            except AuthenticationError as exc:
                request.state.auth_error = exc.code
            else:
                request.state.access_claims = claims
                bind_request_context(user_id=claims.user_id, tenant_id=claims.tenant_id)
        request.state.session_checked = True

        return await call_next(request)
