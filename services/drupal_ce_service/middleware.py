"""Drupal CE Service middleware components."""

from __future__ import annotations

from uuid import UUID, uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from services.drupal_ce_service.logging_utils import bind_request_context


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Middleware to ensure every request has a correlation ID."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Extract or generate correlation ID and store in request state."""
        x_correlation_id = request.headers.get("X-Correlation-ID")
        if x_correlation_id:
            try:
                correlation_id = UUID(x_correlation_id)
            except ValueError:
                correlation_id = uuid4()
        else:
            correlation_id = uuid4()

        request.state.correlation_id = correlation_id
        bind_request_context(str(correlation_id), path=request.url.path)
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = str(correlation_id)
        return response


class SessionCookieMiddleware(BaseHTTPMiddleware):
    """Middleware issuing the session cookie on presentation requests.

    The cookie value is only a request for a session; the render context
    resolves it against the session store and records the ID actually used
    in `request.state.session_id`. The cookie is (re)set whenever the two
    differ, so unknown or expired IDs are replaced by server-issued ones.
    """

    def __init__(
        self, app: ASGIApp, cookie_name: str, path_prefix: str = "/", secure: bool = False
    ) -> None:
        super().__init__(app)
        self.cookie_name = cookie_name
        self.path_prefix = path_prefix
        self.secure = secure

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Pass the requested session ID on and set the cookie for the issued one."""
        # Proxied responses are relayed unmodified
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        requested_session_id = request.cookies.get(self.cookie_name)
        request.state.requested_session_id = requested_session_id

        response = await call_next(request)

        issued_session_id = getattr(request.state, "session_id", None)
        if issued_session_id and issued_session_id != requested_session_id:
            response.set_cookie(
                self.cookie_name,
                issued_session_id,
                httponly=True,
                samesite="lax",
                secure=self.secure,
            )
        return response
