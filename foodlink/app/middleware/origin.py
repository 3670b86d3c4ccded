"""Origin header validation for state-changing requests."""

from typing import List, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from foodlink.app.core.logging import get_log_context, get_logger
from foodlink.app.core.security import SecurityService

logger = get_logger(__name__)

UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class OriginValidationMiddleware(BaseHTTPMiddleware):
    """Reject cross-origin writes.

    Requests with an unsafe method and an ``Origin`` header outside the
    allowed list get a 403. Requests without ``Origin`` (same-origin
    navigations, server-to-server calls) pass; pair this with
    ``require_csrf_token`` on form endpoints. ``"*"`` disables the check.
    """

    def __init__(
        self,
        app,
        security_service: SecurityService,
        allowed_origins: Optional[List[str]] = None,
    ):
        super().__init__(app)
        self.security = security_service
        self.allowed_origins = (
            allowed_origins if allowed_origins is not None
            else security_service.settings.allowed_origins
        )

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        origin = request.headers.get("Origin")
        if (
            request.method in UNSAFE_METHODS
            and origin is not None
            and "*" not in self.allowed_origins
            and not self.security.validate_origin(origin, self.allowed_origins)
        ):
            logger.warning(
                f"Rejected request from disallowed origin: {origin}",
                extra=get_log_context(path=request.url.path, method=request.method),
            )
            return JSONResponse(
                status_code=403,
                content={
                    "error": "origin_not_allowed",
                    "message": "Request origin is not allowed.",
                },
            )

        return await call_next(request)
