"""Rate limiting middleware.

Applies the security service's per-identifier fixed-window limit to every
HTTP request, keyed by a hash of the client address.
"""

import hashlib
from typing import Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from foodlink.app.core.logging import get_log_context, get_logger
from foodlink.app.core.security import SecurityService

logger = get_logger(__name__)


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce rate limits on requests.

    The limiter table lives on the security service, so an app that also
    calls ``check_rate_limit`` from handlers shares the same windows.
    """

    def __init__(
        self,
        app,
        security_service: SecurityService,
        max_requests: Optional[int] = None,
    ):
        super().__init__(app)
        self.security = security_service
        self.max_requests = max_requests or security_service.rate_limiter.max_requests

    def _get_client_key(self, request: Request) -> str:
        # Hash the address so raw IPs never sit in memory or logs.
        # 32 hex chars (128 bits) is plenty for collision resistance.
        ip_hash = hashlib.sha256(get_client_ip(request).encode()).hexdigest()[:32]
        return f"ratelimit:ip:{ip_hash}"

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        key = self._get_client_key(request)

        if not self.security.check_rate_limit(key, self.max_requests):
            retry_after = self.security.rate_limiter.retry_after(key)
            logger.info(
                "Returning 429",
                extra=get_log_context(
                    identifier=key, path=request.url.path, method=request.method
                ),
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": "Rate limit exceeded. Please try again later.",
                    "retry_after": retry_after,
                },
                headers={
                    "X-RateLimit-Limit": str(self.max_requests),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(retry_after),
                },
            )

        remaining = self.security.get_remaining_requests(key, self.max_requests)
        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(self.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
