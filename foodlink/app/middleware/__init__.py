"""Middleware package for the FoodLink security layer."""

from foodlink.app.middleware.csrf import get_security_service, require_csrf_token
from foodlink.app.middleware.origin import OriginValidationMiddleware
from foodlink.app.middleware.rate_limit import RateLimitMiddleware

__all__ = [
    "get_security_service",
    "require_csrf_token",
    "OriginValidationMiddleware",
    "RateLimitMiddleware",
]
