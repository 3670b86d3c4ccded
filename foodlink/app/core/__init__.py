"""Core utilities for the FoodLink security layer."""

from foodlink.app.core.config import settings
from foodlink.app.core.logging import get_logger, setup_logging
from foodlink.app.core.rate_limit import RateLimitEntry, RateLimiter
from foodlink.app.core.sanitization import CSPReport
from foodlink.app.core.security import SecurityService, create_security_service
from foodlink.app.core.storage import (
    InMemoryKeyValueStore,
    JSONFileKeyValueStore,
    KeyValueStore,
    SecureStorage,
)

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "RateLimitEntry",
    "RateLimiter",
    "CSPReport",
    "SecurityService",
    "create_security_service",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JSONFileKeyValueStore",
    "SecureStorage",
]
