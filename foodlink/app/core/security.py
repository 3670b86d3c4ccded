"""Security service for input sanitization, CSRF, rate limiting and storage.

The host builds one ``SecurityService`` at startup with
``create_security_service()`` and hands it to whatever needs it: the ASGI
middleware takes it as a constructor argument and route handlers read it
from ``request.app.state.security``. The only mutable state, the rate-limit
table, belongs to that instance, so tests can build isolated services.
"""

import time
from typing import Any, Callable, Iterable, Optional

from foodlink.app.core import sanitization, tokens
from foodlink.app.core.config import Settings, settings as default_settings
from foodlink.app.core.logging import get_logger
from foodlink.app.core.rate_limit import RateLimiter
from foodlink.app.core.sanitization import CSPReport
from foodlink.app.core.storage import InMemoryKeyValueStore, KeyValueStore, SecureStorage
from foodlink.app.exceptions import CSRFValidationError, RateLimitExceededError

logger = get_logger(__name__)


class SecurityService:
    """Single access point for the security utilities."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        rate_limiter: Optional[RateLimiter] = None,
        storage: Optional[KeyValueStore] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the service.

        Args:
            settings: Settings to read defaults from (module settings if omitted)
            rate_limiter: Rate-limit store; a fresh one is built if omitted
            storage: Host key/value store behind ``secure_storage``
            clock: Returns the current time in epoch seconds
        """
        self.settings = settings if settings is not None else default_settings
        self._clock = clock
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter(
            max_requests=self.settings.rate_limit_max_requests,
            window_seconds=self.settings.rate_limit_window_seconds,
            clock=clock,
        )
        self.secure_storage = SecureStorage(
            storage if storage is not None
            else InMemoryKeyValueStore(self.settings.storage_quota_bytes)
        )

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    # ------------------------------------------------------------------
    # Sanitization
    # ------------------------------------------------------------------

    def sanitize_html(self, value: Any) -> str:
        return sanitization.sanitize_html(value)

    def sanitize_text_input(self, value: Any) -> str:
        return sanitization.sanitize_text_input(value)

    def sanitize_email(self, email: Any) -> str:
        return sanitization.sanitize_email(email)

    def sanitize_phone_number(self, phone: Any) -> str:
        return sanitization.sanitize_phone_number(phone)

    def sanitize_zip_code(self, zip_code: Any) -> str:
        return sanitization.sanitize_zip_code(zip_code)

    def sanitize_query_param(self, param: Any) -> str:
        return sanitization.sanitize_query_param(param)

    def validate_csp(self, content: Any) -> CSPReport:
        report = sanitization.validate_csp(content)
        if not report.is_valid:
            logger.info(f"CSP violations found: {', '.join(report.violations)}")
        return report

    # ------------------------------------------------------------------
    # Tokens and hashing
    # ------------------------------------------------------------------

    def generate_csrf_token(self) -> str:
        return tokens.generate_csrf_token(now_ms=self._now_ms())

    def validate_csrf_token(self, token: Any, max_age_ms: Optional[int] = None) -> bool:
        if max_age_ms is None:
            max_age_ms = self.settings.csrf_token_max_age_ms
        return tokens.validate_csrf_token(token, max_age_ms=max_age_ms, now_ms=self._now_ms())

    def require_csrf_token(self, token: Any, max_age_ms: Optional[int] = None) -> None:
        """Raise CSRFValidationError unless token is valid."""
        if not self.validate_csrf_token(token, max_age_ms):
            logger.warning("Rejected invalid or expired CSRF token")
            raise CSRFValidationError()

    def generate_secure_random_string(self, length: Optional[int] = None) -> str:
        if length is None:
            length = self.settings.secure_random_length
        return tokens.generate_secure_random_string(length)

    async def hash_data(self, data: str) -> str:
        return await tokens.hash_data(data)

    def validate_origin(
        self, origin: Any, allowed_origins: Optional[Iterable[Any]] = None
    ) -> bool:
        if allowed_origins is None:
            allowed_origins = self.settings.allowed_origins
        return tokens.validate_origin(origin, allowed_origins)

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    def check_rate_limit(self, identifier: str, max_requests: Optional[int] = None) -> bool:
        return self.rate_limiter.check(identifier, max_requests)

    def get_remaining_requests(self, identifier: str, max_requests: Optional[int] = None) -> int:
        return self.rate_limiter.remaining(identifier, max_requests)

    def reset_rate_limit(self, identifier: str) -> None:
        self.rate_limiter.reset(identifier)

    def enforce_rate_limit(self, identifier: str, max_requests: Optional[int] = None) -> None:
        """Raise RateLimitExceededError if identifier is over its limit."""
        if not self.check_rate_limit(identifier, max_requests):
            raise RateLimitExceededError(
                identifier,
                limit=max_requests or self.rate_limiter.max_requests,
                retry_after=self.rate_limiter.retry_after(identifier),
            )


def create_security_service(
    settings: Optional[Settings] = None,
    clock: Optional[Callable[[], float]] = None,
    storage: Optional[KeyValueStore] = None,
) -> SecurityService:
    """Build the process's security service."""
    service = SecurityService(settings=settings, storage=storage, clock=clock or time.time)
    logger.info(
        f"Security service initialized: {service.rate_limiter.max_requests} requests "
        f"per {service.rate_limiter.window_seconds}s"
    )
    return service


# Shortcuts for the stateless operations

def sanitize_input(value: Any) -> str:
    return sanitization.sanitize_text_input(value)


def sanitize_html(value: Any) -> str:
    return sanitization.sanitize_html(value)


def validate_email(email: Any) -> str:
    return sanitization.sanitize_email(email)


def validate_phone_number(phone: Any) -> str:
    return sanitization.sanitize_phone_number(phone)


def validate_zip_code(zip_code: Any) -> str:
    return sanitization.sanitize_zip_code(zip_code)


def generate_csrf_token() -> str:
    return tokens.generate_csrf_token()


def validate_csrf_token(token: Any) -> bool:
    return tokens.validate_csrf_token(token)
