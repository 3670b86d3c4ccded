"""CSRF tokens, secure random strings, hashing and origin checks."""

import asyncio
import hashlib
import re
import secrets
import string
import time
from typing import Any, Iterable, Optional

from foodlink.app.core.config import settings

ALPHANUMERIC = string.ascii_uppercase + string.ascii_lowercase + string.digits

_CSRF_RANDOM_BYTES = 32
_CSRF_RANDOM_PART = re.compile(r"^[a-f0-9]{64}\Z")
_CSRF_TIMESTAMP = re.compile(r"^[0-9]+\Z")


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_csrf_token(now_ms: Optional[int] = None) -> str:
    """Generate a CSRF token for form protection.

    The token is ``<issued_at_millis>-<64 hex chars>``. Nothing is stored
    server side; validity is derived from the token itself.
    """
    issued_at = _now_ms() if now_ms is None else now_ms
    return f"{issued_at}-{secrets.token_hex(_CSRF_RANDOM_BYTES)}"


def validate_csrf_token(
    token: Any,
    max_age_ms: Optional[int] = None,
    now_ms: Optional[int] = None,
) -> bool:
    """Validate a CSRF token's shape and age.

    Args:
        token: Token as received from the client
        max_age_ms: Maximum token age, defaults to settings.csrf_token_max_age_ms
        now_ms: Current time in epoch milliseconds (defaults to the wall clock)

    Returns:
        True if the token is well formed and not expired. Never raises.
    """
    if not token or not isinstance(token, str):
        return False

    parts = token.split("-")
    if len(parts) != 2:
        return False

    # int() alone would also accept "1_000" and surrounding whitespace
    if not _CSRF_TIMESTAMP.match(parts[0]):
        return False
    issued_at = int(parts[0])

    if max_age_ms is None:
        max_age_ms = settings.csrf_token_max_age_ms
    now = _now_ms() if now_ms is None else now_ms
    if now - issued_at > max_age_ms:
        return False

    return bool(_CSRF_RANDOM_PART.match(parts[1]))


def generate_secure_random_string(length: int = 32) -> str:
    """Create a random alphanumeric string for IDs and tokens.

    Each character is ``byte % 62`` over ``secrets`` bytes, so characters
    early in the alphabet are very slightly more likely.
    """
    if length <= 0:
        return ""
    random_bytes = secrets.token_bytes(length)
    return "".join(ALPHANUMERIC[byte % len(ALPHANUMERIC)] for byte in random_bytes)


def _sha256_hex(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


async def hash_data(data: str) -> str:
    """Hash sensitive data with SHA-256 for equality comparison.

    Not for password storage.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, _sha256_hex, data)


def _strip_trailing_slash(value: str) -> str:
    return value[:-1] if value.endswith("/") else value


def validate_origin(origin: Any, allowed_origins: Optional[Iterable[Any]]) -> bool:
    """Check an Origin header against the allowed origins.

    A single trailing slash is ignored on both sides; otherwise the match
    is exact. A missing or non-iterable allowed list denies everything.
    """
    if not origin or not isinstance(origin, str) or allowed_origins is None:
        return False
    try:
        candidates = iter(allowed_origins)
    except TypeError:
        return False

    normalized = _strip_trailing_slash(origin)
    return any(
        isinstance(allowed, str) and normalized == _strip_trailing_slash(allowed)
        for allowed in candidates
    )
