import json
import re
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_allowed_origins(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, list):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []
    if raw == "*":
        return ["*"]

    # Prefer JSON, but tolerate plain comma/space separated values.
    if raw.startswith(("[", '"', "'")):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]
        if isinstance(parsed, str):
            raw = parsed.strip()
            if not raw or raw == "[]":
                return []
            if raw == "*":
                return ["*"]

    parts = [p for p in re.split(r"[,\s]+", raw) if p]
    origins: list[str] = []
    for part in parts:
        if part == "*":
            return ["*"]
        if "://" in part:
            origins.append(part)
            continue
        # Browsers send the scheme in the Origin header, so a bare host
        # expands to both variants.
        origins.append(f"http://{part}")
        origins.append(f"https://{part}")

    seen: set[str] = set()
    result: list[str] = []
    for origin in origins:
        if origin in seen:
            continue
        seen.add(origin)
        result.append(origin)
    return result


class Settings(BaseSettings):
    """Security layer settings loaded from environment variables.

    Every field can be set through a ``FOODLINK_``-prefixed environment
    variable or a ``.env`` file.
    """

    debug: bool = False

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # Rate limiting settings
    rate_limit_max_requests: int = 10
    rate_limit_window_seconds: int = 60

    # CSRF settings
    csrf_token_max_age_ms: int = 3_600_000  # 1 hour
    csrf_header_name: str = "X-CSRF-Token"

    # Origin validation
    allowed_origins: Annotated[list[str], NoDecode] = []

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def decode_allowed_origins(cls, v: Any) -> list[str]:
        return _parse_allowed_origins(v)

    # Secure random strings
    secure_random_length: int = 32

    # Browser localStorage gives roughly 5MB per origin
    storage_quota_bytes: int = 5 * 1024 * 1024

    @field_validator(
        "rate_limit_max_requests",
        "rate_limit_window_seconds",
        "csrf_token_max_age_ms",
        "secure_random_length",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate limits and lengths are positive."""
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be one of: text, structured, json")
        return v

    model_config = SettingsConfigDict(
        env_prefix="FOODLINK_", env_file=".env", extra="ignore"
    )


# Global settings instance
settings = Settings()
