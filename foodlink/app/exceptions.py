"""Custom exceptions for the FoodLink security layer."""


class FoodLinkException(Exception):
    """Base class for FoodLink exceptions with HTTP status code.

    All custom exceptions inherit from this class and define their
    specific status_code so API handlers can map them consistently.
    """
    status_code: int = 500

    def __init__(self, message: str = "FoodLink error"):
        self.message = message
        super().__init__(message)


class InvalidFormatError(FoodLinkException, ValueError):
    """Raised when a non-empty email, phone number or ZIP code is malformed.

    Maps to HTTP 400 Bad Request. ``field`` names the offending input so
    form handlers can attach the message to the right control.
    """
    status_code = 400

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"Invalid {field.replace('_', ' ')} format")


class CSRFValidationError(FoodLinkException):
    """Raised when a CSRF token is missing, malformed or expired.

    Maps to HTTP 403 Forbidden.
    """
    status_code = 403

    def __init__(self, detail: str = "Invalid or missing CSRF token"):
        self.detail = detail
        super().__init__(detail)


class RateLimitExceededError(FoodLinkException):
    """Raised when an identifier has used up its request window.

    Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429

    def __init__(
        self,
        identifier: str,
        limit: int,
        retry_after: int | None = None,
    ):
        self.identifier = identifier
        self.limit = limit
        self.retry_after = retry_after
        message = f"Rate limit of {limit} requests exceeded."
        if retry_after is not None:
            message += f" Retry in {retry_after}s."
        super().__init__(message)


class StorageError(FoodLinkException):
    """Raised by key/value stores when a read or write fails."""
    status_code = 500


class StorageQuotaExceededError(StorageError):
    """Raised when a write would exceed the store's quota.

    Maps to HTTP 507 Insufficient Storage.
    """
    status_code = 507

    def __init__(self, quota_bytes: int, required_bytes: int):
        self.quota_bytes = quota_bytes
        self.required_bytes = required_bytes
        super().__init__(
            f"Storage quota exceeded: {required_bytes} bytes needed, "
            f"{quota_bytes} allowed"
        )
