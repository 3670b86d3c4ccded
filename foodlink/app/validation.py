"""Form payload schemas for registration, locations, providers and reviews.

Free-text fields go through the sanitizers before length checks, and
email/phone/ZIP fields through the fail-closed validators, so an
``InvalidFormatError`` surfaces as an ordinary field error.
"""

import math
import re
from enum import Enum
from typing import Any, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from foodlink.app.core.sanitization import (
    sanitize_email,
    sanitize_phone_number,
    sanitize_text_input,
    sanitize_zip_code,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ValidationPatterns:
    """Patterns shared by the form schemas and client-side checks."""

    ZIP_CODE = re.compile(r"^\d{5}(-\d{4})?$")
    PHONE = re.compile(r"^\(\d{3}\) \d{3}-\d{4}$")
    STRONG_PASSWORD = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")
    URL = re.compile(r"^https?://.+")


class ValidationMessages:
    """User-facing messages for generic form field errors."""

    REQUIRED = "This field is required"
    EMAIL = "Please enter a valid email address"
    ZIP_CODE = "Please enter a valid ZIP code"
    PHONE = "Please enter a valid phone number"
    STRONG_PASSWORD = "Password must contain uppercase, lowercase, number, and special character"
    PASSWORD_MATCH = "Passwords do not match"
    URL = "Please enter a valid URL"

    @staticmethod
    def max_length(limit: int) -> str:
        return f"Must be less than {limit} characters"

    @staticmethod
    def min_length(limit: int) -> str:
        return f"Must be at least {limit} characters"

    @staticmethod
    def between(low: float, high: float) -> str:
        return f"Must be between {low} and {high}"


class UserRole(str, Enum):
    USER = "user"
    PROVIDER = "provider"
    ADMIN = "admin"


class LocationStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    LIMITED = "limited"
    UNKNOWN = "unknown"


def _clean_text(v: Any) -> Any:
    return sanitize_text_input(v) if isinstance(v, str) else v


def _check_url(v: Optional[str]) -> Optional[str]:
    if v is not None and not ValidationPatterns.URL.match(v):
        raise ValueError("Please enter a valid website URL")
    return v


def _require_number(v: Any) -> Any:
    # Strings and booleans are never coerced to numbers
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ValueError("Expected a number")
    return v


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def require_number(cls, v: Any) -> Any:
        return _require_number(v)

    @field_validator("lat", "lng")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Invalid coordinates provided")
        return v


class Address(BaseModel):
    street: str = Field(..., min_length=1)
    street2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=2, max_length=2)
    zip_code: str
    country: str = "US"

    @field_validator("street", "street2", "city", "state", mode="before")
    @classmethod
    def clean_text(cls, v: Any) -> Any:
        return _clean_text(v)

    @field_validator("zip_code")
    @classmethod
    def validate_zip_code(cls, v: str) -> str:
        v = sanitize_zip_code(v)
        if not v:
            raise ValueError(ValidationMessages.ZIP_CODE)
        return v


class UserRegistration(BaseModel):
    """Schema for the account sign-up form."""

    email: str
    password: str = Field(..., min_length=8)
    confirm_password: str
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    zip_code: Optional[str] = None
    role: UserRole = UserRole.USER

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return sanitize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        if not ValidationPatterns.STRONG_PASSWORD.match(v):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase "
                "letter, one number, and one special character"
            )
        return v

    @field_validator("confirm_password")
    @classmethod
    def validate_passwords_match(cls, v: str, info) -> str:
        password = info.data.get("password")
        if password is not None and v != password:
            raise ValueError(ValidationMessages.PASSWORD_MATCH)
        return v

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def clean_names(cls, v: Any) -> Any:
        return _clean_text(v)

    @field_validator("zip_code")
    @classmethod
    def validate_zip_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return sanitize_zip_code(v) or None


class LocationData(BaseModel):
    """Schema for a food-assistance location listing."""

    name: str = Field(..., min_length=1, max_length=100)
    address: Address
    coordinates: Coordinates
    phone: Optional[str] = None
    website: Optional[str] = None
    hours: Optional[str] = Field(None, max_length=200)
    services: List[str] = Field(default_factory=list)
    status: LocationStatus

    @field_validator("name", "hours", mode="before")
    @classmethod
    def clean_text(cls, v: Any) -> Any:
        return _clean_text(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = sanitize_phone_number(v)
        if v and not ValidationPatterns.PHONE.match(v):
            raise ValueError("Phone must be in format (XXX) XXX-XXXX")
        return v or None

    @field_validator("website")
    @classmethod
    def validate_website(cls, v: Optional[str]) -> Optional[str]:
        return _check_url(v)

    @field_validator("services")
    @classmethod
    def clean_services(cls, v: List[str]) -> List[str]:
        return [s for s in (sanitize_text_input(item) for item in v) if s]


class ProviderInformation(BaseModel):
    """Schema for the provider registration form."""

    organization_name: str = Field(..., min_length=1, max_length=100)
    contact_person: str = Field(..., min_length=1, max_length=100)
    email: str
    phone: str
    website: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    services_offered: List[str] = Field(default_factory=list)
    operating_hours: Optional[str] = Field(None, max_length=200)
    is_verified: bool = False

    @field_validator(
        "organization_name", "contact_person", "description", "operating_hours",
        mode="before",
    )
    @classmethod
    def clean_text(cls, v: Any) -> Any:
        return _clean_text(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return sanitize_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        v = sanitize_phone_number(v)
        if not ValidationPatterns.PHONE.match(v):
            raise ValueError("Phone must be in format (XXX) XXX-XXXX")
        return v

    @field_validator("website")
    @classmethod
    def validate_website(cls, v: Optional[str]) -> Optional[str]:
        return _check_url(v)

    @field_validator("services_offered")
    @classmethod
    def clean_services(cls, v: List[str]) -> List[str]:
        return [s for s in (sanitize_text_input(item) for item in v) if s]


class ReviewSubmission(BaseModel):
    """Schema for a location review."""

    location_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)
    visit_date: Optional[str] = None
    services_used: List[str] = Field(default_factory=list)
    would_recommend: Optional[bool] = None

    @field_validator("rating", mode="before")
    @classmethod
    def require_number(cls, v: Any) -> Any:
        return _require_number(v)

    @field_validator("comment", mode="before")
    @classmethod
    def clean_comment(cls, v: Any) -> Any:
        return _clean_text(v)


def format_validation_errors(error: ValidationError) -> dict[str, str]:
    """Flatten a ValidationError into ``{"field.path": message}`` for display."""
    formatted: dict[str, str] = {}
    for issue in error.errors():
        path = ".".join(str(part) for part in issue["loc"])
        message = issue["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        formatted[path] = message
    return formatted


def _validate(
    schema: Type[ModelT], data: Any
) -> Tuple[Optional[ModelT], Optional[dict[str, str]]]:
    try:
        return schema.model_validate(data), None
    except ValidationError as e:
        return None, format_validation_errors(e)


def validate_user_registration(data: Any) -> Tuple[Optional[UserRegistration], Optional[dict[str, str]]]:
    return _validate(UserRegistration, data)


def validate_location_data(data: Any) -> Tuple[Optional[LocationData], Optional[dict[str, str]]]:
    return _validate(LocationData, data)


def validate_provider_information(data: Any) -> Tuple[Optional[ProviderInformation], Optional[dict[str, str]]]:
    return _validate(ProviderInformation, data)


def validate_review_submission(data: Any) -> Tuple[Optional[ReviewSubmission], Optional[dict[str, str]]]:
    return _validate(ReviewSubmission, data)


def validate_address(data: Any) -> Tuple[Optional[Address], Optional[dict[str, str]]]:
    return _validate(Address, data)


def validate_coordinates_data(data: Any) -> Tuple[Optional[Coordinates], Optional[dict[str, str]]]:
    return _validate(Coordinates, data)
