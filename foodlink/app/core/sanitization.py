"""Input sanitization and format validation.

Sanitizers here are pattern based. They reduce the most common XSS and
injection payloads in form input; they are not a parser and do not replace
output escaping or parameterized queries.
"""

import html
import re
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup

from foodlink.app.exceptions import InvalidFormatError

# Elements whose content is dropped along with the tag
_NON_TEXT_ELEMENTS = [
    "script", "style", "template", "noscript", "iframe", "object",
    "embed", "noembed", "noframes", "xmp", "title",
]

_SCRIPT_BLOCK = re.compile(
    r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE
)
_DANGLING_SCRIPT_TAG = re.compile(r"</?script\b[^>]*>?", re.IGNORECASE)
_DANGEROUS_PROTOCOLS = re.compile(r"javascript:|data:|vbscript:", re.IGNORECASE)
_EVENT_HANDLERS = re.compile(r"onload\s*=|onerror\s*=", re.IGNORECASE)
_CHARACTER_REFERENCE = re.compile(r"&[#x]?[a-z0-9]+;", re.IGNORECASE)

_EMAIL_STRIP = re.compile(r"[<>\"']")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_PHONE_STRIP = re.compile(r"[^\d\s\-()]")
_PHONE = re.compile(r"^\(?([0-9]{3})\)?[-. ]?([0-9]{3})[-. ]?([0-9]{4})$")

_ZIP_STRIP = re.compile(r"[^\d\-]")
_ZIP = re.compile(r"^\d{5}(-\d{4})?$")

_SQL_META = re.compile(r"['\";\\]")
_SQL_COMMENT = re.compile(r"--|/\*|\*/")
_SQL_KEYWORDS = re.compile(
    r"\b(DROP|DELETE|UPDATE|INSERT|CREATE|ALTER|EXEC|UNION|SELECT)\b",
    re.IGNORECASE | re.ASCII,
)

# (pattern, message) in report order
CSP_CHECKS = (
    (re.compile(r"<script(?:[^>]*)?>(.*?)</script>", re.IGNORECASE), "Inline script detected"),
    (re.compile(r"javascript:", re.IGNORECASE), "JavaScript URL detected"),
    (re.compile(r"on\w+\s*=", re.IGNORECASE), "Inline event handler detected"),
    (re.compile(r"data:", re.IGNORECASE), "Data URL detected"),
)


@dataclass
class CSPReport:
    """Result of a content security policy scan."""
    is_valid: bool
    violations: list[str] = field(default_factory=list)


def sanitize_html(value: Any) -> str:
    """Strip every tag and attribute, keeping only text content.

    The surviving text is re-escaped so that escaped markup in the input
    (``&lt;script&gt;``) cannot turn back into a tag.
    """
    if not isinstance(value, str):
        return ""

    soup = BeautifulSoup(value, "html.parser")
    for element in soup.find_all(_NON_TEXT_ELEMENTS):
        element.decompose()

    return html.escape(soup.get_text(), quote=False).strip()


def _strip_dangerous(text: str) -> str:
    text = _SCRIPT_BLOCK.sub("", text)
    text = _DANGLING_SCRIPT_TAG.sub("", text)
    text = _DANGEROUS_PROTOCOLS.sub("", text)
    text = _EVENT_HANDLERS.sub("", text)
    return _CHARACTER_REFERENCE.sub("", text)


def sanitize_text_input(value: Any) -> str:
    """Remove script blocks, dangerous URL schemes, load/error handlers and
    character references from free text.

    Removal can splice a new payload together (``javajavascript:script:``),
    so the pass repeats until nothing changes. That also makes the function
    idempotent.
    """
    if not isinstance(value, str):
        return ""

    previous = None
    sanitized = value
    while sanitized != previous:
        previous = sanitized
        sanitized = _strip_dangerous(sanitized)

    return sanitized.strip()


def sanitize_email(email: Any) -> str:
    """Sanitize and validate an email address.

    Returns:
        The address lower-cased and trimmed

    Raises:
        InvalidFormatError: If the cleaned value is not ``local@domain.tld``
    """
    if not isinstance(email, str):
        return ""

    sanitized = _EMAIL_STRIP.sub("", email)
    sanitized = sanitize_text_input(sanitized)

    if not _EMAIL.match(sanitized):
        raise InvalidFormatError("email")

    return sanitized.lower().strip()


def sanitize_phone_number(phone: Any) -> str:
    """Sanitize and validate a US phone number.

    Empty input is allowed since phone is optional on every form.

    Raises:
        InvalidFormatError: If a non-empty value is not a 10-digit US number
    """
    if not isinstance(phone, str):
        return ""

    sanitized = _PHONE_STRIP.sub("", phone)
    sanitized = sanitize_text_input(sanitized)

    if sanitized and not _PHONE.match(re.sub(r"\s", "", sanitized)):
        raise InvalidFormatError("phone")

    return sanitized.strip()


def sanitize_zip_code(zip_code: Any) -> str:
    """Sanitize and validate a ZIP or ZIP+4 code.

    Raises:
        InvalidFormatError: If a non-empty value is not ``#####`` or ``#####-####``
    """
    if not isinstance(zip_code, str):
        return ""

    sanitized = _ZIP_STRIP.sub("", zip_code)
    sanitized = sanitize_text_input(sanitized)

    if sanitized and not _ZIP.match(sanitized):
        raise InvalidFormatError("zip_code", "Invalid ZIP code format")

    return sanitized


def sanitize_query_param(param: Any) -> str:
    """Scrub a value bound for a database query.

    Defense in depth only: callers must still use parameterized queries.
    """
    if param is None:
        return ""

    sanitized = str(param)
    sanitized = _SQL_META.sub("", sanitized)
    sanitized = _SQL_COMMENT.sub("", sanitized)
    sanitized = _SQL_KEYWORDS.sub("", sanitized)
    sanitized = sanitize_text_input(sanitized)

    return sanitized.strip()


def validate_csp(content: Any) -> CSPReport:
    """Scan content for patterns a strict content security policy rejects.

    Heuristic: obfuscated payloads can slip through.
    """
    if not isinstance(content, str):
        return CSPReport(is_valid=True)

    violations = [message for pattern, message in CSP_CHECKS if pattern.search(content)]
    return CSPReport(is_valid=not violations, violations=violations)
