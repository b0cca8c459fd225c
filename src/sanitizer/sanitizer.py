"""Input sanitizer and field validators for the pitch and lead endpoints."""

from __future__ import annotations

import re
from typing import Any

from src.models import (
    Focus,
    FieldError,
    Invalid,
    LeadFields,
    PitchFields,
    Role,
    Valid,
    ValidationResult,
)

NAME_MIN, NAME_MAX = 2, 100
MESSAGE_MIN, MESSAGE_MAX = 10, 2000
QUERY_MIN, QUERY_MAX = 1, 1000
EMAIL_MAX = 254

# Applied in order until the text stops changing.
_STRIP_PATTERNS = (
    re.compile(r"[<>]"),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+=", re.IGNORECASE),
    re.compile(r"script", re.IGNORECASE),
    re.compile(r"['\"]"),
)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def sanitize(raw: object, max_length: int = 1000) -> str:
    """Strip markup and injection fragments, trim and truncate.

    Removal is repeated until a fixed point so that fragments reassembled by
    an earlier removal (``scrscriptipt``) are caught too. The result never
    contains ``<``, ``>`` or ``script`` and sanitizing it again is a no-op.
    Non-string input yields an empty string.
    """
    if not isinstance(raw, str):
        return ""

    clean = raw
    while True:
        before = clean
        for pattern in _STRIP_PATTERNS:
            clean = pattern.sub("", clean)
        if clean == before:
            break

    return clean.strip()[:max_length].strip()


def sanitize_email(raw: object) -> str | None:
    """Normalize an email address, or return None if it is not acceptable."""
    if not isinstance(raw, str):
        return None

    email = raw.strip().lower()
    if len(email) > EMAIL_MAX or not _EMAIL_RE.match(email):
        return None
    if "<" in email or ">" in email or "script" in email:
        return None
    return email


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_lead_fields(data: dict[str, Any]) -> ValidationResult:
    """Validate a contact-form submission, collecting every field error."""
    errors: list[FieldError] = []

    name = data.get("name")
    if _missing(name):
        errors.append(FieldError(field="name", message="Name is required", code="MISSING_FIELD"))
    else:
        name = sanitize(name, NAME_MAX)
        if len(name) < NAME_MIN:
            errors.append(FieldError(
                field="name",
                message=f"Name must be at least {NAME_MIN} characters long",
                code="NAME_TOO_SHORT",
            ))

    email = data.get("email")
    if _missing(email):
        errors.append(FieldError(field="email", message="Email is required", code="MISSING_FIELD"))
    else:
        email = sanitize_email(email)
        if email is None:
            errors.append(FieldError(
                field="email",
                message="Please provide a valid email address",
                code="INVALID_EMAIL",
            ))

    message = data.get("message")
    if _missing(message):
        errors.append(FieldError(
            field="message", message="Message is required", code="MISSING_FIELD",
        ))
    else:
        message = sanitize(message, MESSAGE_MAX)
        if len(message) < MESSAGE_MIN:
            errors.append(FieldError(
                field="message",
                message=f"Message must be at least {MESSAGE_MIN} characters long",
                code="MESSAGE_TOO_SHORT",
            ))

    if errors:
        return Invalid(errors=errors)
    return Valid(sanitized=LeadFields(name=name, email=email, message=message))


def _parse_enum(enum_cls: type[Role] | type[Focus], value: Any) -> Role | Focus | None:
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


def validate_pitch_fields(data: dict[str, Any]) -> ValidationResult:
    """Validate a pitch request.

    A role is always required. The classic form names a ``focus``; the
    expanded form sends a free-form ``query`` instead. When both are present
    the focus wins and the query is kept for analytics.
    """
    errors: list[FieldError] = []
    allowed_roles = ", ".join(r.value for r in Role)
    allowed_focus = ", ".join(f.value for f in Focus)

    role = _parse_enum(Role, data.get("role"))
    if role is None:
        errors.append(FieldError(
            field="role",
            message=f"Role must be one of: {allowed_roles}",
            code="INVALID_ROLE",
        ))

    raw_focus = data.get("focus")
    raw_query = data.get("query")
    focus: Focus | None = None
    query: str | None = None

    if not _missing(raw_focus):
        focus = _parse_enum(Focus, raw_focus)
        if focus is None:
            errors.append(FieldError(
                field="focus",
                message=f"Focus must be one of: {allowed_focus}",
                code="INVALID_FOCUS",
            ))

    if raw_query is not None:
        query = sanitize(raw_query, QUERY_MAX)
        if len(query) < QUERY_MIN:
            errors.append(FieldError(
                field="query",
                message=f"Query must be between {QUERY_MIN} and {QUERY_MAX} characters",
                code="INVALID_QUERY",
            ))

    if _missing(raw_focus) and raw_query is None:
        errors.append(FieldError(
            field="focus",
            message=f"Focus must be one of: {allowed_focus}",
            code="MISSING_FIELD",
        ))

    if errors:
        return Invalid(errors=errors)
    return Valid(sanitized=PitchFields(role=role, focus=focus, query=query))
