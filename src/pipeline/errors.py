"""Rejection taxonomy. Each error knows its HTTP status and stable code."""

from __future__ import annotations

from src.models import AuditEventType, FieldError, RiskLevel


class PipelineError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"
    audit_event_type: AuditEventType | None = None
    risk_level = RiskLevel.INFO

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def extra_body(self) -> dict[str, object]:
        return {}

    def extra_headers(self) -> dict[str, str]:
        return {}


class ValidationFailed(PipelineError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        super().__init__(", ".join(e.message for e in errors) or None)

    def extra_body(self) -> dict[str, object]:
        return {"details": [e.model_dump() for e in self.errors]}


class SecurityViolation(PipelineError):
    """Attack pattern found. Matches are for server logs, never the response."""

    status_code = 400
    code = "SECURITY_VIOLATION"
    default_message = "Invalid request content"
    audit_event_type = AuditEventType.SECURITY_VIOLATION
    risk_level = RiskLevel.HIGH

    def __init__(self, matched_patterns: list[str]) -> None:
        self.matched_patterns = matched_patterns
        super().__init__()


class CsrfRejected(PipelineError):
    status_code = 403
    code = "CSRF_PROTECTION"
    default_message = "Invalid origin"
    audit_event_type = AuditEventType.CSRF_REJECTED
    risk_level = RiskLevel.HIGH


class RateLimitExceeded(PipelineError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    default_message = "Rate limit exceeded. Please try again later."
    audit_event_type = AuditEventType.RATE_LIMITED
    risk_level = RiskLevel.MEDIUM

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__()

    def extra_body(self) -> dict[str, object]:
        return {"retryAfter": self.retry_after}

    def extra_headers(self) -> dict[str, str]:
        return {"Retry-After": str(self.retry_after)}


class MethodNotAllowed(PipelineError):
    status_code = 405
    code = "METHOD_NOT_ALLOWED"
    default_message = "Method not allowed"

    def extra_headers(self) -> dict[str, str]:
        return {"Allow": "POST, OPTIONS"}


class RequestTooLarge(PipelineError):
    status_code = 413
    code = "REQUEST_TOO_LARGE"
    default_message = "Request too large"


class InternalError(PipelineError):
    audit_event_type = AuditEventType.INTERNAL_ERROR
    risk_level = RiskLevel.MEDIUM
