"""Shared data models for the portfolio request pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class Role(str, Enum):
    RECRUITER = "recruiter"
    CTO = "cto"
    PRODUCT = "product"
    FOUNDER = "founder"
    OTHER = "other"


class Focus(str, Enum):
    AI = "ai"
    CLOUD = "cloud"
    AUTOMATION = "automation"


class Endpoint(str, Enum):
    PITCH = "pitch"
    LEAD = "lead"


class AuditEventType(str, Enum):
    CSRF_REJECTED = "csrf_rejected"
    SECURITY_VIOLATION = "security_violation"
    RATE_LIMITED = "rate_limited"
    INTERNAL_ERROR = "internal_error"


class RiskLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


# --- Request ---


@dataclass(frozen=True)
class IncomingRequest:
    """One decoded inbound call. Header names are matched case-insensitively."""

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None
    client_ip: str | None = None
    user_agent: str | None = None

    def __post_init__(self) -> None:
        lowered = {k.lower(): v for k, v in self.headers.items()}
        object.__setattr__(self, "headers", lowered)

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


# --- Validation ---


class FieldError(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    code: str


class LeadFields(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    message: str


class PitchFields(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    focus: Focus | None = None
    query: str | None = None


class Valid(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["valid"] = "valid"
    sanitized: LeadFields | PitchFields


class Invalid(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["invalid"] = "invalid"
    errors: list[FieldError] = Field(min_length=1)


ValidationResult = Valid | Invalid


# --- Pitch rules ---


class PitchRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)


class PitchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    confidence: float
    focus: Focus


# --- Analytics ---


class PitchEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["pitch"] = "pitch"
    request_id: str
    role: Role
    focus: Focus | None = None
    query: str | None = None
    ip_hash: str
    ua_hash: str
    confidence: float
    timestamp: datetime
    expires_at: datetime


class LeadEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["lead"] = "lead"
    name: str
    email: str
    message: str
    source: str = "contact-form"
    timestamp: datetime
    expires_at: datetime


AnalyticsEvent = PitchEvent | LeadEvent


# --- Audit ---


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    client_key: str | None = None
    path: str
    request_id: str | None = None
    result: str  # "rejected" | "error"
    risk_level: RiskLevel
    details: dict[str, object] | None = None


# --- Attack pattern scanning ---


class AttackCategory(str, Enum):
    SQL_INJECTION = "sql_injection"
    SCRIPT_INJECTION = "script_injection"


class AttackPattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: AttackCategory
    fragment: str = Field(min_length=1)

    @property
    def label(self) -> str:
        return f"{self.category.value}:{self.fragment}"


class ScanResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_safe: bool
    matched_patterns: list[str]
