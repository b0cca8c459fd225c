"""Pipeline configuration, read from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Stage = Literal["dev", "staging", "prod"]

DEFAULT_ALLOWED_ORIGINS: dict[str, tuple[str, ...]] = {
    "dev": ("http://localhost:3000", "http://127.0.0.1:3000"),
    "staging": ("https://staging.marko.dev",),
    "prod": ("https://marko.dev", "https://www.marko.dev"),
}

_TRUTHY = {"1", "true", "yes", "on"}


class PipelineConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage: Stage = "prod"
    allowed_origins: tuple[str, ...] = ()
    max_body_bytes: int = Field(default=10_240, gt=0)
    rate_limit_max: int = Field(default=10, ge=1)
    rate_limit_window: int = Field(default=60, ge=1)
    rate_limit_leads: bool = False
    rate_limit_backend: Literal["memory", "store"] = "memory"
    pitch_retention_days: int = Field(default=7, ge=1)
    lead_retention_days: int = Field(default=30, ge=1)
    metrics_namespace: str = "PersonalSite/API"
    lead_notify_to: str | None = None
    email_from: str = "noreply@marko.dev"
    email_api_url: str | None = None
    email_api_token: str | None = None
    store_db_path: str | None = None
    audit_log_path: str | None = None
    anonymizer_secret: str = ""
    drain_timeout: float = Field(default=2.0, ge=0)

    @property
    def origins(self) -> tuple[str, ...]:
        """Explicit allow-list, or the stage default."""
        return self.allowed_origins or DEFAULT_ALLOWED_ORIGINS[self.stage]

    @property
    def pitch_retention(self) -> timedelta:
        return timedelta(days=self.pitch_retention_days)

    @property
    def lead_retention(self) -> timedelta:
        return timedelta(days=self.lead_retention_days)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PipelineConfig:
        """Build config from environment variables; unset ones keep defaults.

        An unrecognized STAGE falls back to prod, the strictest allow-list.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        stage = env.get("STAGE", "prod").strip().lower()
        values["stage"] = stage if stage in DEFAULT_ALLOWED_ORIGINS else "prod"

        if env.get("ALLOWED_ORIGINS"):
            values["allowed_origins"] = tuple(
                o.strip() for o in env["ALLOWED_ORIGINS"].split(",") if o.strip()
            )

        int_vars = {
            "MAX_BODY_BYTES": "max_body_bytes",
            "RATE_LIMIT_MAX": "rate_limit_max",
            "RATE_LIMIT_WINDOW": "rate_limit_window",
            "PITCH_RETENTION_DAYS": "pitch_retention_days",
            "LEAD_RETENTION_DAYS": "lead_retention_days",
        }
        for var, name in int_vars.items():
            if env.get(var):
                values[name] = int(env[var])

        str_vars = {
            "RATE_LIMIT_BACKEND": "rate_limit_backend",
            "METRICS_NAMESPACE": "metrics_namespace",
            "LEAD_NOTIFY_TO": "lead_notify_to",
            "EMAIL_FROM": "email_from",
            "EMAIL_API_URL": "email_api_url",
            "EMAIL_API_TOKEN": "email_api_token",
            "STORE_DB_PATH": "store_db_path",
            "AUDIT_LOG_PATH": "audit_log_path",
            "ANONYMIZER_SECRET": "anonymizer_secret",
        }
        for var, name in str_vars.items():
            if env.get(var):
                values[name] = env[var]

        if env.get("RATE_LIMIT_LEADS"):
            values["rate_limit_leads"] = env["RATE_LIMIT_LEADS"].strip().lower() in _TRUTHY
        if env.get("DRAIN_TIMEOUT"):
            values["drain_timeout"] = float(env["DRAIN_TIMEOUT"])

        return cls.model_validate(values)
