"""Tests for application wiring."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.api.app import _build_email_sender, _build_limiters, create_app_from_env
from src.collaborators.email import HttpEmailSender, LoggingEmailSender
from src.collaborators.store import InMemoryKeyValueStore
from src.config import PipelineConfig
from src.models import Endpoint, IncomingRequest
from src.ratelimit.limiter import RateLimiter, StoreRateLimiter


def test_limiters_cover_pitch_only_by_default() -> None:
    limiters = _build_limiters(PipelineConfig(), InMemoryKeyValueStore())
    assert set(limiters) == {Endpoint.PITCH}
    assert isinstance(limiters[Endpoint.PITCH], RateLimiter)


def test_lead_limiter_is_a_separate_instance() -> None:
    limiters = _build_limiters(PipelineConfig(rate_limit_leads=True), InMemoryKeyValueStore())
    assert limiters[Endpoint.PITCH] is not limiters[Endpoint.LEAD]


def test_store_backend() -> None:
    limiters = _build_limiters(
        PipelineConfig(rate_limit_backend="store", rate_limit_max=3),
        InMemoryKeyValueStore(),
    )
    assert isinstance(limiters[Endpoint.PITCH], StoreRateLimiter)
    assert limiters[Endpoint.PITCH].max_requests == 3


def test_email_sender_selection() -> None:
    assert isinstance(_build_email_sender(PipelineConfig()), LoggingEmailSender)
    configured = PipelineConfig(email_api_url="https://mail.test/send", email_api_token="t")
    assert isinstance(_build_email_sender(configured), HttpEmailSender)


def test_create_app_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STAGE", "dev")
    monkeypatch.setenv("STORE_DB_PATH", str(tmp_path / "kv.db"))
    monkeypatch.setenv("AUDIT_LOG_PATH", str(tmp_path / "audit.jsonl"))
    app = create_app_from_env()
    paths = {route.path for route in app.routes}
    assert {"/health", "/pitch", "/lead", "/api/pitch", "/api/lead"} <= paths
    assert (tmp_path / "kv.db").exists()


def test_incoming_request_headers_are_case_insensitive() -> None:
    request = IncomingRequest(method="POST", path="/pitch", headers={"Origin": "https://a.test"})
    assert request.header("origin") == "https://a.test"
    assert request.header("ORIGIN") == "https://a.test"
    assert request.header("referer") is None
