"""Tests for configuration loading."""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from src.config import DEFAULT_ALLOWED_ORIGINS, PipelineConfig


def test_defaults() -> None:
    config = PipelineConfig.from_env({})
    assert config.stage == "prod"
    assert config.origins == DEFAULT_ALLOWED_ORIGINS["prod"]
    assert config.rate_limit_max == 10
    assert config.rate_limit_window == 60
    assert config.max_body_bytes == 10_240
    assert config.rate_limit_leads is False
    assert config.pitch_retention == timedelta(days=7)
    assert config.lead_retention == timedelta(days=30)


def test_stage_selects_default_allow_list() -> None:
    config = PipelineConfig.from_env({"STAGE": "dev"})
    assert "http://localhost:3000" in config.origins


def test_unknown_stage_falls_back_to_prod() -> None:
    assert PipelineConfig.from_env({"STAGE": "qa"}).stage == "prod"


def test_explicit_allowed_origins_override_stage() -> None:
    config = PipelineConfig.from_env({
        "STAGE": "dev",
        "ALLOWED_ORIGINS": "https://a.test, https://b.test ,",
    })
    assert config.origins == ("https://a.test", "https://b.test")


def test_numeric_and_flag_overrides() -> None:
    config = PipelineConfig.from_env({
        "RATE_LIMIT_MAX": "5",
        "RATE_LIMIT_WINDOW": "30",
        "MAX_BODY_BYTES": "2048",
        "RATE_LIMIT_LEADS": "yes",
        "RATE_LIMIT_BACKEND": "store",
        "DRAIN_TIMEOUT": "0.5",
        "LEAD_NOTIFY_TO": "owner@example.test",
    })
    assert config.rate_limit_max == 5
    assert config.rate_limit_window == 30
    assert config.max_body_bytes == 2048
    assert config.rate_limit_leads is True
    assert config.rate_limit_backend == "store"
    assert config.drain_timeout == 0.5
    assert config.lead_notify_to == "owner@example.test"


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        PipelineConfig.from_env({"RATE_LIMIT_MAX": "0"})
    with pytest.raises(ValidationError):
        PipelineConfig.from_env({"RATE_LIMIT_BACKEND": "redis"})


def test_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STAGE", "staging")
    monkeypatch.setenv("METRICS_NAMESPACE", "Custom/NS")
    config = PipelineConfig.from_env()
    assert config.stage == "staging"
    assert config.metrics_namespace == "Custom/NS"


def test_config_is_frozen() -> None:
    config = PipelineConfig()
    with pytest.raises(ValidationError):
        config.stage = "dev"  # type: ignore[misc]
