"""Shared test fixtures for the portfolio API pipeline."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.analytics.dispatcher import BackgroundDispatcher
from src.api.app import build_pipeline
from src.collaborators.email import LoggingEmailSender
from src.collaborators.metrics import PrometheusMetricsSink
from src.collaborators.store import InMemoryKeyValueStore
from src.config import PipelineConfig
from src.models import IncomingRequest
from src.pipeline.pipeline import RequestPipeline

ORIGIN = "https://example.test"
CLIENT_IP = "203.0.113.7"
USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) pytest"


def make_request(
    body: object = None,
    *,
    method: str = "POST",
    path: str = "/pitch",
    raw_body: bytes | None = None,
    origin: str | None = ORIGIN,
    referer: str | None = None,
    client_ip: str | None = CLIENT_IP,
    user_agent: str | None = USER_AGENT,
) -> IncomingRequest:
    """Factory for IncomingRequest; ``body`` is JSON-encoded unless raw_body is given."""
    headers: dict[str, str] = {"Content-Type": "application/json"}
    if origin is not None:
        headers["Origin"] = origin
    if referer is not None:
        headers["Referer"] = referer
    if raw_body is None and body is not None:
        raw_body = json.dumps(body).encode()
    return IncomingRequest(
        method=method,
        path=path,
        headers=headers,
        body=raw_body,
        client_ip=client_ip,
        user_agent=user_agent,
    )


def published_metric_names(sink: AsyncMock) -> list[str]:
    return [c.args[0] for c in sink.publish.await_args_list]


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig(stage="dev", allowed_origins=(ORIGIN,))


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def metrics_sink() -> AsyncMock:
    return AsyncMock(spec=PrometheusMetricsSink)


@pytest.fixture
def email_sender() -> AsyncMock:
    return AsyncMock(spec=LoggingEmailSender)


@pytest.fixture
def dispatcher() -> BackgroundDispatcher:
    return BackgroundDispatcher()


@pytest.fixture
def pipeline_factory(
    config: PipelineConfig,
    store: InMemoryKeyValueStore,
    metrics_sink: AsyncMock,
    email_sender: AsyncMock,
    dispatcher: BackgroundDispatcher,
) -> Callable[..., RequestPipeline]:
    """Build a pipeline over the shared fakes; keyword args override config."""

    def _build(audit_logger: Any = None, **overrides: Any) -> RequestPipeline:
        cfg = config.model_copy(update=overrides)
        return build_pipeline(
            cfg,
            dispatcher,
            store=store,
            metrics_sink=metrics_sink,
            email_sender=email_sender,
            audit_logger=audit_logger,
        )

    return _build
