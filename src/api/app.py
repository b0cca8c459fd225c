"""FastAPI application exposing the pitch and lead endpoints."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.analytics.dispatcher import BackgroundDispatcher
from src.analytics.metrics import MetricsEmitter
from src.analytics.recorder import AnalyticsRecorder
from src.audit.logger import AuditLogger
from src.collaborators.email import EmailSender, HttpEmailSender, LoggingEmailSender
from src.collaborators.metrics import MetricsSink, PrometheusMetricsSink
from src.collaborators.store import InMemoryKeyValueStore, KeyValueStore, SqliteKeyValueStore
from src.config import PipelineConfig
from src.models import Endpoint, IncomingRequest
from src.notify.lead_notifier import LeadNotifier
from src.pipeline.pipeline import RequestPipeline
from src.pitch.engine import ResponseRuleEngine
from src.ratelimit.limiter import Limiter, RateLimiter, StoreRateLimiter
from src.scanner.scanner import AttackPatternScanner

logger = logging.getLogger(__name__)

_ALL_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    config = PipelineConfig.from_env()
    audit_logger = AuditLogger.from_env(config.audit_log_path) if config.audit_log_path else None
    store: KeyValueStore = (
        SqliteKeyValueStore(config.store_db_path)
        if config.store_db_path
        else InMemoryKeyValueStore()
    )
    return create_app(
        config,
        store=store,
        email_sender=_build_email_sender(config),
        audit_logger=audit_logger,
    )


def _build_email_sender(config: PipelineConfig) -> EmailSender:
    if config.email_api_url and config.email_api_token:
        return HttpEmailSender(
            api_url=config.email_api_url,
            api_token=config.email_api_token,
            from_address=config.email_from,
        )
    if config.lead_notify_to:
        logger.warning("LEAD_NOTIFY_TO is set but no email API is configured")
    return LoggingEmailSender()


def _build_limiters(config: PipelineConfig, store: KeyValueStore) -> dict[Endpoint, Limiter]:
    endpoints = [Endpoint.PITCH]
    if config.rate_limit_leads:
        endpoints.append(Endpoint.LEAD)

    limiters: dict[Endpoint, Limiter] = {}
    for endpoint in endpoints:
        if config.rate_limit_backend == "store":
            limiters[endpoint] = StoreRateLimiter(
                store, config.rate_limit_max, config.rate_limit_window,
            )
        else:
            limiters[endpoint] = RateLimiter(config.rate_limit_max, config.rate_limit_window)
    return limiters


def build_pipeline(
    config: PipelineConfig,
    dispatcher: BackgroundDispatcher,
    store: KeyValueStore,
    metrics_sink: MetricsSink,
    email_sender: EmailSender,
    audit_logger: AuditLogger | None = None,
) -> RequestPipeline:
    return RequestPipeline(
        config=config,
        scanner=AttackPatternScanner(),
        engine=ResponseRuleEngine(),
        recorder=AnalyticsRecorder(
            store,
            dispatcher,
            pitch_retention=config.pitch_retention,
            lead_retention=config.lead_retention,
        ),
        metrics=MetricsEmitter(metrics_sink, dispatcher, stage=config.stage),
        limiters=_build_limiters(config, store),
        notifier=LeadNotifier(email_sender, dispatcher, config.lead_notify_to),
        audit_logger=audit_logger,
    )


def create_app(
    config: PipelineConfig,
    store: KeyValueStore | None = None,
    metrics_sink: MetricsSink | None = None,
    email_sender: EmailSender | None = None,
    audit_logger: AuditLogger | None = None,
) -> FastAPI:
    """Create the API app with one shared pipeline and background dispatcher."""
    dispatcher = BackgroundDispatcher()
    sink = metrics_sink or PrometheusMetricsSink(config.metrics_namespace)
    pipeline = build_pipeline(
        config,
        dispatcher,
        store=store or InMemoryKeyValueStore(),
        metrics_sink=sink,
        email_sender=email_sender or LoggingEmailSender(),
        audit_logger=audit_logger,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        await dispatcher.drain(config.drain_timeout)

    app = FastAPI(docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.pipeline = pipeline
    app.state.dispatcher = dispatcher

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "stage": config.stage}

    if isinstance(sink, PrometheusMetricsSink):

        @app.get("/metrics")
        async def metrics() -> Response:
            return Response(generate_latest(sink.registry), media_type=CONTENT_TYPE_LATEST)

    for endpoint in Endpoint:
        handler = _make_handler(pipeline, endpoint, config.max_body_bytes)
        for path in (f"/{endpoint.value}", f"/api/{endpoint.value}"):
            app.add_api_route(path, handler, methods=_ALL_METHODS, name=f"{endpoint.value}:{path}")

    return app


def _make_handler(pipeline: RequestPipeline, endpoint: Endpoint, max_body_bytes: int):  # noqa: ANN202
    async def handle(request: Request) -> Response:
        incoming = IncomingRequest(
            method=request.method,
            path=request.url.path,
            headers=dict(request.headers),
            body=await _read_body(request, max_body_bytes),
            client_ip=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        result = await pipeline.handle(incoming, endpoint)
        if result.body is None:
            return Response(status_code=result.status_code, headers=result.headers)
        return JSONResponse(result.body, status_code=result.status_code, headers=result.headers)

    return handle


async def _read_body(request: Request, limit: int) -> bytes:
    """Read at most limit + 1 bytes; enough for the pipeline to detect oversize."""
    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        chunks.append(chunk)
        size += len(chunk)
        if size > limit:
            break
    return b"".join(chunks)[: limit + 1]


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None
