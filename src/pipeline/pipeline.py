"""Request pipeline for the pitch and lead endpoints.

Each call makes one pass through a sequence of guards:

1. Method check (POST only; OPTIONS answers the CORS preflight)
2. Origin/Referer verification (CSRF)
3. Body size check, before any parsing
4. JSON decode
5. Attack-pattern scan on the raw payload
6. Field validation and sanitization (all errors collected)
7. Sliding-window rate limit on the anonymized client key
8. Business logic (rule engine, or lead capture)
9. Analytics, metrics and email, dispatched without waiting

A failing guard ends the pass with its error envelope; later stages,
including analytics, are skipped.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from src.models import (
    AuditEvent,
    Endpoint,
    FieldError,
    IncomingRequest,
    Invalid,
    LeadFields,
    PitchFields,
    ValidationResult,
)
from src.pipeline.errors import (
    CsrfRejected,
    InternalError,
    MethodNotAllowed,
    PipelineError,
    RateLimitExceeded,
    RequestTooLarge,
    SecurityViolation,
    ValidationFailed,
)
from src.pipeline.models import PipelineResponse
from src.pitch.engine import RuleNotFoundError
from src.sanitizer.sanitizer import validate_lead_fields, validate_pitch_fields
from src.security.anonymizer import anonymize_client_ip, anonymize_user_agent
from src.security.origin import is_allowed_origin, is_mutating_method

if TYPE_CHECKING:
    from src.analytics.metrics import MetricsEmitter
    from src.analytics.recorder import AnalyticsRecorder
    from src.audit.logger import AuditLogger
    from src.config import PipelineConfig
    from src.notify.lead_notifier import LeadNotifier
    from src.pitch.engine import ResponseRuleEngine
    from src.ratelimit.limiter import Limiter
    from src.scanner.scanner import AttackPatternScanner

logger = logging.getLogger(__name__)

LEAD_THANK_YOU = "Thank you for your message! I'll get back to you soon."

_SECURITY_HEADERS = {
    "Content-Type": "application/json",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
}


def _iso_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class RequestPipeline:
    """Orchestrates the guards, the business logic and the side effects."""

    def __init__(
        self,
        config: PipelineConfig,
        scanner: AttackPatternScanner,
        engine: ResponseRuleEngine,
        recorder: AnalyticsRecorder,
        metrics: MetricsEmitter,
        limiters: Mapping[Endpoint, Limiter] | None = None,
        notifier: LeadNotifier | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._config = config
        self._scanner = scanner
        self._engine = engine
        self._recorder = recorder
        self._metrics = metrics
        self._limiters = dict(limiters or {})
        self._notifier = notifier
        self._audit = audit_logger

    async def handle(self, request: IncomingRequest, endpoint: Endpoint) -> PipelineResponse:
        started = time.perf_counter()
        request_id = str(uuid.uuid4())
        client_key = anonymize_client_ip(
            request.client_ip, secret=self._config.anonymizer_secret,
        )
        cors = self._cors_headers(request)

        if request.method.upper() == "OPTIONS":
            return PipelineResponse(status_code=204, body=None, headers=cors)

        try:
            fields = await self._run_guards(request, endpoint, client_key)
            body = self._process(fields, request, request_id, client_key)
        except PipelineError as exc:
            self._on_rejected(exc, endpoint, request, request_id, client_key)
            return self._error_response(exc, request_id, cors)
        except Exception:
            logger.exception(
                "unhandled error request_id=%s path=%s", request_id, request.path,
            )
            exc = InternalError()
            self._on_rejected(exc, endpoint, request, request_id, client_key)
            return self._error_response(exc, request_id, cors)

        latency_ms = (time.perf_counter() - started) * 1000
        self._metrics.request_completed(endpoint.value, latency_ms)
        logger.info(
            "request processed endpoint=%s request_id=%s latency_ms=%.1f",
            endpoint.value, request_id, latency_ms,
        )
        headers = {**_SECURITY_HEADERS, **cors, "Cache-Control": "no-store"}
        return PipelineResponse(status_code=200, body=body, headers=headers)

    async def _run_guards(
        self,
        request: IncomingRequest,
        endpoint: Endpoint,
        client_key: str,
    ) -> LeadFields | PitchFields:
        if request.method.upper() != "POST":
            raise MethodNotAllowed()

        if is_mutating_method(request.method) and not is_allowed_origin(
            request.header("origin"), request.header("referer"), self._config.origins,
        ):
            raise CsrfRejected()

        if request.body and len(request.body) > self._config.max_body_bytes:
            raise RequestTooLarge()

        payload = self._decode(request.body)

        scan = self._scanner.scan(payload)
        if not scan.is_safe:
            raise SecurityViolation(scan.matched_patterns)

        result = self._validate(endpoint, payload)
        if isinstance(result, Invalid):
            raise ValidationFailed(result.errors)

        limiter = self._limiters.get(endpoint)
        if limiter is not None and not await limiter.admit(client_key):
            raise RateLimitExceeded(retry_after=limiter.window_seconds)

        return result.sanitized

    @staticmethod
    def _decode(body: bytes | None) -> dict[str, Any]:
        if not body:
            return {}
        try:
            payload = json.loads(body)
        except (ValueError, RecursionError):
            # RecursionError: nesting deeper than the decoder allows
            payload = None
        if not isinstance(payload, dict):
            raise ValidationFailed([FieldError(
                field="body",
                message="Request body must be a JSON object",
                code="INVALID_JSON",
            )])
        return payload

    @staticmethod
    def _validate(endpoint: Endpoint, payload: dict[str, Any]) -> ValidationResult:
        if endpoint is Endpoint.PITCH:
            return validate_pitch_fields(payload)
        return validate_lead_fields(payload)

    def _process(
        self,
        fields: LeadFields | PitchFields,
        request: IncomingRequest,
        request_id: str,
        client_key: str,
    ) -> dict[str, Any]:
        if isinstance(fields, PitchFields):
            return self._process_pitch(fields, request, request_id, client_key)
        return self._process_lead(fields)

    def _process_pitch(
        self,
        fields: PitchFields,
        request: IncomingRequest,
        request_id: str,
        client_key: str,
    ) -> dict[str, Any]:
        try:
            if fields.focus is not None:
                result = self._engine.generate(fields.role, fields.focus)
            else:
                result = self._engine.generate_for_query(fields.role, fields.query or "")
        except RuleNotFoundError:
            logger.exception("pitch rule table is missing an entry request_id=%s", request_id)
            raise InternalError() from None

        self._recorder.record(self._recorder.pitch_event(
            request_id=request_id,
            role=fields.role,
            focus=result.focus,
            query=fields.query,
            ip_hash=client_key,
            ua_hash=anonymize_user_agent(request.user_agent or request.header("user-agent")),
            confidence=result.confidence,
        ))
        return {
            "pitch": result.text,
            "confidence": result.confidence,
            "timestamp": _iso_now(),
            "requestId": request_id,
        }

    def _process_lead(self, fields: LeadFields) -> dict[str, Any]:
        self._recorder.record(self._recorder.lead_event(
            name=fields.name, email=fields.email, message=fields.message,
        ))
        if self._notifier is not None:
            self._notifier.notify(fields)
        return {"ok": True, "message": LEAD_THANK_YOU}

    def _on_rejected(
        self,
        exc: PipelineError,
        endpoint: Endpoint,
        request: IncomingRequest,
        request_id: str,
        client_key: str,
    ) -> None:
        if isinstance(exc, SecurityViolation):
            logger.warning(
                "request rejected kind=%s client=%s path=%s request_id=%s patterns=%s",
                exc.code, client_key, request.path, request_id, exc.matched_patterns,
            )
        else:
            logger.warning(
                "request rejected kind=%s client=%s path=%s request_id=%s",
                exc.code, client_key, request.path, request_id,
            )

        self._metrics.request_rejected(endpoint.value, exc.code)

        if self._audit and exc.audit_event_type is not None:
            details: dict[str, object] = {"method": request.method}
            if isinstance(exc, SecurityViolation):
                details["patterns"] = exc.matched_patterns
            try:
                self._audit.log(AuditEvent(
                    event_type=exc.audit_event_type,
                    client_key=client_key,
                    path=request.path,
                    request_id=request_id,
                    result="error" if isinstance(exc, InternalError) else "rejected",
                    risk_level=exc.risk_level,
                    details=details,
                ))
            except OSError:
                logger.warning("audit log write failed request_id=%s", request_id, exc_info=True)

    @staticmethod
    def _error_response(
        exc: PipelineError,
        request_id: str,
        cors: dict[str, str],
    ) -> PipelineResponse:
        body: dict[str, Any] = {
            "error": True,
            "message": exc.message,
            "code": exc.code,
            "timestamp": _iso_now(),
            "requestId": request_id,
            **exc.extra_body(),
        }
        headers = {**_SECURITY_HEADERS, **cors, **exc.extra_headers()}
        return PipelineResponse(status_code=exc.status_code, body=body, headers=headers)

    def _cors_headers(self, request: IncomingRequest) -> dict[str, str]:
        headers = {
            "Access-Control-Allow-Methods": "POST, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type",
            "Vary": "Origin",
        }
        origin = request.header("origin")
        if origin and is_allowed_origin(origin, None, self._config.origins):
            headers["Access-Control-Allow-Origin"] = origin
        return headers
