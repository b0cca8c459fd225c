"""Best-effort analytics writes with fixed retention windows."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from src.analytics.dispatcher import BackgroundDispatcher
from src.collaborators.store import KeyValueStore
from src.models import AnalyticsEvent, Focus, LeadEvent, PitchEvent, Role

PITCH_RETENTION = timedelta(days=7)
LEAD_RETENTION = timedelta(days=30)


def _iso(ts: datetime) -> str:
    return ts.astimezone(UTC).isoformat().replace("+00:00", "Z")


def to_item(event: AnalyticsEvent) -> dict[str, Any]:
    """Store representation of an event; ``ttl`` is the expiry in epoch seconds."""
    timestamp = _iso(event.timestamp)
    ttl = int(event.expires_at.timestamp())
    if isinstance(event, PitchEvent):
        item: dict[str, Any] = {
            "pk": f"pitch#{event.request_id}",
            "sk": f"time#{timestamp}",
            "role": event.role.value,
            "ipHash": event.ip_hash,
            "userAgentHash": event.ua_hash,
            "confidence": event.confidence,
        }
        if event.focus is not None:
            item["focus"] = event.focus.value
        if event.query is not None:
            item["query"] = event.query
    else:
        item = {
            "pk": f"lead#{event.email}",
            "sk": f"time#{timestamp}",
            "name": event.name,
            "email": event.email,
            "message": event.message,
            "source": event.source,
        }
    item["timestamp"] = timestamp
    item["ttl"] = ttl
    return item


class AnalyticsRecorder:
    """Builds analytics events and writes them without blocking the caller.

    Expiry is stamped at creation; removal is left to the store's TTL.
    """

    def __init__(
        self,
        store: KeyValueStore,
        dispatcher: BackgroundDispatcher,
        pitch_retention: timedelta = PITCH_RETENTION,
        lead_retention: timedelta = LEAD_RETENTION,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._pitch_retention = pitch_retention
        self._lead_retention = lead_retention

    def pitch_event(
        self,
        request_id: str,
        role: Role,
        ip_hash: str,
        ua_hash: str,
        confidence: float,
        focus: Focus | None = None,
        query: str | None = None,
        now: datetime | None = None,
    ) -> PitchEvent:
        now = now or datetime.now(UTC)
        return PitchEvent(
            request_id=request_id,
            role=role,
            focus=focus,
            query=query,
            ip_hash=ip_hash,
            ua_hash=ua_hash,
            confidence=confidence,
            timestamp=now,
            expires_at=now + self._pitch_retention,
        )

    def lead_event(
        self,
        name: str,
        email: str,
        message: str,
        now: datetime | None = None,
    ) -> LeadEvent:
        now = now or datetime.now(UTC)
        return LeadEvent(
            name=name,
            email=email,
            message=message,
            timestamp=now,
            expires_at=now + self._lead_retention,
        )

    def record(self, event: AnalyticsEvent) -> None:
        self._dispatcher.submit(self.write(event), f"analytics:{event.kind}")

    async def write(self, event: AnalyticsEvent) -> None:
        item = to_item(event)
        await self._store.put(item, ttl=item["ttl"])
