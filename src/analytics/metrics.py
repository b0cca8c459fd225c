"""Best-effort counters and latencies."""

from __future__ import annotations

from src.analytics.dispatcher import BackgroundDispatcher
from src.collaborators.metrics import MetricsSink


class MetricsEmitter:
    def __init__(
        self,
        sink: MetricsSink,
        dispatcher: BackgroundDispatcher,
        stage: str = "dev",
    ) -> None:
        self._sink = sink
        self._dispatcher = dispatcher
        self._stage = stage

    def emit(
        self,
        name: str,
        value: float,
        unit: str = "Count",
        dimensions: dict[str, str] | None = None,
    ) -> None:
        """Publish in the background; the caller never waits or sees a failure."""
        dims = {"Stage": self._stage, **(dimensions or {})}
        self._dispatcher.submit(
            self._sink.publish(name, value, unit, dims), f"metric:{name}",
        )

    def request_completed(self, endpoint: str, latency_ms: float) -> None:
        self.emit("RequestCount", 1, dimensions={"Endpoint": endpoint})
        self.emit("RequestLatency", latency_ms, unit="Milliseconds",
                  dimensions={"Endpoint": endpoint})

    def request_rejected(self, endpoint: str, code: str) -> None:
        self.emit("RejectedRequests", 1, dimensions={"Endpoint": endpoint, "Code": code})
        if code == "RATE_LIMIT_EXCEEDED":
            self.emit("RateLimitHits", 1, dimensions={"Endpoint": endpoint})
        elif code == "INTERNAL_ERROR":
            self.emit("ErrorCount", 1, dimensions={"Endpoint": endpoint, "ErrorType": code})
