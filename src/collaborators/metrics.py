"""Metrics sink collaborator backed by prometheus_client."""

from __future__ import annotations

import logging
import re
from typing import Protocol

from prometheus_client import CollectorRegistry, Counter, Histogram

logger = logging.getLogger(__name__)

# Milliseconds; the API answers well under a second when healthy.
LATENCY_BUCKETS_MS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000)

# Metric name -> (collector name, help text, label names)
_COUNTERS: dict[str, tuple[str, str, tuple[str, ...]]] = {
    "RequestCount": (
        "requests", "Requests answered with a success response", ("endpoint", "stage"),
    ),
    "RejectedRequests": (
        "rejected_requests", "Requests rejected by a guard or failed",
        ("endpoint", "stage", "code"),
    ),
    "RateLimitHits": (
        "rate_limit_hits", "Requests refused by the rate limiter", ("endpoint", "stage"),
    ),
    "ErrorCount": (
        "errors", "Requests that ended in an internal error",
        ("endpoint", "stage", "error_type"),
    ),
}

_HISTOGRAMS: dict[str, tuple[str, str, tuple[str, ...]]] = {
    "RequestLatency": (
        "request_latency_ms", "Pipeline latency of successful requests",
        ("endpoint", "stage"),
    ),
}

# Dimension keys as emitted -> prometheus label names
_LABELS = {
    "Endpoint": "endpoint",
    "Stage": "stage",
    "Code": "code",
    "ErrorType": "error_type",
}


class MetricsSink(Protocol):
    async def publish(
        self, name: str, value: float, unit: str, dimensions: dict[str, str],
    ) -> None: ...


def _prefix(namespace: str) -> str:
    """``PersonalSite/API`` -> ``personalsite_api``."""
    return re.sub(r"[^a-z0-9_]+", "_", namespace.lower()).strip("_")


class PrometheusMetricsSink:
    """Counters and a latency histogram in a prometheus registry.

    Each sink owns a registry unless one is passed in, so several apps can
    live in one process (tests) without duplicate-registration errors.
    """

    def __init__(
        self,
        namespace: str = "PersonalSite/API",
        registry: CollectorRegistry | None = None,
    ) -> None:
        self.registry = registry or CollectorRegistry()
        prefix = _prefix(namespace)
        self._counters = {
            metric: (
                Counter(name, doc, labelnames=labels, namespace=prefix, registry=self.registry),
                labels,
            )
            for metric, (name, doc, labels) in _COUNTERS.items()
        }
        self._histograms = {
            metric: (
                Histogram(
                    name, doc, labelnames=labels, namespace=prefix,
                    buckets=LATENCY_BUCKETS_MS, registry=self.registry,
                ),
                labels,
            )
            for metric, (name, doc, labels) in _HISTOGRAMS.items()
        }

    async def publish(
        self, name: str, value: float, unit: str, dimensions: dict[str, str],
    ) -> None:
        given = {_LABELS[k]: v for k, v in dimensions.items() if k in _LABELS}
        if name in self._counters:
            counter, names = self._counters[name]
            counter.labels(**_fill(names, given)).inc(value)
        elif name in self._histograms:
            histogram, names = self._histograms[name]
            histogram.labels(**_fill(names, given)).observe(value)
        else:
            logger.debug("dropping unknown metric %s", name)


def _fill(names: tuple[str, ...], given: dict[str, str]) -> dict[str, str]:
    # Missing dimensions become empty labels; extra ones are dropped.
    return {n: given.get(n, "") for n in names}
