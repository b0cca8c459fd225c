"""Data models for the request pipeline output."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class PipelineResponse:
    """Uniform response envelope handed back to the HTTP layer."""

    status_code: int
    body: dict[str, Any] | None
    headers: dict[str, str] = field(default_factory=dict)
