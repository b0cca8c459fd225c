"""Origin/Referer verification for state-mutating requests (CSRF defense)."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlsplit

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def is_mutating_method(method: str) -> bool:
    return method.upper() in MUTATING_METHODS


def _normalize(origin: str) -> str:
    return origin.strip().rstrip("/").lower()


def _referer_origin(referer: str) -> str | None:
    try:
        parts = urlsplit(referer.strip())
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}".lower()


def is_allowed_origin(
    origin: str | None,
    referer: str | None,
    allow_list: Iterable[str],
) -> bool:
    """Return True if the request originates from an allowed site.

    ``Origin`` is authoritative when present. Otherwise the scheme and host of
    ``Referer`` are compared. With neither header the request is rejected.
    """
    allowed = {_normalize(o) for o in allow_list if o}

    if origin:
        return _normalize(origin) in allowed

    if referer:
        referer_origin = _referer_origin(referer)
        return referer_origin is not None and referer_origin in allowed

    return False
