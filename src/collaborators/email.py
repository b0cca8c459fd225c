"""Email delivery collaborator."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

_MAX_RETRIES = 2
_BACKOFF_CAP_SECONDS = 4


class EmailDeliveryError(Exception):
    """Raised when a message could not be handed to the delivery service."""


class EmailSender(Protocol):
    async def send(
        self, to_address: str, subject: str, body_html: str, body_text: str,
    ) -> None: ...


class LoggingEmailSender:
    """Stand-in used when no delivery service is configured."""

    async def send(
        self, to_address: str, subject: str, body_html: str, body_text: str,
    ) -> None:
        logger.info("email not sent (no delivery service): to=%s subject=%r", to_address, subject)


class HttpEmailSender:
    """Posts messages to an HTTP email API (JSON body, Bearer auth).

    Retries on 429 and 5xx with exponential backoff; any other failure
    raises EmailDeliveryError.
    """

    def __init__(
        self,
        api_url: str,
        api_token: str,
        from_address: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url
        self._api_token = api_token
        self._from_address = from_address
        self._timeout = timeout
        self._transport = transport

    async def send(
        self, to_address: str, subject: str, body_html: str, body_text: str,
    ) -> None:
        payload = {
            "from": self._from_address,
            "to": [to_address],
            "subject": subject,
            "html": body_html,
            "text": body_text,
        }
        headers = {"Authorization": f"Bearer {self._api_token}"}

        async with httpx.AsyncClient(
            transport=self._transport, timeout=self._timeout, verify=True,
        ) as client:
            for attempt in range(_MAX_RETRIES + 1):
                try:
                    resp = await client.post(self._api_url, json=payload, headers=headers)
                except (httpx.ConnectError, httpx.TimeoutException) as exc:
                    raise EmailDeliveryError(f"email API unreachable: {exc}") from exc

                if resp.status_code < 400:
                    return
                if not self._should_retry(resp.status_code) or attempt == _MAX_RETRIES:
                    raise EmailDeliveryError(
                        f"email API returned {resp.status_code}",
                    )
                await asyncio.sleep(min(2 ** attempt, _BACKOFF_CAP_SECONDS))

    @staticmethod
    def _should_retry(status_code: int) -> bool:
        return status_code == 429 or status_code >= 500
