"""Tests for the email delivery collaborators."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from src.collaborators.email import EmailDeliveryError, HttpEmailSender, LoggingEmailSender

API_URL = "https://mail.example.test/v1/send"


def _sender(handler) -> HttpEmailSender:
    return HttpEmailSender(
        api_url=API_URL,
        api_token="tok",
        from_address="noreply@example.test",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_posts_message_with_bearer_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202, json={"id": "m1"})

    await _sender(handler).send("owner@example.test", "Subject", "<p>hi</p>", "hi")

    assert len(seen) == 1
    assert seen[0].headers["Authorization"] == "Bearer tok"
    body = json.loads(seen[0].content)
    assert body == {
        "from": "noreply@example.test",
        "to": ["owner@example.test"],
        "subject": "Subject",
        "html": "<p>hi</p>",
        "text": "hi",
    }


@pytest.mark.asyncio
async def test_retries_server_errors_then_succeeds() -> None:
    statuses = iter([503, 429, 200])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(next(statuses))

    with patch("src.collaborators.email.asyncio.sleep", new_callable=AsyncMock) as sleep:
        await _sender(handler).send("o@example.test", "s", "h", "t")
    assert [c.args[0] for c in sleep.await_args_list] == [1, 2]


@pytest.mark.asyncio
async def test_gives_up_after_max_retries() -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(500)

    with patch("src.collaborators.email.asyncio.sleep", new_callable=AsyncMock):
        with pytest.raises(EmailDeliveryError, match="500"):
            await _sender(handler).send("o@example.test", "s", "h", "t")
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_client_error_is_not_retried() -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(401)

    with pytest.raises(EmailDeliveryError, match="401"):
        await _sender(handler).send("o@example.test", "s", "h", "t")
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_unreachable_api_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(EmailDeliveryError, match="unreachable"):
        await _sender(handler).send("o@example.test", "s", "h", "t")


@pytest.mark.asyncio
async def test_logging_sender_only_logs() -> None:
    await LoggingEmailSender().send("o@example.test", "s", "h", "t")
