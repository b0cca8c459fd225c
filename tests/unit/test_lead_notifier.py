"""Tests for lead notification emails."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.analytics.dispatcher import BackgroundDispatcher
from src.collaborators.email import EmailDeliveryError, LoggingEmailSender
from src.models import LeadFields
from src.notify.lead_notifier import LeadNotifier, render_lead_email

LEAD = LeadFields(name="Ada Lovelace", email="ada@example.com", message="Line one\nLine two & more")


def test_render_escapes_html() -> None:
    subject, body_html, body_text = render_lead_email(
        LeadFields(name="A & B", email="ab@example.com", message="x < y"),
    )
    assert subject == "New contact form submission from A & B"
    assert "A &amp; B" in body_html
    assert "x &lt; y" in body_html
    assert "x < y" in body_text


def test_render_keeps_line_breaks() -> None:
    _, body_html, body_text = render_lead_email(LEAD)
    assert "Line one<br>Line two &amp; more" in body_html
    assert "Line one\nLine two & more" in body_text


@pytest.mark.asyncio
async def test_notify_sends_to_owner() -> None:
    sender = AsyncMock(spec=LoggingEmailSender)
    dispatcher = BackgroundDispatcher()
    LeadNotifier(sender, dispatcher, "owner@example.test").notify(LEAD)
    await dispatcher.drain()

    sender.send.assert_awaited_once()
    to_address, subject, _, _ = sender.send.await_args.args
    assert to_address == "owner@example.test"
    assert "Ada Lovelace" in subject


@pytest.mark.asyncio
async def test_notify_without_recipient_is_noop() -> None:
    sender = AsyncMock(spec=LoggingEmailSender)
    dispatcher = BackgroundDispatcher()
    LeadNotifier(sender, dispatcher, None).notify(LEAD)
    assert dispatcher.pending == 0
    sender.send.assert_not_called()


@pytest.mark.asyncio
async def test_delivery_failure_stays_in_background() -> None:
    sender = AsyncMock(spec=LoggingEmailSender)
    sender.send.side_effect = EmailDeliveryError("down")
    dispatcher = BackgroundDispatcher()
    LeadNotifier(sender, dispatcher, "owner@example.test").notify(LEAD)
    assert await dispatcher.drain() == 0
