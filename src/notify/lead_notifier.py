"""Owner notification for contact-form submissions."""

from __future__ import annotations

import html

from src.analytics.dispatcher import BackgroundDispatcher
from src.collaborators.email import EmailSender
from src.models import LeadFields


def render_lead_email(lead: LeadFields) -> tuple[str, str, str]:
    """Return (subject, body_html, body_text) for a lead notification."""
    subject = f"New contact form submission from {lead.name}"
    body_text = (
        f"Name: {lead.name}\n"
        f"Email: {lead.email}\n\n"
        f"{lead.message}\n"
    )
    body_html = (
        "<h2>New contact form submission</h2>"
        f"<p><strong>Name:</strong> {html.escape(lead.name)}</p>"
        f"<p><strong>Email:</strong> {html.escape(lead.email)}</p>"
        f"<p>{html.escape(lead.message).replace(chr(10), '<br>')}</p>"
    )
    return subject, body_html, body_text


class LeadNotifier:
    """Sends the site owner an email per lead, off the response path."""

    def __init__(
        self,
        sender: EmailSender,
        dispatcher: BackgroundDispatcher,
        to_address: str | None,
    ) -> None:
        self._sender = sender
        self._dispatcher = dispatcher
        self._to_address = to_address

    def notify(self, lead: LeadFields) -> None:
        if not self._to_address:
            return
        subject, body_html, body_text = render_lead_email(lead)
        self._dispatcher.submit(
            self._sender.send(self._to_address, subject, body_html, body_text),
            "email:lead",
        )
