"""
Email service for account and marketplace notifications.

Messages are rendered here and handed to a delivery backend chosen by
settings.email_provider: "log" writes them to the log (and keeps them in an
in-memory outbox), "resend" posts them to the Resend HTTP API.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol
from html import escape
import asyncio
import logging

import httpx

from sublets.config import settings
from sublets.utils.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str
    reply_to: Optional[str] = None


class EmailBackend(Protocol):
    async def send(self, message: EmailMessage) -> None:
        ...


@dataclass
class LogEmailBackend:
    """Development backend: logs each message and keeps it in the outbox."""

    outbox: List[EmailMessage] = field(default_factory=list)

    async def send(self, message: EmailMessage) -> None:
        self.outbox.append(message)
        logger.info(f"Email (log backend) to={message.to} subject={message.subject!r}")
        logger.debug(message.text)


@dataclass
class ResendEmailBackend:
    """Delivers through the Resend REST API."""

    api_key: str
    sender: str
    url: str = "https://api.resend.com/emails"
    timeout: float = 5.0
    max_attempts: int = 3
    retry_delay: float = 0.5
    transport: Optional[httpx.AsyncBaseTransport] = None

    async def send(self, message: EmailMessage) -> None:
        if not self.api_key:
            raise EmailDeliveryError("RESEND_API_KEY must be configured for the resend provider")

        payload = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        if message.reply_to:
            payload["reply_to"] = message.reply_to
        headers = {"Authorization": f"Bearer {self.api_key}"}

        delay = self.retry_delay
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    response = await client.post(self.url, json=payload, headers=headers)
                    response.raise_for_status()
                    logger.info(f"Email sent via Resend to={message.to} subject={message.subject!r}")
                    return
                except httpx.HTTPStatusError as e:
                    # Client errors will not succeed on retry
                    if e.response.status_code < 500 or attempt == self.max_attempts:
                        raise EmailDeliveryError(
                            f"Resend rejected email ({e.response.status_code}): {e.response.text}"
                        ) from e
                    logger.warning(f"Resend attempt {attempt} failed: {e}")
                except httpx.HTTPError as e:
                    if attempt == self.max_attempts:
                        raise EmailDeliveryError(f"Resend request failed: {e}") from e
                    logger.warning(f"Resend attempt {attempt} failed: {e}")
                await asyncio.sleep(delay)
                delay *= 2


def resolve_backend() -> EmailBackend:
    """Build the delivery backend configured in settings."""
    if settings.email_provider == "resend":
        return ResendEmailBackend(
            api_key=settings.resend_api_key,
            sender=settings.email_from,
            url=settings.resend_api_url,
            timeout=settings.email_timeout_seconds,
            max_attempts=settings.email_max_attempts,
        )
    return LogEmailBackend()


def _layout(heading: str, body_html: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color: #c5050c;">{escape(heading)}</h2>'
        f"{body_html}"
        '<p style="color: #666; font-size: 12px;">BadgerSublets</p>'
        "</div>"
    )


def _button(url: str, label: str) -> str:
    return (
        f'<p><a href="{escape(url, quote=True)}" style="background-color: #c5050c; color: white; '
        f'padding: 12px 24px; text-decoration: none; border-radius: 4px;">{escape(label)}</a></p>'
    )


class EmailService:
    """Renders notification emails and sends them through a backend."""

    def __init__(self, backend: Optional[EmailBackend] = None):
        self.backend = backend or resolve_backend()

    async def send(self, message: EmailMessage) -> None:
        """
        Deliver one message.

        Raises:
            EmailDeliveryError: If the backend could not deliver it
        """
        try:
            await self.backend.send(message)
        except EmailDeliveryError:
            logger.error(f"Failed to deliver email to {message.to}: {message.subject!r}")
            raise
        except Exception as e:
            logger.error(f"Unexpected error delivering email to {message.to}: {e}")
            raise EmailDeliveryError(str(e)) from e

    async def send_verification_email(self, to: str, name: str, token: str) -> None:
        link = f"{settings.app_url}/verify-email?token={token}"
        hours = settings.verification_token_expire_hours
        html = _layout(
            "Verify your email",
            f"<p>Hi {escape(name)},</p>"
            "<p>Thanks for signing up. Confirm your email address to start posting and messaging.</p>"
            f"{_button(link, 'Verify Email')}"
            f"<p>This link expires in {hours} hours. If you did not sign up, ignore this email.</p>"
        )
        text = (
            f"Hi {name},\n\nConfirm your email address by opening this link:\n{link}\n\n"
            f"This link expires in {hours} hours."
        )
        await self.send(EmailMessage(to=to, subject="Verify your BadgerSublets account", html=html, text=text))

    async def send_password_reset_email(self, to: str, name: str, token: str) -> None:
        link = f"{settings.app_url}/reset-password?token={token}"
        minutes = settings.reset_token_expire_minutes
        html = _layout(
            "Reset your password",
            f"<p>Hi {escape(name)},</p>"
            "<p>We received a request to reset your password.</p>"
            f"{_button(link, 'Reset Password')}"
            f"<p>This link expires in {minutes} minutes. If you did not ask for a reset, ignore this email.</p>"
        )
        text = (
            f"Hi {name},\n\nReset your password by opening this link:\n{link}\n\n"
            f"This link expires in {minutes} minutes."
        )
        await self.send(EmailMessage(to=to, subject="Reset your BadgerSublets password", html=html, text=text))

    async def send_report_notification(
        self,
        report_id: str,
        listing_id: str,
        listing_title: str,
        reporter_email: str,
        reason: str,
        details: str
    ) -> None:
        """Notify the support inbox about a new listing report."""
        link = f"{settings.app_url}/listings/{listing_id}"
        html = _layout(
            "New listing report",
            f"<p><strong>Report:</strong> {escape(report_id)}</p>"
            f"<p><strong>Listing:</strong> {escape(listing_title)}</p>"
            f"<p><strong>Reported by:</strong> {escape(reporter_email)}</p>"
            f"<p><strong>Reason:</strong> {escape(reason)}</p>"
            f"<p><strong>Details:</strong><br>{escape(details)}</p>"
            f"{_button(link, 'View Listing')}"
        )
        text = (
            f"Report {report_id}\nListing: {listing_title} ({link})\n"
            f"Reported by: {reporter_email}\nReason: {reason}\n\n{details}"
        )
        await self.send(EmailMessage(
            to=settings.support_email,
            subject=f"Listing reported: {listing_title}",
            html=html,
            text=text,
            reply_to=reporter_email,
        ))

    async def send_contact_owner_email(
        self,
        to: str,
        sender_name: str,
        sender_email: str,
        listing_title: str,
        subject: str,
        message: str
    ) -> None:
        """Relay a user's question to a listing owner; replies go to the sender."""
        html = _layout(
            f"New inquiry about {listing_title}",
            f"<p><strong>From:</strong> {escape(sender_name)} ({escape(sender_email)})</p>"
            f"<p>{escape(message)}</p>"
            "<p>Reply to this email to answer directly.</p>"
        )
        text = f"From: {sender_name} ({sender_email})\nListing: {listing_title}\n\n{message}"
        await self.send(EmailMessage(
            to=to,
            subject=f"[BadgerSublets] {subject}",
            html=html,
            text=text,
            reply_to=sender_email,
        ))
