"""
Tests for email rendering and delivery backends.
"""

import json
import pytest
import httpx

from sublets.config import settings
from sublets.services.email import (
    EmailMessage,
    EmailService,
    LogEmailBackend,
    ResendEmailBackend,
    resolve_backend,
)
from sublets.utils.exceptions import EmailDeliveryError


def make_message() -> EmailMessage:
    return EmailMessage(to="bucky@wisc.edu", subject="Hello", html="<p>Hi</p>", text="Hi", reply_to="becky@wisc.edu")


def resend_backend(handler, **kwargs) -> ResendEmailBackend:
    return ResendEmailBackend(
        api_key=kwargs.pop("api_key", "re_test_key"),
        sender="BadgerSublets <noreply@badgersublets.test>",
        transport=httpx.MockTransport(handler),
        retry_delay=0,
        **kwargs
    )


class TestResendEmailBackend:
    """Delivery through the Resend HTTP API."""

    @pytest.mark.asyncio
    async def test_sends_payload_with_bearer_token(self):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"id": "email_123"})

        await resend_backend(handler).send(make_message())

        assert len(captured) == 1
        request = captured[0]
        assert request.headers["Authorization"] == "Bearer re_test_key"
        payload = json.loads(request.content)
        assert payload["to"] == ["bucky@wisc.edu"]
        assert payload["subject"] == "Hello"
        assert payload["reply_to"] == "becky@wisc.edu"

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        responses = iter([httpx.Response(503), httpx.Response(502), httpx.Response(200, json={"id": "ok"})])
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return next(responses)

        await resend_backend(handler).send(make_message())

        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500, text="boom")

        with pytest.raises(EmailDeliveryError):
            await resend_backend(handler, max_attempts=2).send(make_message())

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(422, json={"message": "invalid from address"})

        with pytest.raises(EmailDeliveryError, match="422"):
            await resend_backend(handler).send(make_message())

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_network_error_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"id": "ok"})

        await resend_backend(handler).send(make_message())

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200)

        with pytest.raises(EmailDeliveryError, match="RESEND_API_KEY"):
            await resend_backend(handler, api_key="").send(make_message())


class TestEmailService:
    """Rendering of notification emails."""

    def test_default_backend_in_tests_is_log(self):
        assert isinstance(resolve_backend(), LogEmailBackend)

    @pytest.mark.asyncio
    async def test_verification_email(self, email_service: EmailService, email_backend: LogEmailBackend):
        await email_service.send_verification_email("bucky@wisc.edu", "Bucky", "tok123")

        sent = email_backend.outbox[0]
        assert sent.to == "bucky@wisc.edu"
        assert f"{settings.app_url}/verify-email?token=tok123" in sent.text
        assert "verify-email?token=tok123" in sent.html

    @pytest.mark.asyncio
    async def test_password_reset_email(self, email_service: EmailService, email_backend: LogEmailBackend):
        await email_service.send_password_reset_email("bucky@wisc.edu", "Bucky", "reset456")

        assert f"{settings.app_url}/reset-password?token=reset456" in email_backend.outbox[0].text

    @pytest.mark.asyncio
    async def test_user_content_is_escaped(self, email_service: EmailService, email_backend: LogEmailBackend):
        await email_service.send_contact_owner_email(
            to="owner@wisc.edu",
            sender_name="<b>Mallory</b>",
            sender_email="mallory@wisc.edu",
            listing_title="Studio",
            subject="Question",
            message="<script>alert(1)</script>",
        )

        sent = email_backend.outbox[0]
        assert "<script>" not in sent.html
        assert "&lt;script&gt;" in sent.html
        assert "&lt;b&gt;Mallory&lt;/b&gt;" in sent.html
        assert sent.reply_to == "mallory@wisc.edu"
        assert sent.subject == "[BadgerSublets] Question"

    @pytest.mark.asyncio
    async def test_report_notification_goes_to_support(
        self,
        email_service: EmailService,
        email_backend: LogEmailBackend
    ):
        await email_service.send_report_notification(
            report_id="r1",
            listing_id="l1",
            listing_title="Shady sublet",
            reporter_email="becky@wisc.edu",
            reason="Scam",
            details="Asked for crypto",
        )

        sent = email_backend.outbox[0]
        assert sent.to == settings.support_email
        assert "Shady sublet" in sent.subject
        assert f"{settings.app_url}/listings/l1" in sent.text

    @pytest.mark.asyncio
    async def test_unexpected_backend_error_is_wrapped(self):
        class BrokenBackend:
            async def send(self, message):
                raise RuntimeError("socket closed")

        with pytest.raises(EmailDeliveryError, match="socket closed"):
            await EmailService(backend=BrokenBackend()).send(make_message())
