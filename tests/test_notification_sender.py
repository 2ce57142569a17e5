"""
Unit tests for NotificationSender
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock

from gallery_service.services.notification_sender import (
    NotificationError,
    NotificationSender,
    describe_lifetime,
)
from gallery_service.utils.smtp_client import SMTPError


@pytest.fixture
def smtp_client():
    client = AsyncMock()
    client.send_email.return_value = {"success": True}
    return client


@pytest.fixture
def sender(smtp_client, app_config):
    return NotificationSender(smtp_client, app_config)


class TestDescribeLifetime:

    def test_hours(self):
        assert describe_lifetime(timedelta(hours=24)) == "24 hours"
        assert describe_lifetime(timedelta(hours=1)) == "1 hour"

    def test_minutes(self):
        assert describe_lifetime(timedelta(minutes=10)) == "10 minutes"


class TestRender:

    def test_verification_template(self, sender):
        content = sender.render("verify_email", {
            "verification_url": "https://gallery.example.com/verify-email?token=abc",
            "expiry_text": "24 hours",
        })

        assert "https://gallery.example.com/verify-email?token=abc" in content["html_content"]
        assert "https://gallery.example.com/verify-email?token=abc" in content["text_content"]
        assert "24 hours" in content["text_content"]
        assert "Speceal" in content["html_content"]

    def test_html_is_autoescaped(self, sender):
        content = sender.render("password_reset", {
            "reset_url": "https://x/?a=<b>",
            "expiry_text": "10 minutes",
        })

        assert "<b>" not in content["html_content"]


class TestSend:

    @pytest.mark.asyncio
    async def test_send_verification(self, sender, smtp_client):
        await sender.send_verification("alice@x.com", "raw-token")

        message = smtp_client.send_email.call_args[0][0]
        assert message.to_emails == ["alice@x.com"]
        assert message.subject == "Verify Your Email - Speceal"
        assert "https://gallery.example.com/verify-email?token=raw-token" in message.text_content

    @pytest.mark.asyncio
    async def test_send_password_reset(self, sender, smtp_client):
        await sender.send_password_reset("alice@x.com", "raw-token")

        message = smtp_client.send_email.call_args[0][0]
        assert message.subject == "Reset Your Password - Speceal"
        assert "https://gallery.example.com/reset-password?token=raw-token" in message.text_content
        assert "10 minutes" in message.text_content

    @pytest.mark.asyncio
    async def test_transport_failure_surfaces(self, sender, smtp_client):
        smtp_client.send_email.side_effect = SMTPError("connection refused")

        with pytest.raises(NotificationError):
            await sender.send_verification("alice@x.com", "raw-token")
