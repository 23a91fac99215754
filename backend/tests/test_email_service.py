"""
HealthAPI Backend — Email Service Tests
=========================================

What:  SMTP delivery, retry behaviour and the message texts.
How:   smtplib.SMTP is patched with a MagicMock; retry waits are zero.

What we test:
    ✅ Successful delivery goes through STARTTLS, login and send_message
    ✅ Transient failures are retried, then succeed
    ✅ Persistent failures become NotificationError after max attempts
    ✅ Confirmation and reset emails carry the link / code
    ✅ build_transport() picks the log-only transport without SMTP_HOST
    ✅ The log-only transport never writes message bodies
"""

import logging
import smtplib
from unittest.mock import MagicMock, patch

import pytest

from app.exceptions import NotificationError
from app.services.email_base import OutgoingEmail
from app.services.email_service import LoggingTransport, Mailer, SMTPTransport, build_transport

MESSAGE = OutgoingEmail(recipient="alice@example.com", subject="Hello", body="Body text")


def make_transport(**overrides) -> SMTPTransport:
    options = dict(
        host="smtp.test",
        port=587,
        username="mailer",
        password="secret",
        sender="no-reply@test",
        max_attempts=3,
        min_wait=0,
        max_wait=0,
    )
    options.update(overrides)
    return SMTPTransport(**options)


class TestSMTPTransport:
    @pytest.mark.asyncio
    async def test_delivers_with_tls_and_login(self):
        with patch("app.services.email_service.smtplib.SMTP") as smtp_cls:
            smtp = smtp_cls.return_value.__enter__.return_value

            await make_transport().send(MESSAGE)

            smtp_cls.assert_called_once_with("smtp.test", 587, timeout=10)
            smtp.starttls.assert_called_once()
            smtp.login.assert_called_once_with("mailer", "secret")
            sent = smtp.send_message.call_args.args[0]
            assert sent["To"] == "alice@example.com"
            assert sent["From"] == "no-reply@test"
            assert sent["Subject"] == "Hello"

    @pytest.mark.asyncio
    async def test_skips_tls_and_login_when_disabled(self):
        with patch("app.services.email_service.smtplib.SMTP") as smtp_cls:
            smtp = smtp_cls.return_value.__enter__.return_value

            await make_transport(use_tls=False, username="").send(MESSAGE)

            smtp.starttls.assert_not_called()
            smtp.login.assert_not_called()
            smtp.send_message.assert_called_once()

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self):
        with patch("app.services.email_service.smtplib.SMTP") as smtp_cls:
            smtp = smtp_cls.return_value.__enter__.return_value
            smtp.send_message.side_effect = [
                smtplib.SMTPServerDisconnected("gone"),
                None,
            ]

            await make_transport().send(MESSAGE)

            assert smtp.send_message.call_count == 2

    @pytest.mark.asyncio
    async def test_persistent_failure_raises_notification_error(self):
        with patch("app.services.email_service.smtplib.SMTP") as smtp_cls:
            smtp_cls.side_effect = ConnectionRefusedError("refused")

            with pytest.raises(NotificationError) as exc_info:
                await make_transport(max_attempts=2).send(MESSAGE)

            assert smtp_cls.call_count == 2
            assert exc_info.value.status_code == 503
            assert exc_info.value.context["error_type"] == "ConnectionRefusedError"


class TestMailer:
    def setup_method(self):
        self.mailer = Mailer(transport=MagicMock(), confirmation_host="https://api.example.com/")

    def test_confirmation_link(self):
        assert (
            self.mailer.confirmation_link("tok.en.value")
            == "https://api.example.com/auth/confirmation/tok.en.value"
        )

    def test_confirmation_email(self):
        message = self.mailer.confirmation_email("alice@example.com", "tok.en.value")

        assert message.recipient == "alice@example.com"
        assert message.subject == Mailer.CONFIRMATION_SUBJECT
        assert "https://api.example.com/auth/confirmation/tok.en.value" in message.body

    def test_reset_code_email(self):
        message = self.mailer.reset_code_email("alice@example.com", "004217")

        assert message.subject == Mailer.RESET_SUBJECT
        assert "verification code is: 004217" in message.body


class TestLoggingTransport:
    @pytest.mark.asyncio
    async def test_body_is_never_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="app.services.email_service")
        message = Mailer(transport=MagicMock(), confirmation_host="http://test").reset_code_email(
            "alice@example.com", "004217"
        )

        await LoggingTransport().send(message)

        assert "alice@example.com" in caplog.text
        assert Mailer.RESET_SUBJECT in caplog.text
        assert "004217" not in caplog.text


class TestBuildTransport:
    def test_log_only_without_smtp_host(self):
        with patch("app.services.email_service.settings") as mock_settings:
            mock_settings.smtp_host = ""
            assert isinstance(build_transport(), LoggingTransport)

    def test_smtp_with_host(self):
        with patch("app.services.email_service.settings") as mock_settings:
            mock_settings.smtp_host = "smtp.example.com"
            mock_settings.smtp_port = 2525
            transport = build_transport()

        assert isinstance(transport, SMTPTransport)
        assert transport.host == "smtp.example.com"
        assert transport.port == 2525
