"""
HealthAPI Backend — Email Service (Notification Sender)
=========================================================

What:  Builds the confirmation and password-reset emails and hands them to a
       transport: SMTP in production, the log in development.
Why:   The auth flow treats email as a side effect with a tiny contract
       ("send this code to this address"); message wording, links and
       delivery resilience stay here.
How:   SMTPTransport runs the blocking smtplib client in a worker thread and
       wraps it in a tenacity retry with exponential backoff and jitter.

Resilience Strategy:
    1. Retry transient failures (connection refused/reset, timeouts, 4xx
       SMTP replies) up to MAIL_RETRY_ATTEMPTS times
    2. After the last attempt, raise NotificationError (HTTP 503); the
       request transaction is rolled back by the session dependency
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import NotificationError
from app.services.email_base import EmailTransport, OutgoingEmail

logger = logging.getLogger(__name__)

# Exceptions worth retrying: smtplib protocol errors and socket-level failures
TRANSIENT_SMTP_ERRORS = (smtplib.SMTPException, OSError)


class SMTPTransport(EmailTransport):
    """Delivers messages through an SMTP relay (STARTTLS + optional login)."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: int = 10,
        sender: str = "no-reply@localhost",
        max_attempts: int = 3,
        min_wait: float = 1,
        max_wait: float = 8,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.sender = sender
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait

    async def send(self, message: OutgoingEmail) -> None:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TRANSIENT_SMTP_ERRORS),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(initial=self.min_wait, max=self.max_wait, jitter=1),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    # smtplib is blocking; keep it off the event loop
                    await asyncio.to_thread(self._deliver, message)
        except TRANSIENT_SMTP_ERRORS as e:
            logger.error(
                "SMTP delivery failed after %d attempts: %s",
                self.max_attempts,
                type(e).__name__,
            )
            raise NotificationError(
                context={"smtp_host": self.host, "error_type": type(e).__name__},
            ) from e

    def _deliver(self, message: OutgoingEmail) -> None:
        email = EmailMessage()
        email["From"] = self.sender
        email["To"] = message.recipient
        email["Subject"] = message.subject
        email.set_content(message.body)

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(email)


class LoggingTransport(EmailTransport):
    """
    Development transport: logs that a message would have been sent.

    Only the recipient and subject are written; bodies carry confirmation
    links and reset codes and never reach the log.
    """

    async def send(self, message: OutgoingEmail) -> None:
        logger.info(
            "Email (not sent, no SMTP_HOST): to=%s subject=%r",
            message.recipient,
            message.subject,
        )


class Mailer:
    """
    Builds account emails and delivers them through the configured transport.

    Messages are plaintext. The confirmation link points at
    GET {confirmation_host}/auth/confirmation/{token}.
    """

    CONFIRMATION_SUBJECT = "Account confirmation"
    RESET_SUBJECT = "Reset password verification code"

    def __init__(self, transport: EmailTransport, confirmation_host: str):
        self.transport = transport
        self.confirmation_host = confirmation_host.rstrip("/")

    def confirmation_link(self, token: str) -> str:
        return f"{self.confirmation_host}/auth/confirmation/{token}"

    def confirmation_email(self, email: str, token: str) -> OutgoingEmail:
        body = (
            f"Hello {email},\n\n"
            "Please confirm your account by opening the link below:\n\n"
            f"{self.confirmation_link(token)}\n\n"
            "If you did not create an account, you can ignore this message.\n"
        )
        return OutgoingEmail(recipient=email, subject=self.CONFIRMATION_SUBJECT, body=body)

    def reset_code_email(self, email: str, code: str) -> OutgoingEmail:
        body = (
            f"Hello {email},\n\n"
            f"Your password reset verification code is: {code}\n\n"
            "The code can be used once. If you did not request a password "
            "reset, you can ignore this message.\n"
        )
        return OutgoingEmail(recipient=email, subject=self.RESET_SUBJECT, body=body)

    async def send_confirmation(self, email: str, token: str) -> None:
        await self.transport.send(self.confirmation_email(email, token))

    async def send_reset_code(self, email: str, code: str) -> None:
        await self.transport.send(self.reset_code_email(email, code))


def build_transport() -> EmailTransport:
    """Pick the transport from settings: SMTP when SMTP_HOST is set, else log-only."""
    if not settings.smtp_host:
        return LoggingTransport()
    return SMTPTransport(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        timeout=settings.smtp_timeout,
        sender=settings.mail_from,
        max_attempts=settings.mail_retry_attempts,
        min_wait=settings.mail_retry_min_wait,
        max_wait=settings.mail_retry_max_wait,
    )


mailer = Mailer(transport=build_transport(), confirmation_host=settings.confirmation_host)
