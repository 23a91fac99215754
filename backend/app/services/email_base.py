"""
HealthAPI Backend — Abstract Email Transport Interface
========================================================

What:  Abstract base class defining how an outgoing email is delivered.
Why:   The auth flow only needs "deliver this plaintext message"; the concrete
       channel (SMTP relay, log output during development, an in-memory
       recorder in tests) is swapped without touching calling code.
How:   Concrete transports inherit from EmailTransport and implement send().
Who:   Called by Mailer (email_service.py), which builds the message texts.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class OutgoingEmail:
    """A plaintext email ready for delivery."""

    recipient: str
    subject: str
    body: str


class EmailTransport(ABC):
    """
    Abstract interface for email delivery.

    Contract:
        - send() either delivers the message or raises
        - Implementations handle their own retry logic
        - Any failure after retries surfaces as NotificationError
    """

    @abstractmethod
    async def send(self, message: OutgoingEmail) -> None:
        """
        Deliver one message.

        Raises:
            NotificationError: delivery failed after all retry attempts.
        """
        ...
