"""Abstract interface and the Mailgun implementation for sending email.

This subpackage defines a common ``send_email`` interface, the message
types it accepts, the multipart encoder and a concrete client targeting
the Mailgun HTTP API.  Client code can depend on :class:`EmailSender` and
swap in another implementation (or a test double) without changing the
calling semantics.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from mailgun_mailer.mailer.models import EmailMessage


class EmailSender(ABC):
    """Abstract base class for email senders.

    Implementations must provide a ``send_email`` method that delivers one
    :class:`EmailMessage` per call and returns the provider's message id.
    """

    @abstractmethod
    def send_email(self, message: EmailMessage) -> str:
        """Send a single message, possibly addressed to several recipients.

        Args:
            message: The message to deliver.

        Returns:
            The identifier assigned by the provider.

        Raises:
            mailgun_mailer.mailer.errors.MailgunError: On any failure.
        """
        raise NotImplementedError


__all__ = ["EmailSender"]
