"""Exception hierarchy for building and sending messages.

Failures fall into two families so callers can tell them apart:

* :class:`RequestBuildError` – the request body could not be produced
  (unreadable attachment, unserialisable recipient variables).  No network
  call was made.
* :class:`DeliveryError` – the request was built but the network or the
  server rejected it.

All of them derive from :class:`MailgunError`.
"""

from __future__ import annotations


class MailgunError(Exception):
    """Base class for every error raised by this package."""


class RequestBuildError(MailgunError):
    """The outgoing request could not be built."""


class AttachmentError(RequestBuildError, OSError):
    """The attachment file could not be opened or read."""


class EncodingError(RequestBuildError, ValueError):
    """A form field could not be serialised."""


class DeliveryError(MailgunError):
    """The request was built but not accepted."""


class NetworkError(DeliveryError):
    """No response was obtained (DNS, TLS, connection or timeout failure)."""


class MailgunTimeoutError(NetworkError, TimeoutError):
    """The request did not complete within the configured timeout."""


class HTTPStatusError(DeliveryError):
    """The API answered with a status code of 400 or above.

    The response body is kept verbatim because error formats vary between
    endpoints and no parsing is attempted.
    """

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"mailgun error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ResponseParseError(DeliveryError, ValueError):
    """A successful response did not carry a readable message id."""


__all__ = [
    "MailgunError",
    "RequestBuildError",
    "AttachmentError",
    "EncodingError",
    "DeliveryError",
    "NetworkError",
    "MailgunTimeoutError",
    "HTTPStatusError",
    "ResponseParseError",
]
