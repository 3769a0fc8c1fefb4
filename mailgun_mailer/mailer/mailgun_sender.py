"""Mailgun-based email sender implementation.

This module defines ``MailgunClient``, which sends email via the Mailgun
HTTP API.  A client is built once with the API base URL, the sending domain
and the API key, and can then be shared by any number of callers; the only
state it holds is a ``requests.Session`` whose connection pool is safe for
concurrent use.  See the Mailgun API documentation for details on the
parameters accepted.

Environment variables used by :meth:`MailgunClient.from_env`:

* ``MAILGUN_API_KEY`` – API key for Mailgun
* ``MAILGUN_DOMAIN`` – Domain configured in Mailgun
* ``MAILGUN_BASE_URL`` – Optional base URL; defaults to the official API
* ``MAILGUN_TIMEOUT`` – Optional request timeout in seconds; defaults to 30
"""

from __future__ import annotations

import logging
import os
import time
from typing import Mapping, Optional

import requests
from pydantic import BaseModel, Field, ValidationError

from mailgun_mailer.mailer import EmailSender
from mailgun_mailer.mailer.encoder import encode_message
from mailgun_mailer.mailer.errors import (
    HTTPStatusError,
    MailgunTimeoutError,
    NetworkError,
    ResponseParseError,
)
from mailgun_mailer.mailer.models import EmailMessage, EncodedRequest

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.mailgun.net"
DEFAULT_TIMEOUT = 30.0

# The messages endpoint only accepts this user name with the API key.
_AUTH_USER = "api"

_READ_CHUNK_SIZE = 1


class _SendResponse(BaseModel):
    """The one field read from a successful send response."""

    id: str = Field(min_length=1)


class MailgunClient(EmailSender):
    """Mailgun implementation of the ``EmailSender`` interface."""

    def __init__(
        self,
        base_url: str,
        domain: str,
        api_key: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/v3/{domain}/messages"
        self._api_key = api_key
        self._timeout = timeout
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> "MailgunClient":
        """Build a client from ``MAILGUN_*`` environment variables.

        Raises:
            ValueError: If the API key or the domain is missing.
        """
        env = os.environ if environ is None else environ
        api_key = env.get("MAILGUN_API_KEY")
        domain = env.get("MAILGUN_DOMAIN")
        if not api_key or not domain:
            raise ValueError("MAILGUN_API_KEY and MAILGUN_DOMAIN must be set")
        base_url = env.get("MAILGUN_BASE_URL") or DEFAULT_BASE_URL
        timeout = float(env.get("MAILGUN_TIMEOUT") or DEFAULT_TIMEOUT)
        return cls(base_url, domain, api_key, timeout=timeout, session=session)

    @property
    def url(self) -> str:
        return self._url

    @property
    def timeout(self) -> float:
        return self._timeout

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "MailgunClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _timeout_error(self) -> MailgunTimeoutError:
        return MailgunTimeoutError(
            f"request to {self._url} timed out after {self._timeout}s"
        )

    def _read_body(self, response: requests.Response, deadline: float) -> bytes:
        # One byte per read: a larger read blocks until it is filled, so a
        # slowly trickled body would run past the deadline unnoticed.
        chunks = []
        if time.monotonic() >= deadline:
            raise self._timeout_error()
        for chunk in response.iter_content(chunk_size=_READ_CHUNK_SIZE):
            if time.monotonic() >= deadline:
                raise self._timeout_error()
            chunks.append(chunk)
        return b"".join(chunks)

    def send_request(self, request: EncodedRequest) -> str:
        """POST an already encoded body and return the message id.

        Args:
            request: Multipart body and its content type.

        Returns:
            The ``id`` field of the JSON response.

        Raises:
            MailgunTimeoutError: If the full response has not arrived within
                the timeout.
            NetworkError: If the connection fails before a response.
            HTTPStatusError: If the API answers with status 400 or above.
            ResponseParseError: If a successful response has no usable id.
        """
        # The timeout bounds the whole exchange, not just each socket read.
        deadline = time.monotonic() + self._timeout
        try:
            response = self._session.post(
                self._url,
                data=request.body,
                headers={"Content-Type": request.content_type},
                auth=(_AUTH_USER, self._api_key),
                timeout=self._timeout,
                stream=True,
            )
            with response:
                # Drain the body before looking at the status so the
                # connection can go back to the pool.
                content = self._read_body(response, deadline)
        except requests.Timeout as exc:
            raise self._timeout_error() from exc
        except requests.RequestException as exc:
            # requests reports a read timeout while streaming as ConnectionError.
            if time.monotonic() >= deadline:
                raise self._timeout_error() from exc
            raise NetworkError(f"sending request to {self._url}: {exc}") from exc

        if response.status_code >= 400:
            LOGGER.error("Mailgun rejected message: HTTP %s", response.status_code)
            text = content.decode(response.encoding or "utf-8", errors="replace")
            raise HTTPStatusError(response.status_code, text)

        try:
            parsed = _SendResponse.model_validate_json(content)
        except ValidationError as exc:
            raise ResponseParseError(
                f"unreadable response (HTTP {response.status_code}): {content[:200]!r}"
            ) from exc

        LOGGER.info("Mailgun accepted message %s", parsed.id)
        return parsed.id

    def send_email(self, message: EmailMessage) -> str:
        """Encode ``message`` and send it in a single API call.

        Args:
            message: The message to deliver.

        Returns:
            The message id assigned by Mailgun.

        Raises:
            RequestBuildError: If the body could not be built; nothing is
                sent in that case.
            DeliveryError: If the network or the API rejected the request.
        """
        encoded = encode_message(message)
        LOGGER.debug(
            "Sending %r to %d recipient(s) via %s",
            message.subject,
            len(message.recipients),
            self._url,
        )
        return self.send_request(encoded)


__all__ = ["MailgunClient", "DEFAULT_BASE_URL", "DEFAULT_TIMEOUT"]
