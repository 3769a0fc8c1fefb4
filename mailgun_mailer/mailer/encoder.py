"""Serialise an :class:`EmailMessage` into a multipart/form-data body.

The Mailgun messages endpoint accepts form fields rather than JSON.  Fields
are written in a fixed order:

* ``from`` and ``subject``;
* one ``to`` field per recipient;
* ``recipient-variables`` – only for two or more recipients.  Supplying
  several ``to`` fields together with this JSON object is what switches the
  API into batch mode, where each address receives its own copy with
  ``%recipient.name%`` / ``%recipient.id%`` substituted;
* ``text`` and ``html`` when non-empty;
* the file part ``attachment`` when a path is given.

Apart from the attachment read no validation happens here; an empty sender
or recipient list is passed through to the API.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, List, Mapping, Optional, Tuple, Union

from urllib3.filepost import encode_multipart_formdata

from mailgun_mailer.mailer.errors import AttachmentError, EncodingError
from mailgun_mailer.mailer.models import EmailMessage, EncodedRequest, RecipientMetadata

LOGGER = logging.getLogger(__name__)

_FieldValue = Union[str, Tuple[str, bytes]]


class MultipartFormBuilder:
    """Collect form fields, then render them once with a fresh boundary.

    The builder has two stages.  While open, :meth:`add_field` and
    :meth:`add_file` append parts in call order.  :meth:`finalize` renders
    the body; only after that may :attr:`body` and :attr:`content_type` be
    read, and no further parts may be added.
    """

    def __init__(self) -> None:
        self._fields: List[Tuple[str, _FieldValue]] = []
        self._encoded: Optional[EncodedRequest] = None

    @property
    def finalized(self) -> bool:
        return self._encoded is not None

    def _check_open(self) -> None:
        if self._encoded is not None:
            raise RuntimeError("multipart body already finalized")

    def add_field(self, name: str, value: str) -> None:
        self._check_open()
        self._fields.append((name, value))

    def add_file(self, name: str, filename: str, data: bytes) -> None:
        self._check_open()
        self._fields.append((name, (filename, data)))

    def finalize(self) -> EncodedRequest:
        self._check_open()
        # A new boundary is drawn from os.urandom on every call.
        body, content_type = encode_multipart_formdata(self._fields)
        self._encoded = EncodedRequest(body=body, content_type=content_type)
        return self._encoded

    def _require_finalized(self) -> EncodedRequest:
        if self._encoded is None:
            raise RuntimeError("multipart body not finalized yet")
        return self._encoded

    @property
    def body(self) -> bytes:
        return self._require_finalized().body

    @property
    def content_type(self) -> str:
        return self._require_finalized().content_type


def _metadata_variables(meta: Any) -> dict[str, str]:
    if isinstance(meta, RecipientMetadata):
        return meta.as_variables()
    return {"name": meta["name"], "id": meta["id"]}


def recipient_variables(recipients: Mapping[str, Any]) -> str:
    """Return the ``recipient-variables`` JSON object for ``recipients``.

    Raises:
        EncodingError: If the metadata cannot be turned into JSON.
    """
    try:
        variables = {
            address: _metadata_variables(meta)
            for address, meta in recipients.items()
        }
        return json.dumps(variables)
    except (TypeError, ValueError, KeyError) as exc:
        raise EncodingError(f"cannot encode recipient variables: {exc}") from exc


def read_attachment(path: str) -> Tuple[str, bytes]:
    """Read ``path`` fully and return ``(basename, contents)``.

    The file handle is closed whether or not the read succeeds.

    Raises:
        AttachmentError: If the file cannot be opened or read.
    """
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise AttachmentError(f"failed to read attachment {path!r}: {exc}") from exc
    return os.path.basename(path), data


def encode_message(message: EmailMessage) -> EncodedRequest:
    """Build the multipart request body for ``message``.

    Raises:
        AttachmentError: If the attachment cannot be opened or read.
        EncodingError: If the recipient variables cannot be serialised.
    """
    builder = MultipartFormBuilder()
    builder.add_field("from", message.sender)
    builder.add_field("subject", message.subject)

    for address in message.recipients:
        builder.add_field("to", address)

    if message.is_batch:
        builder.add_field("recipient-variables", recipient_variables(message.recipients))

    if message.text:
        builder.add_field("text", message.text)
    if message.html:
        builder.add_field("html", message.html)

    if message.attachment_path:
        filename, data = read_attachment(message.attachment_path)
        builder.add_file("attachment", filename, data)
        LOGGER.debug("Attached %s (%d bytes)", filename, len(data))

    return builder.finalize()


__all__ = [
    "MultipartFormBuilder",
    "encode_message",
    "read_attachment",
    "recipient_variables",
]
