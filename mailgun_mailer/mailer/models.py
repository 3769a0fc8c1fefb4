"""Value types passed between the caller, the encoder and the client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional


@dataclass(frozen=True)
class RecipientMetadata:
    """Per-recipient substitution variables for batch sends."""

    name: str = ""
    id: str = ""

    def as_variables(self) -> dict[str, str]:
        return {"name": self.name, "id": self.id}


@dataclass
class EmailMessage:
    """A message addressed to one or more recipients.

    ``recipients`` maps each address to its metadata.  Iteration order of the
    mapping decides the order of the ``to`` fields.  With two or more
    recipients the metadata is sent as recipient variables and the API
    delivers one personalised copy per address.
    """

    sender: str
    recipients: Mapping[str, RecipientMetadata]
    subject: str
    text: str = ""
    html: str = ""
    attachment_path: Optional[str] = None

    @property
    def is_batch(self) -> bool:
        return len(self.recipients) >= 2


@dataclass(frozen=True)
class EncodedRequest:
    """A finished multipart body and the content type naming its boundary."""

    body: bytes = field(repr=False)
    content_type: str


__all__ = ["RecipientMetadata", "EmailMessage", "EncodedRequest"]
