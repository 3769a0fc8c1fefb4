"""Send a few sample messages through a Mailgun sandbox domain.

The script demonstrates the three shapes of request the client supports: a
single recipient, a batch send with recipient variables and a message with
an attachment.  Configuration comes from the environment:

* ``MAILGUN_DOMAIN`` and ``MAILGUN_API_KEY`` – required
* ``MAILGUN_TEST_RECIPIENT_1`` / ``MAILGUN_TEST_RECIPIENT_2`` – addresses
* ``MAILGUN_BASE_URL`` – optional API base URL
* ``MAILGUN_LOG_LEVEL`` – optional logging level, ``WARNING`` by default

Usage::

    python -m mailgun_mailer.demo [ATTACHMENT]
"""

from __future__ import annotations

import logging
import os
import sys
from typing import List, Mapping, Optional

from mailgun_mailer.mailer import EmailSender
from mailgun_mailer.mailer.errors import HTTPStatusError, MailgunError
from mailgun_mailer.mailer.mailgun_sender import MailgunClient
from mailgun_mailer.mailer.models import EmailMessage, RecipientMetadata

DEFAULT_ATTACHMENT = "gopher.webp"


def build_messages(
    domain: str,
    recipient1: str,
    recipient2: str,
    attachment_path: str = DEFAULT_ATTACHMENT,
) -> List[tuple[str, EmailMessage]]:
    """Return ``(label, message)`` pairs for the demo sends, in order."""
    sender = f"Mailgun Sandbox <postmaster@{domain}>"
    single = EmailMessage(
        sender=sender,
        recipients={recipient1: RecipientMetadata()},
        subject="Hello from Mailgun!",
        text="This is a test email sent via Mailgun API.",
        html=(
            "<html><head></head><body><h1>Test</h1>"
            "<p>This is a test email sent via the Mailgun API.</p></body>"
        ),
    )
    bulk = EmailMessage(
        sender=sender,
        recipients={
            recipient1: RecipientMetadata(name="Alice", id="RCPT1"),
            recipient2: RecipientMetadata(name="Bob", id="RCPT2"),
        },
        subject="A Bulk Email from Mailgun!",
        text="Hello from Mailgun!",
    )
    with_attachment = EmailMessage(
        sender=sender,
        recipients={recipient1: RecipientMetadata()},
        subject="Email with Attachment",
        text="Please find the attached document.",
        attachment_path=attachment_path,
    )
    return [
        ("single email", single),
        ("bulk email", bulk),
        ("email with attachment", with_attachment),
    ]


def report_error(operation: str, exc: MailgunError) -> None:
    if isinstance(exc, HTTPStatusError):
        print(
            f"{operation}: sending failed: HTTP error {exc.status_code}: {exc.body}"
        )
        return
    print(f"Sending failed: {exc}")


def run(sender: EmailSender, messages: List[tuple[str, EmailMessage]]) -> int:
    """Send each message in turn and return the process exit code."""
    failures = 0
    for label, message in messages:
        print(f"Sending {label}...")
        try:
            msg_id = sender.send_email(message)
        except MailgunError as exc:
            failures += 1
            report_error(label, exc)
            continue
        print(f"✓ {label[0].upper()}{label[1:]} sent successfully, message ID = {msg_id}")
    return 1 if failures else 0


def main(
    argv: Optional[List[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> int:
    args = sys.argv[1:] if argv is None else argv
    env = os.environ if environ is None else environ

    level = env.get("MAILGUN_LOG_LEVEL", "WARNING").upper()
    if not isinstance(logging.getLevelName(level), int):
        print(f"Error: unknown MAILGUN_LOG_LEVEL {level!r}", file=sys.stderr)
        return 2
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        client = MailgunClient.from_env(env)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    messages = build_messages(
        env["MAILGUN_DOMAIN"],
        env.get("MAILGUN_TEST_RECIPIENT_1", ""),
        env.get("MAILGUN_TEST_RECIPIENT_2", ""),
        args[0] if args else DEFAULT_ATTACHMENT,
    )
    with client:
        return run(client, messages)


if __name__ == "__main__":
    sys.exit(main())
