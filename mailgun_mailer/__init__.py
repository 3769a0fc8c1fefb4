"""Top‑level package for the mailgun_mailer client.

This package builds and sends transactional email through a Mailgun-style
HTTP API.  The ``mailer`` subpackage holds the message model, the multipart
encoder and the HTTP client; ``demo`` is a small command line script that
exercises them against a sandbox domain.

The ``__all__`` variable enumerates the primary public modules for
convenience when using ``from mailgun_mailer import ...``.
"""

from __future__ import annotations

__all__ = [
    "mailer",
    "demo",
]

# SemVer version of the package
__version__: str = "0.1.0"
