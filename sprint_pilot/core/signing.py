"""HMAC-SHA256 signing for webhook bodies."""
from __future__ import annotations

import hmac

from sprint_pilot.core.errors import SignatureError

SIGNATURE_HEADER = "X-Sprint-Pilot-Signature"
_PREFIX = "sha256="


def sign_body(body: bytes, secret: str) -> str:
    """Return the ``sha256=<hex>`` signature for the exact bytes of ``body``."""

    digest = hmac.new(secret.encode("utf-8"), body, digestmod="sha256").hexdigest()
    return f"{_PREFIX}{digest}"


def verify_signature(body: bytes, signature: str | None, secret: str) -> None:
    """Check ``signature`` against the raw received ``body``.

    Raises :class:`SignatureError` when the header is absent or does not match.
    """

    if not signature:
        raise SignatureError("Missing signature header")
    expected = sign_body(body, secret)
    if not hmac.compare_digest(expected.encode("ascii"), signature.strip().encode("utf-8", errors="replace")):
        raise SignatureError("Invalid signature")


__all__ = ["SIGNATURE_HEADER", "sign_body", "verify_signature"]
