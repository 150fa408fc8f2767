"""Webhook signatures: HMAC-SHA256 over ``"{timestamp}.{raw body}"``.

The signature header has the form ``t=<unix seconds>,v1=<hex digest>`` and
may carry several ``v1`` entries while a secret is being rotated.
"""

import hashlib
import hmac
import time

from storefront.errors import InvalidWebhookSignature


def compute_signature(payload: bytes, timestamp: int, secret: str) -> str:
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


def sign_payload(payload: bytes, secret: str, timestamp: int | None = None) -> str:
    """Build a signature header for ``payload``."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    return f"t={timestamp},v1={compute_signature(payload, timestamp, secret)}"


def parse_header(header: str) -> tuple[int, list[str]]:
    timestamp = None
    signatures = []
    for part in (header or "").split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise InvalidWebhookSignature("malformed timestamp")
        elif key == "v1" and value:
            signatures.append(value)

    if timestamp is None:
        raise InvalidWebhookSignature("missing timestamp")
    if not signatures:
        raise InvalidWebhookSignature("missing v1 signature")
    return timestamp, signatures


def verify_signature(
    payload: bytes,
    header: str,
    secret: str,
    tolerance_seconds: int = 300,
    now: float | None = None,
) -> None:
    """Raise ``InvalidWebhookSignature`` unless ``header`` signs ``payload``."""
    timestamp, signatures = parse_header(header)

    now = time.time() if now is None else now
    if tolerance_seconds and abs(now - timestamp) > tolerance_seconds:
        raise InvalidWebhookSignature("timestamp outside tolerance")

    expected = compute_signature(payload, timestamp, secret)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise InvalidWebhookSignature("signature mismatch")
