"""Webhook signature utilities."""

import base64
import hashlib
import hmac


def compute_signature(channel_secret: str, body: bytes) -> str:
    """Base64-encoded HMAC-SHA256 of the raw request body."""
    digest = hmac.new(
        channel_secret.encode("utf-8"), body, hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_signature(channel_secret: str, body: bytes, signature: str | None) -> bool:
    """Constant-time check of the X-Line-Signature header against the body."""
    if not signature or not channel_secret:
        return False
    return hmac.compare_digest(compute_signature(channel_secret, body), signature)
