"""Paystack webhook signature verification."""

import hashlib
import hmac
from typing import Optional


def compute_signature(secret: str, raw_body: bytes) -> str:
    """HMAC-SHA512 hex digest of the raw request body."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_signature(secret: str, raw_body: bytes, signature: Optional[str]) -> bool:
    """
    Check a supplied signature against the raw body.

    The comparison is constant time. The body must be the exact bytes
    received; re-serialized JSON will not match.
    """
    if not signature:
        return False
    expected = compute_signature(secret, raw_body)
    return hmac.compare_digest(expected.encode("ascii"), signature.strip().lower().encode("utf-8"))
