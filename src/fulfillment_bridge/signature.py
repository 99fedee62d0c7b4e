"""Shopify webhook signatures: base64(HMAC-SHA256(raw_body, secret))."""

import base64
import hashlib
import hmac


def sign_body(raw_body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(raw_body: bytes | None, signature_header: object, secret: str | None) -> bool:
    """Check a delivery signature against the exact bytes that were received.

    Never raises: a missing body, header or secret, a non-string header and a
    length mismatch all yield False. An empty body is still verified. Must be
    called before the body is parsed.
    """
    if raw_body is None or not isinstance(raw_body, bytes | bytearray):
        return False
    if not signature_header or not isinstance(signature_header, str):
        return False
    if not secret:
        return False

    expected = sign_body(bytes(raw_body), secret).encode("ascii")
    try:
        supplied = signature_header.encode("ascii")
    except UnicodeEncodeError:
        return False
    if len(supplied) != len(expected):
        return False
    return hmac.compare_digest(supplied, expected)
