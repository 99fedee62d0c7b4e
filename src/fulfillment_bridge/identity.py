import hashlib
from typing import Any


def derive_event_id(
    header_event_id: str | None,
    topic: str,
    shop_domain: str,
    raw_body: bytes,
    fallback_seed: str | None,
) -> str:
    """Return the dedup key for a delivery.

    An explicit upstream event id wins. Otherwise the topic is combined with an
    identifier taken from the payload, and as a last resort with a digest of
    the raw body, so byte-identical redeliveries always map to the same key.
    """
    if header_event_id:
        return header_event_id
    if fallback_seed:
        return f"{topic}:{fallback_seed}"
    digest = hashlib.sha256(raw_body).hexdigest()
    return f"{shop_domain}:{topic}:sha256:{digest}"


def identity_seed(payload: dict[str, Any]) -> str | None:
    for key in ("admin_graphql_api_id", "id"):
        value = payload.get(key)
        if value not in (None, ""):
            return str(value)
    return None
