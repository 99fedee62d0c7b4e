from typing import Any

from pydantic import BaseModel


class WebhookAck(BaseModel):
    ok: bool = True
    dedup: bool | None = None
    ignored: bool | None = None
    error: str | None = None
    status: str | None = None
    result: Any = None


class HealthResponse(BaseModel):
    ok: bool
    version: str


class LedgerEventResponse(BaseModel):
    event_id: str
    status: str
    topic: str | None
    shop_domain: str | None
    order_number: str | None
    response: Any
    last_error: str | None
    created_at: str
    updated_at: str
