import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import aiosqlite

from fulfillment_bridge.database import open_db

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 4000

PROCESSING = "processing"
SUCCEEDED = "succeeded"
FAILED = "failed"


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class LedgerEvent:
    event_id: str
    status: str
    topic: str | None
    shop_domain: str | None
    order_number: str | None
    response: Any
    last_error: str | None
    created_at: str
    updated_at: str


@dataclass
class Reservation:
    reserved: bool
    existing_status: str | None = None
    existing_response: Any = None


_COLUMNS = "event_id,status,topic,shop_domain,order_number,response_json,last_error,created_at,updated_at"


def _row_to_event(row: aiosqlite.Row) -> LedgerEvent:
    event_id, status, topic, shop_domain, order_number, response_json, last_error, created_at, updated_at = row
    response = json.loads(response_json) if response_json is not None else None
    return LedgerEvent(
        event_id, status, topic, shop_domain, order_number, response, last_error, created_at, updated_at
    )


class SQLiteIdempotencyLedger:
    """Durable record of which webhook events were already claimed.

    ``reserve`` is the only synchronization point between concurrent
    deliveries: it relies on the primary key of ``webhook_events`` rather than
    a read-then-insert, so it holds across connections and processes sharing
    the same database file.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    @classmethod
    async def open(cls, db_path: str) -> "SQLiteIdempotencyLedger":
        return cls(await open_db(db_path))

    async def close(self) -> None:
        await self._conn.close()

    async def reserve(
        self,
        event_id: str,
        *,
        topic: str | None = None,
        shop_domain: str | None = None,
        order_number: str | None = None,
    ) -> Reservation:
        now = _now()
        try:
            await self._conn.execute(
                "INSERT INTO webhook_events(event_id,status,topic,shop_domain,order_number,"
                "response_json,last_error,created_at,updated_at) "
                "VALUES(?,'processing',?,?,?,NULL,NULL,?,?)",
                (event_id, topic, shop_domain, order_number, now, now),
            )
        except aiosqlite.IntegrityError:
            existing = await self.get(event_id)
            return Reservation(
                reserved=False,
                existing_status=existing.status if existing else None,
                existing_response=existing.response if existing else None,
            )
        return Reservation(reserved=True)

    async def get(self, event_id: str) -> LedgerEvent | None:
        async with self._conn.execute(
            f"SELECT {_COLUMNS} FROM webhook_events WHERE event_id=?", (event_id,)
        ) as cursor:
            row = await cursor.fetchone()
        return _row_to_event(row) if row else None

    async def mark_succeeded(self, event_id: str, response: Any) -> None:
        cursor = await self._conn.execute(
            "UPDATE webhook_events SET status='succeeded', response_json=?, updated_at=? "
            "WHERE event_id=? AND status='processing'",
            (json.dumps(response), _now(), event_id),
        )
        if cursor.rowcount == 0:
            logger.warning("mark_succeeded ignored for event %s: not processing", event_id)

    async def mark_failed(self, event_id: str, error_message: str | None) -> None:
        last_error = (error_message or "Unknown error")[:MAX_ERROR_LENGTH]
        cursor = await self._conn.execute(
            "UPDATE webhook_events SET status='failed', last_error=?, updated_at=? "
            "WHERE event_id=? AND status='processing'",
            (last_error, _now(), event_id),
        )
        if cursor.rowcount == 0:
            logger.warning("mark_failed ignored for event %s: not processing", event_id)

    async def count(self) -> int:
        async with self._conn.execute("SELECT COUNT(*) FROM webhook_events") as cursor:
            row = await cursor.fetchone()
        return row[0]
