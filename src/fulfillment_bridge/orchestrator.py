import json
import logging
import time
from dataclasses import dataclass
from typing import Any

from fulfillment_bridge import payload as shopify_payload
from fulfillment_bridge.config import Settings
from fulfillment_bridge.errors import AuthenticationError, MalformedInputError
from fulfillment_bridge.fishbowl import FulfillmentImporter, ImportRequest
from fulfillment_bridge.identity import derive_event_id, identity_seed
from fulfillment_bridge.import_row import render_import_row
from fulfillment_bridge.metrics import (
    ALERT_FAILURES_TOTAL,
    EVENTS_TOTAL,
    PROCESSING_DURATION,
    PROCESSING_ERRORS_TOTAL,
)
from fulfillment_bridge.models import WebhookAck
from fulfillment_bridge.notify import FailureAlert, FailureNotifier
from fulfillment_bridge.shopify import OrderStatusProvider
from fulfillment_bridge.signature import verify_signature
from fulfillment_bridge.store import SQLiteIdempotencyLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InboundDelivery:
    raw_body: bytes
    signature: str | None
    topic: str = ""
    shop_domain: str = ""
    event_id: str | None = None


class Orchestrator:
    """Turns one authenticated Shopify delivery into at most one Fishbowl import.

    Downstream failures never escape ``handle``: they are recorded on the
    ledger, alerted out-of-band and acknowledged, because the ledger already
    suppresses redeliveries and upstream retries could not fix them.
    """

    def __init__(
        self,
        ledger: SQLiteIdempotencyLedger,
        status_provider: OrderStatusProvider,
        importer: FulfillmentImporter,
        notifier: FailureNotifier,
        settings: Settings,
    ) -> None:
        self._ledger = ledger
        self._status_provider = status_provider
        self._importer = importer
        self._notifier = notifier
        self._settings = settings

    async def handle(self, delivery: InboundDelivery) -> WebhookAck:
        if not verify_signature(delivery.raw_body, delivery.signature, self._settings.shopify_webhook_secret):
            EVENTS_TOTAL.labels(result="rejected").inc()
            logger.warning("Rejected delivery topic=%s shop=%s: bad signature", delivery.topic, delivery.shop_domain)
            raise AuthenticationError("Invalid webhook signature")

        try:
            payload = json.loads(delivery.raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            EVENTS_TOTAL.labels(result="malformed").inc()
            raise MalformedInputError("Webhook body is not valid JSON") from e
        if not isinstance(payload, dict):
            EVENTS_TOTAL.labels(result="malformed").inc()
            raise MalformedInputError("Webhook body is not a JSON object")

        event_id = derive_event_id(
            delivery.event_id,
            delivery.topic,
            delivery.shop_domain,
            delivery.raw_body,
            identity_seed(payload),
        )
        order_number = shopify_payload.order_number(payload)
        reservation = await self._ledger.reserve(
            event_id,
            topic=delivery.topic,
            shop_domain=delivery.shop_domain,
            order_number=order_number,
        )
        if not reservation.reserved:
            EVENTS_TOTAL.labels(result="duplicate").inc()
            logger.info("Duplicate event %s status=%s", event_id, reservation.existing_status)
            return WebhookAck(dedup=True, status=reservation.existing_status, result=reservation.existing_response)

        EVENTS_TOTAL.labels(result="accepted").inc()
        logger.info("Accepted event %s topic=%s order=%s", event_id, delivery.topic, order_number)
        start = time.monotonic()
        try:
            return await self._process(event_id, delivery, payload, order_number)
        finally:
            PROCESSING_DURATION.observe(time.monotonic() - start)

    async def _process(
        self,
        event_id: str,
        delivery: InboundDelivery,
        payload: dict[str, Any],
        order_number: str | None,
    ) -> WebhookAck:
        try:
            outcome = await self._run_workflow(payload)
        except Exception as e:
            PROCESSING_ERRORS_TOTAL.inc()
            EVENTS_TOTAL.labels(result="failed").inc()
            message = str(e) or type(e).__name__
            logger.exception("Fulfillment failed for event %s order=%s", event_id, order_number)
            await self._ledger.mark_failed(event_id, message)
            await self._alert(
                FailureAlert(
                    order_number=order_number,
                    event_id=event_id,
                    topic=delivery.topic,
                    shop_domain=delivery.shop_domain,
                    error_message=message,
                )
            )
            return WebhookAck(error=message)

        await self._ledger.mark_succeeded(event_id, outcome)
        if outcome.get("ignored"):
            EVENTS_TOTAL.labels(result="ignored").inc()
            logger.info("Ignored event %s: %s", event_id, outcome.get("reason"))
            return WebhookAck(ignored=True)
        EVENTS_TOTAL.labels(result="succeeded").inc()
        logger.info("Imported event %s order=%s", event_id, outcome.get("order_number"))
        return WebhookAck()

    async def _run_workflow(self, payload: dict[str, Any]) -> dict[str, Any]:
        ref = shopify_payload.order_ref(payload)
        if ref is None:
            return {"ignored": True, "reason": "payload does not reference an order"}

        status = await self._status_provider.get_status(ref)
        if not status.is_fulfilled:
            return {
                "ignored": True,
                "reason": "order is not fulfilled",
                "fulfillment_status": status.fulfillment_status,
            }

        details = shopify_payload.shipment_details(payload, status)
        headers, row = render_import_row(
            self._settings.fishbowl_import_headers,
            self._settings.fishbowl_import_row_template,
            details,
        )
        request = ImportRequest(
            name=self._settings.fishbowl_fulfillment_import_name,
            headers=headers,
            row=row,
            format=self._settings.fishbowl_import_format,
        )

        session = await self._importer.login()
        try:
            erp_response = await session.run_import(request)
        finally:
            try:
                await session.logout()
            except Exception:
                logger.warning("Fishbowl logout failed", exc_info=True)

        return {
            "imported": True,
            "import_name": request.name,
            "order_number": details.order_number,
            "erp_response": erp_response,
        }

    async def _alert(self, alert: FailureAlert) -> None:
        try:
            await self._notifier.notify(alert)
        except Exception:
            ALERT_FAILURES_TOTAL.inc()
            logger.exception("Failure notifier raised for event %s", alert.event_id)
