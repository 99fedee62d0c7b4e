import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from fulfillment_bridge.config import Settings
from fulfillment_bridge.dependencies import get_app_settings, get_ledger, get_orchestrator
from fulfillment_bridge.errors import AuthenticationError, MalformedInputError
from fulfillment_bridge.models import HealthResponse, LedgerEventResponse
from fulfillment_bridge.orchestrator import InboundDelivery, Orchestrator
from fulfillment_bridge.store import SQLiteIdempotencyLedger

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/webhooks/shopify")
async def post_shopify_webhook(
    request: Request,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    # the signature covers the exact bytes received, so read them unparsed
    raw_body = await request.body()
    delivery = InboundDelivery(
        raw_body=raw_body,
        signature=request.headers.get("X-Shopify-Hmac-Sha256"),
        topic=request.headers.get("X-Shopify-Topic", ""),
        shop_domain=request.headers.get("X-Shopify-Shop-Domain", ""),
        event_id=request.headers.get("X-Shopify-Event-Id") or None,
    )
    try:
        ack = await orchestrator.handle(delivery)
    except AuthenticationError as e:
        logger.info("Responding 401 to delivery topic=%s", delivery.topic)
        raise HTTPException(status_code=401, detail=str(e)) from e
    except MalformedInputError as e:
        logger.warning("Responding 400 to delivery topic=%s: %s", delivery.topic, e)
        raise HTTPException(status_code=400, detail=str(e)) from e
    return JSONResponse(content=ack.model_dump(exclude_none=True), status_code=200)


@router.get("/webhooks/events/{event_id:path}")
async def get_event(
    event_id: str,
    ledger: SQLiteIdempotencyLedger = Depends(get_ledger),
) -> LedgerEventResponse:
    event = await ledger.get(event_id)
    if event is None:
        raise HTTPException(status_code=404)
    return LedgerEventResponse(**event.__dict__)


@router.get("/health")
async def health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    return HealthResponse(ok=True, version=settings.app_version)


@router.get("/metrics")
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/ready")
async def ready(request: Request) -> dict:
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(status_code=503)
    return {"ok": True}
