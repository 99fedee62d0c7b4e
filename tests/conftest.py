import json
from collections.abc import Awaitable, Callable
from unittest.mock import AsyncMock

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from fulfillment_bridge.app import create_app
from fulfillment_bridge.config import Settings
from fulfillment_bridge.database import open_db
from fulfillment_bridge.dependencies import get_ledger, get_orchestrator
from fulfillment_bridge.fishbowl import FishbowlClient
from fulfillment_bridge.mock_erp import create_mock_erp_app
from fulfillment_bridge.orchestrator import InboundDelivery, Orchestrator
from fulfillment_bridge.shopify import MockOrderStatusProvider
from fulfillment_bridge.signature import sign_body
from fulfillment_bridge.store import SQLiteIdempotencyLedger

SECRET = "shpss_test_secret"
ERP_URL = "http://fishbowl.test"
FAILING_ORDER = "9999"


def order_payload(order_number: int) -> dict:
    return {
        "id": order_number,
        "order_id": order_number,
        "order_number": order_number,
        "admin_graphql_api_id": f"gid://shopify/Order/{order_number}",
        "tracking_number": "1Z999AA10123456784",
        "tracking_company": "UPS",
    }


@pytest.fixture
def settings(tmp_path: pytest.TempPathFactory) -> Settings:
    return Settings(
        db_path=str(tmp_path / "ledger.db"),
        app_version="1.2.3",
        shopify_webhook_secret=SECRET,
        shopify_mode="mock",
        fishbowl_base_url=ERP_URL,
        fishbowl_username="bridge",
        fishbowl_password="secret",
    )


@pytest.fixture
async def db(tmp_path: pytest.TempPathFactory):
    conn = await open_db(str(tmp_path / "test.db"))
    yield conn
    await conn.close()


@pytest.fixture
async def ledger(settings: Settings):
    ledger = await SQLiteIdempotencyLedger.open(settings.db_path)
    yield ledger
    await ledger.close()


@pytest.fixture
def mock_erp():
    return create_mock_erp_app(fail_order_numbers={FAILING_ORDER}, token="mock-token")


@pytest.fixture
async def erp_http(mock_erp):
    async with httpx.AsyncClient(transport=ASGITransport(app=mock_erp), base_url=ERP_URL) as http:
        yield http


@pytest.fixture
def importer(erp_http: httpx.AsyncClient, settings: Settings) -> FishbowlClient:
    return FishbowlClient.from_settings(settings, erp_http)


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def orchestrator(ledger, importer, notifier, settings) -> Orchestrator:
    return Orchestrator(
        ledger=ledger,
        status_provider=MockOrderStatusProvider("FULFILLED"),
        importer=importer,
        notifier=notifier,
        settings=settings,
    )


@pytest.fixture
def make_delivery() -> Callable[..., InboundDelivery]:
    def _make(
        payload: dict | None = None,
        event_id: str | None = "evt-001",
        topic: str = "orders/fulfilled",
        raw_body: bytes | None = None,
        signature: str | None = None,
    ) -> InboundDelivery:
        body = raw_body if raw_body is not None else json.dumps(payload or order_payload(1001)).encode()
        return InboundDelivery(
            raw_body=body,
            signature=signature if signature is not None else sign_body(body, SECRET),
            topic=topic,
            shop_domain="demo.myshopify.com",
            event_id=event_id,
        )

    return _make


@pytest.fixture
async def client(settings, ledger, orchestrator) -> AsyncClient:
    app = create_app(settings)
    app.state.ready = True
    app.dependency_overrides[get_ledger] = lambda: ledger
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def post_webhook(client: AsyncClient) -> Callable[..., Awaitable[httpx.Response]]:
    async def _post(
        payload: dict | None = None,
        event_id: str | None = "evt-001",
        raw_body: bytes | None = None,
        signature: str | None = None,
    ) -> httpx.Response:
        body = raw_body if raw_body is not None else json.dumps(payload or order_payload(1001)).encode()
        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Hmac-Sha256": signature if signature is not None else sign_body(body, SECRET),
            "X-Shopify-Topic": "orders/fulfilled",
            "X-Shopify-Shop-Domain": "demo.myshopify.com",
        }
        if event_id:
            headers["X-Shopify-Event-Id"] = event_id
        return await client.post("/webhooks/shopify", content=body, headers=headers)

    return _post
