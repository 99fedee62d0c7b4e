"""
Locust load tests for the fulfillment bridge.

Run the bridge against the mock Fishbowl server, with Shopify mocked:
    FISHBOWL_MOCK_FAIL_ORDER_NUMBERS=9999 uv run uvicorn fulfillment_bridge.mock_erp:create_mock_erp_app \
        --factory --port 2456
    SHOPIFY_MODE=mock SHOPIFY_WEBHOOK_SECRET=demo-secret DB_PATH=./data/idempotency.db \
        uv run uvicorn fulfillment_bridge.app:create_app --factory --host 0.0.0.0 --port 8000

Headless benchmark (60 s, 50 users, ramp 10/s):
    SHOPIFY_WEBHOOK_SECRET=demo-secret uv run locust -f load_tests/locustfile.py --headless \
        -u 50 -r 10 --run-time 60s --host http://localhost:8000
"""

import json
import os
import random
import uuid

from locust import HttpUser, between, task

from fulfillment_bridge.signature import sign_body

SECRET = os.environ.get("SHOPIFY_WEBHOOK_SECRET", "demo-secret")
SHOP_DOMAIN = os.environ.get("SHOPIFY_SHOP_DOMAIN", "demo.myshopify.com")


def _delivery(order_number: int, event_id: str) -> tuple[bytes, dict[str, str]]:
    body = json.dumps(
        {
            "id": order_number,
            "order_id": order_number,
            "order_number": order_number,
            "admin_graphql_api_id": f"gid://shopify/Order/{order_number}",
            "tracking_number": "1Z999AA10123456784",
            "tracking_company": "UPS",
        }
    ).encode()
    headers = {
        "Content-Type": "application/json",
        "X-Shopify-Hmac-Sha256": sign_body(body, SECRET),
        "X-Shopify-Topic": "orders/fulfilled",
        "X-Shopify-Shop-Domain": SHOP_DOMAIN,
        "X-Shopify-Event-Id": event_id,
    }
    return body, headers


class FulfillmentWebhookUser(HttpUser):
    """Simulates Shopify delivering fresh fulfillment events."""

    wait_time = between(0.05, 0.2)
    weight = 3

    @task
    def post_new_fulfillment(self) -> None:
        body, headers = _delivery(random.randint(1000, 8999), str(uuid.uuid4()))
        self.client.post("/webhooks/shopify", data=body, headers=headers)


class RedeliveryUser(HttpUser):
    """Simulates Shopify retrying the same event (dedup path)."""

    wait_time = between(0.1, 0.5)
    weight = 1

    def on_start(self) -> None:
        self._body, self._headers = _delivery(random.randint(1000, 8999), str(uuid.uuid4()))
        self.client.post("/webhooks/shopify", data=self._body, headers=self._headers)

    @task
    def post_redelivery(self) -> None:
        with self.client.post(
            "/webhooks/shopify", data=self._body, headers=self._headers, catch_response=True
        ) as resp:
            if resp.status_code != 200 or not resp.json().get("dedup"):
                resp.failure("redelivery was not deduplicated")


class HealthCheckUser(HttpUser):
    wait_time = between(0.5, 1.0)
    weight = 1

    @task
    def get_health(self) -> None:
        self.client.get("/health")
