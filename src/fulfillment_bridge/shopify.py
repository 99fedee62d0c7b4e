"""Order fulfillment status lookups against Shopify (live or mocked)."""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from fulfillment_bridge.config import Settings, ShopifyMode
from fulfillment_bridge.errors import DownstreamError

logger = logging.getLogger(__name__)

ORDER_GID_PREFIX = "gid://shopify/Order/"

_ORDER_STATUS_QUERY = """
query ($id: ID!) {
  order(id: $id) {
    id
    name
    displayFulfillmentStatus
  }
}
"""


@dataclass(frozen=True)
class OrderRef:
    order_id: int | None = None
    order_gid: str | None = None

    @property
    def gid(self) -> str:
        if self.order_gid:
            return self.order_gid
        return f"{ORDER_GID_PREFIX}{self.order_id}"


@dataclass(frozen=True)
class OrderStatus:
    gid: str
    display_name: str | None
    fulfillment_status: str | None

    @property
    def is_fulfilled(self) -> bool:
        return (self.fulfillment_status or "").upper() == "FULFILLED"


def _error_message(errors: Any) -> str | None:
    # "errors" is a list of objects for GraphQL failures, a plain string for auth and routing failures
    if not errors:
        return None
    if isinstance(errors, list) and isinstance(errors[0], dict) and errors[0].get("message"):
        return str(errors[0]["message"])
    return str(errors)


class OrderStatusProvider(Protocol):
    async def get_status(self, order: OrderRef) -> OrderStatus: ...


class ShopifyOrderStatusClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        shop_domain: str,
        access_token: str,
        api_version: str = "2025-10",
    ) -> None:
        self._http = http
        self._url = f"https://{shop_domain}/admin/api/{api_version}/graphql.json"
        self._access_token = access_token

    async def _graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._http.post(
                self._url,
                json={"query": query, "variables": variables},
                headers={"X-Shopify-Access-Token": self._access_token},
            )
        except httpx.HTTPError as e:
            raise DownstreamError(f"Shopify GraphQL request failed: {e}") from e
        try:
            body = response.json()
        except ValueError as e:
            raise DownstreamError(f"Shopify GraphQL returned non-JSON (HTTP {response.status_code})") from e
        errors = body.get("errors") if isinstance(body, dict) else None
        if not response.is_success:
            raise DownstreamError(
                f"Shopify GraphQL HTTP {response.status_code}: {_error_message(errors) or response.text}"
            )
        if errors:
            raise DownstreamError(f"Shopify GraphQL error: {_error_message(errors)}")
        return body.get("data") or {}

    async def get_status(self, order: OrderRef) -> OrderStatus:
        data = await self._graphql(_ORDER_STATUS_QUERY, {"id": order.gid})
        node = data.get("order")
        if not node:
            logger.warning("Shopify has no order %s", order.gid)
            return OrderStatus(gid=order.gid, display_name=None, fulfillment_status=None)
        return OrderStatus(
            gid=node.get("id") or order.gid,
            display_name=node.get("name"),
            fulfillment_status=node.get("displayFulfillmentStatus"),
        )


class MockOrderStatusProvider:
    """Trusts the webhook and reports a fixed fulfillment status."""

    def __init__(self, default_status: str = "FULFILLED") -> None:
        self._default_status = default_status

    async def get_status(self, order: OrderRef) -> OrderStatus:
        name = f"#{order.order_id}" if order.order_id is not None else None
        logger.info("Mock Shopify fulfillment status gid=%s status=%s", order.gid, self._default_status)
        return OrderStatus(gid=order.gid, display_name=name, fulfillment_status=self._default_status)


def build_order_status_provider(settings: Settings, http: httpx.AsyncClient) -> OrderStatusProvider:
    if settings.shopify_mode == ShopifyMode.MOCK:
        return MockOrderStatusProvider(settings.shopify_mock_default_fulfillment_status)
    return ShopifyOrderStatusClient(
        http,
        shop_domain=settings.shopify_shop_domain,
        access_token=settings.shopify_access_token,
        api_version=settings.shopify_api_version,
    )
