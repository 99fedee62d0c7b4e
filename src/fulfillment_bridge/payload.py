"""Field extraction from Shopify order and fulfillment webhook payloads."""

from datetime import date
from typing import Any

from fulfillment_bridge.import_row import ShipmentDetails
from fulfillment_bridge.shopify import ORDER_GID_PREFIX, OrderRef, OrderStatus


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def order_ref(payload: dict[str, Any]) -> OrderRef | None:
    # fulfillments/* payloads carry order_id; orders/* payloads are the order itself
    order_id = _as_int(payload.get("order_id"))
    if order_id is not None:
        return OrderRef(order_id=order_id)
    gid = payload.get("admin_graphql_api_id")
    if isinstance(gid, str) and gid.startswith(ORDER_GID_PREFIX):
        return OrderRef(order_id=_as_int(gid.removeprefix(ORDER_GID_PREFIX)), order_gid=gid)
    order_id = _as_int(payload.get("id"))
    if order_id is not None:
        return OrderRef(order_id=order_id)
    return None


def order_number(payload: dict[str, Any], status: OrderStatus | None = None) -> str | None:
    if payload.get("order_number") not in (None, ""):
        return str(payload["order_number"])
    for name in (payload.get("name"), status.display_name if status else None):
        if isinstance(name, str) and name:
            return name.lstrip("#")
    ref = order_ref(payload)
    if ref is not None and ref.order_id is not None:
        return str(ref.order_id)
    return None


def _first_fulfillment(payload: dict[str, Any]) -> dict[str, Any]:
    fulfillments = payload.get("fulfillments")
    if isinstance(fulfillments, list) and fulfillments and isinstance(fulfillments[0], dict):
        return fulfillments[0]
    return {}


def _first_present(*sources: tuple[dict[str, Any], str]) -> str:
    for source, key in sources:
        value = source.get(key)
        if value not in (None, ""):
            return str(value)
    return ""


def shipment_details(
    payload: dict[str, Any],
    status: OrderStatus | None = None,
    today: date | None = None,
) -> ShipmentDetails:
    fulfillment = _first_fulfillment(payload)
    return ShipmentDetails(
        order_number=order_number(payload, status) or "",
        tracking_number=_first_present((payload, "tracking_number"), (fulfillment, "tracking_number")),
        carrier=_first_present((payload, "tracking_company"), (fulfillment, "tracking_company")),
        ship_date=(today or date.today()).isoformat(),
    )
