import pytest

from fulfillment_bridge.errors import ConfigurationError
from fulfillment_bridge.import_row import ShipmentDetails, parse_headers, render_import_row

HEADERS = "OrderNumber,TrackingNumber,Carrier,DateShipped"
TEMPLATE = "$order_number,$tracking_number,$carrier,$ship_date"
DETAILS = ShipmentDetails(
    order_number="1001",
    tracking_number="1Z999AA10123456784",
    carrier="UPS",
    ship_date="2026-10-19",
)


def test_renders_row_in_header_order() -> None:
    headers, row = render_import_row(HEADERS, TEMPLATE, DETAILS)
    assert headers == ["OrderNumber", "TrackingNumber", "Carrier", "DateShipped"]
    assert row == ["1001", "1Z999AA10123456784", "UPS", "2026-10-19"]


def test_headers_are_quote_aware_and_trimmed() -> None:
    assert parse_headers('"Order, Number", Carrier ') == ["Order, Number", "Carrier"]


def test_literal_template_values_are_kept() -> None:
    headers, row = render_import_row("OrderNumber,Location,Note", '$order_number,Main,"Shipped, thanks"', DETAILS)
    assert row == ["1001", "Main", "Shipped, thanks"]


def test_values_with_delimiters_and_quotes_round_trip() -> None:
    details = ShipmentDetails(
        order_number="1001",
        tracking_number='1Z "A"',
        carrier="UPS, Ground",
        ship_date="2026-10-19",
    )
    _, row = render_import_row(HEADERS, TEMPLATE, details)
    assert row == ["1001", '1Z "A"', "UPS, Ground", "2026-10-19"]


def test_value_with_newline_stays_in_one_row() -> None:
    details = ShipmentDetails(order_number="1001", tracking_number="a\nb", carrier="UPS", ship_date="2026-10-19")
    _, row = render_import_row(HEADERS, TEMPLATE, details)
    assert row[1] == "a\nb"


def test_empty_values_keep_column_count() -> None:
    details = ShipmentDetails(order_number="1001", tracking_number="", carrier="", ship_date="2026-10-19")
    _, row = render_import_row(HEADERS, TEMPLATE, details)
    assert row == ["1001", "", "", "2026-10-19"]


def test_count_mismatch_names_both_counts() -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        render_import_row(HEADERS, "$order_number,$tracking_number,$carrier", DETAILS)
    message = str(exc_info.value)
    assert "3" in message
    assert "4" in message


def test_unknown_placeholder_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        render_import_row(HEADERS, "$order_number,$tracking,$carrier,$ship_date", DETAILS)


def test_multi_line_template_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        render_import_row(HEADERS, "$order_number,$tracking_number\n$carrier,$ship_date", DETAILS)
