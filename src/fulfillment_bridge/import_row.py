"""Rendering of the Fishbowl import row from configuration and webhook data.

The header list and the row template are plain CSV text. Template
placeholders use ``string.Template`` syntax (``$order_number``,
``$tracking_number``, ``$carrier``, ``$ship_date``); substituted values are
CSV-escaped, so placeholders must not be wrapped in quotes by the template.
"""

import csv
import io
from dataclasses import asdict, dataclass
from string import Template

from fulfillment_bridge.errors import ConfigurationError


@dataclass(frozen=True)
class ShipmentDetails:
    order_number: str
    tracking_number: str
    carrier: str
    ship_date: str


def _csv_escape(value: str) -> str:
    if any(ch in value for ch in ',"\r\n'):
        return '"' + value.replace('"', '""') + '"'
    return value


def _parse_records(text: str) -> list[list[str]]:
    return [record for record in csv.reader(io.StringIO(text, newline="")) if record]


def parse_headers(headers_text: str) -> list[str]:
    records = _parse_records(headers_text)
    if len(records) != 1:
        raise ConfigurationError(f"Import headers must be a single CSV line, got {len(records)}")
    return [header.strip() for header in records[0]]


def render_import_row(headers_text: str, row_template: str, details: ShipmentDetails) -> tuple[list[str], list[str]]:
    headers = parse_headers(headers_text)
    variables = {key: _csv_escape(value) for key, value in asdict(details).items()}
    try:
        rendered = Template(row_template).substitute(variables)
    except (KeyError, ValueError) as e:
        raise ConfigurationError(f"Invalid import row template: {e}") from e

    records = _parse_records(rendered)
    if len(records) != 1:
        raise ConfigurationError(f"Import row template must render exactly one row, got {len(records)}")
    row = records[0]
    if len(row) != len(headers):
        raise ConfigurationError(
            f"Import row template rendered {len(row)} values but {len(headers)} headers are configured"
        )
    return headers, row
