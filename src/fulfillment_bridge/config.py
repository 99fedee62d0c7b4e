from enum import StrEnum

from pydantic_settings import BaseSettings


class ShopifyMode(StrEnum):
    REAL = "real"
    MOCK = "mock"


class ImportFormat(StrEnum):
    JSON = "json"
    CSV = "csv"


class Settings(BaseSettings):
    app_version: str = "dev"
    log_level: str = "INFO"
    log_format: str = "pretty"
    db_path: str = "/data/idempotency.db"
    downstream_timeout: float = 30.0

    shopify_shop_domain: str = ""
    shopify_access_token: str = ""
    shopify_webhook_secret: str = ""
    shopify_api_version: str = "2025-10"
    shopify_mode: ShopifyMode = ShopifyMode.REAL
    shopify_mock_default_fulfillment_status: str = "FULFILLED"

    fishbowl_base_url: str = "http://127.0.0.1:2456"
    fishbowl_username: str = ""
    fishbowl_password: str = ""
    fishbowl_app_name: str = "Shopify Fishbowl Fulfillment Bridge"
    fishbowl_app_description: str = "Bridges Shopify fulfillment events to Fishbowl Advanced."
    fishbowl_app_id: int = 9001
    fishbowl_fulfillment_import_name: str = "Shipments"
    fishbowl_import_headers: str = "OrderNumber,TrackingNumber,Carrier,DateShipped"
    fishbowl_import_row_template: str = "$order_number,$tracking_number,$carrier,$ship_date"
    fishbowl_import_format: ImportFormat = ImportFormat.JSON

    smtp_host: str | None = None
    smtp_port: int | None = None
    smtp_user: str | None = None
    smtp_pass: str | None = None
    alert_from_email: str | None = None
    alert_to_email: str | None = None
