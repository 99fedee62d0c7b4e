"""Stand-in Fishbowl server for local runs and tests.

    uv run uvicorn fulfillment_bridge.mock_erp:create_mock_erp_app --factory --port 2456

Orders listed in FISHBOWL_MOCK_FAIL_ORDER_NUMBERS make the import endpoint
answer 500, so the failure path of the bridge can be exercised end to end.
"""

import csv
import io
import json
import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class MockErpSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FISHBOWL_MOCK_")

    fail_order_numbers: str = ""
    token: str = "mock-token"

    def fail_set(self) -> set[str]:
        return {number.strip() for number in self.fail_order_numbers.split(",") if number.strip()}


def _order_number(headers: list[Any], row: list[Any]) -> str | None:
    for idx, header in enumerate(headers):
        if str(header).strip().lower() in ("ordernumber", "order_number") and idx < len(row):
            return str(row[idx]) or None
    return None


def _parse_csv(text: str) -> tuple[list[str], list[str]]:
    records = list(csv.reader(io.StringIO(text, newline="")))
    if len(records) < 2:
        return (records[0] if records else []), []
    return records[0], records[1]


def create_mock_erp_app(
    fail_order_numbers: set[str] | None = None,
    token: str | None = None,
) -> FastAPI:
    if fail_order_numbers is None or token is None:
        settings = MockErpSettings()
        fail_order_numbers = settings.fail_set() if fail_order_numbers is None else fail_order_numbers
        token = token or settings.token

    app = FastAPI()
    app.state.requests = {"logins": [], "imports": [], "logouts": 0}

    @app.get("/health")
    async def health() -> dict:
        return {"ok": True, "mock": "fishbowl"}

    @app.get("/__mock/requests")
    async def recorded_requests() -> dict:
        return app.state.requests

    @app.post("/api/login")
    async def login(request: Request) -> dict:
        payload = await request.json()
        payload.pop("password", None)
        app.state.requests["logins"].append({"at": datetime.now(UTC).isoformat(), "payload": payload})
        return {"token": token}

    @app.post("/api/logout")
    async def logout() -> Response:
        app.state.requests["logouts"] += 1
        return Response(status_code=204)

    @app.post("/api/import/{name:path}")
    async def run_import(name: str, request: Request) -> JSONResponse:
        if request.headers.get("Authorization") != f"Bearer {token}":
            return JSONResponse({"message": "Unauthorized (mock)"}, status_code=401)

        content_type = request.headers.get("Content-Type", "")
        body = await request.body()
        if "text/csv" in content_type:
            headers, row = _parse_csv(body.decode("utf-8"))
            detail: dict[str, Any] = {"csv": body.decode("utf-8")}
        else:
            rows = json.loads(body)
            headers, row = (rows[0], rows[1]) if isinstance(rows, list) and len(rows) > 1 else ([], [])
            detail = {"json": rows}

        order_number = _order_number(headers, row)
        received_at = datetime.now(UTC).isoformat()
        app.state.requests["imports"].append(
            {
                "at": received_at,
                "import_name": name,
                "content_type": content_type,
                "order_number": order_number,
                "headers": headers,
                "row": row,
                "detail": detail,
            }
        )
        logger.info("Mock import %s order=%s", name, order_number)

        if order_number and order_number in fail_order_numbers:
            return JSONResponse({"message": f"Mock failure for order {order_number}"}, status_code=500)
        return JSONResponse(
            {"ok": True, "mock": True, "importName": name, "orderNumber": order_number, "receivedAt": received_at}
        )

    return app
