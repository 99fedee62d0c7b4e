"""Fishbowl Advanced REST client used to record shipments through an Import."""

import csv
import io
import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from fulfillment_bridge.config import ImportFormat, Settings
from fulfillment_bridge.errors import DownstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportRequest:
    name: str
    headers: list[str]
    row: list[str]
    format: ImportFormat = ImportFormat.JSON


def to_csv(headers: list[str], row: list[str]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    writer.writerow(row)
    return buffer.getvalue()


def _parse_import_response(response: httpx.Response) -> dict[str, Any]:
    # Fishbowl sometimes answers an import with an empty body
    if not response.text:
        return {}
    try:
        return response.json()
    except ValueError:
        return {"raw": response.text}


class ImportSession(Protocol):
    async def run_import(self, request: ImportRequest) -> dict[str, Any]: ...

    async def logout(self) -> None: ...


class FulfillmentImporter(Protocol):
    async def login(self) -> ImportSession: ...


class FishbowlSession:
    """One logged-in Fishbowl session; the token never outlives a request."""

    def __init__(self, http: httpx.AsyncClient, base_url: str, token: str) -> None:
        self._http = http
        self._base_url = base_url
        self._token = token

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    async def run_import(self, request: ImportRequest) -> dict[str, Any]:
        url = f"{self._base_url}/api/import/{quote(request.name, safe='')}"
        headers = self._auth_headers()
        if request.format == ImportFormat.CSV:
            headers["Content-Type"] = "text/csv"
            content = to_csv(request.headers, request.row)
        else:
            headers["Content-Type"] = "application/json"
            content = json.dumps([request.headers, request.row])
        try:
            response = await self._http.post(url, content=content, headers=headers)
        except httpx.HTTPError as e:
            raise DownstreamError(f"Fishbowl import request failed: {e}") from e
        if not response.is_success:
            raise DownstreamError(f"Fishbowl import failed (HTTP {response.status_code}): {response.text}")
        return _parse_import_response(response)

    async def logout(self) -> None:
        try:
            response = await self._http.post(f"{self._base_url}/api/logout", headers=self._auth_headers())
        except httpx.HTTPError as e:
            raise DownstreamError(f"Fishbowl logout request failed: {e}") from e
        if not response.is_success:
            raise DownstreamError(f"Fishbowl logout failed (HTTP {response.status_code})")


class FishbowlClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        username: str,
        password: str,
        app_name: str,
        app_description: str,
        app_id: int,
    ) -> None:
        self._http = http
        # accept both https://host:2456 and https://host:2456/
        self._base_url = base_url.rstrip("/")
        self._login_payload = {
            "appName": app_name,
            "appDescription": app_description,
            "appId": app_id,
            "username": username,
            "password": password,
        }

    @classmethod
    def from_settings(cls, settings: Settings, http: httpx.AsyncClient) -> "FishbowlClient":
        return cls(
            http,
            base_url=settings.fishbowl_base_url,
            username=settings.fishbowl_username,
            password=settings.fishbowl_password,
            app_name=settings.fishbowl_app_name,
            app_description=settings.fishbowl_app_description,
            app_id=settings.fishbowl_app_id,
        )

    async def login(self) -> FishbowlSession:
        try:
            response = await self._http.post(f"{self._base_url}/api/login", json=self._login_payload)
        except httpx.HTTPError as e:
            raise DownstreamError(f"Fishbowl login request failed: {e}") from e
        try:
            body = response.json()
        except ValueError as e:
            raise DownstreamError(f"Fishbowl login returned non-JSON (HTTP {response.status_code})") from e
        if not response.is_success:
            message = body.get("message") if isinstance(body, dict) else None
            raise DownstreamError(f"Fishbowl login failed (HTTP {response.status_code}): {message or response.text}")
        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            raise DownstreamError("Fishbowl login response carried no token")
        logger.debug("Fishbowl login succeeded")
        return FishbowlSession(self._http, self._base_url, token)
