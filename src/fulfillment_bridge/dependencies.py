from functools import lru_cache

from fastapi import Request

from fulfillment_bridge.config import Settings
from fulfillment_bridge.orchestrator import Orchestrator
from fulfillment_bridge.store import SQLiteIdempotencyLedger


@lru_cache
def get_settings() -> Settings:
    return Settings()


async def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_ledger(request: Request) -> SQLiteIdempotencyLedger:
    return request.app.state.ledger


async def get_orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator
