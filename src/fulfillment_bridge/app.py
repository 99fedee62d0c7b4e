import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from fulfillment_bridge.config import Settings
from fulfillment_bridge.dependencies import get_settings
from fulfillment_bridge.fishbowl import FishbowlClient
from fulfillment_bridge.logging_setup import configure_logging
from fulfillment_bridge.notify import EmailNotifier
from fulfillment_bridge.orchestrator import Orchestrator
from fulfillment_bridge.router import router
from fulfillment_bridge.shopify import build_order_status_provider
from fulfillment_bridge.store import SQLiteIdempotencyLedger

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level, settings.log_format)
        app.state.ready = False
        app.state.ledger = await SQLiteIdempotencyLedger.open(settings.db_path)
        http = httpx.AsyncClient(timeout=settings.downstream_timeout)
        app.state.orchestrator = Orchestrator(
            ledger=app.state.ledger,
            status_provider=build_order_status_provider(settings, http),
            importer=FishbowlClient.from_settings(settings, http),
            notifier=EmailNotifier.from_settings(settings),
            settings=settings,
        )
        app.state.ready = True
        logger.info(
            "Fulfillment bridge ready version=%s shopify_mode=%s db=%s",
            settings.app_version,
            settings.shopify_mode,
            settings.db_path,
        )
        yield
        app.state.ready = False
        await http.aclose()
        await app.state.ledger.close()

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.include_router(router)
    return app
