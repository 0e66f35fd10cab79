"""FastAPI application for Creative Insights.

This module provides the main application setup and router configuration.
All route handlers are organized in the api/routers/ directory.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import creatives_router
from collectors import MediaClient
from config import AppConfig, ConfigManager
from services import MediaFetcher, build_session
from storage import SQLiteStore

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[SQLiteStore] = None,
    fetcher: Optional[MediaFetcher] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Application config. Loaded via ConfigManager when omitted.
        store: Store to serve from. Built from ``config.database`` when omitted.
        fetcher: Fresh media source. A MediaClient from ``config.meta`` when omitted.

    Returns:
        Configured FastAPI application instance.
    """

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        """Application lifespan handler for startup/shutdown."""
        app_config = config or ConfigManager().load_or_default()
        logging.getLogger().setLevel(app_config.log_level.upper())

        app_store = store or SQLiteStore(app_config.database.path)
        await app_store.initialize()

        owned_client: Optional[MediaClient] = None
        media_fetcher = fetcher
        if media_fetcher is None:
            owned_client = MediaClient.from_config(app_config.meta)
            media_fetcher = owned_client

        session = build_session(app_config, app_store, media_fetcher)
        application.state.config = app_config
        application.state.store = app_store
        application.state.session = session

        logger.info("Creative Insights API started")

        yield

        logger.info("Creative Insights API shutting down")
        await session.close()
        if owned_client is not None:
            await owned_client.close()

    application = FastAPI(
        title="Creative Insights",
        description="API for searching ad creatives with aggregated performance metrics",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(creatives_router)

    return application


app = create_app()


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    config = ConfigManager().load_or_default()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        create_app(config=config),
        host=config.api_host,
        port=config.api_port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    run()
