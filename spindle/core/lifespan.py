"""Application lifespan: startup and shutdown.

Only infrastructure wiring lives here (logging, DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from spindle.core.config import get_settings
from spindle.infrastructure.persistence.database import dispose_engine
from spindle.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging on startup; dispose the SQL engine on shutdown."""
    settings = get_settings()
    setup_logging()
    if not settings.database_url:
        logger.warning("DATABASE_URL is not set; content operations are unavailable")
    logger.info("%s %s started", settings.app_name, settings.app_version)
    if not settings.telemetry_enabled:
        logger.info("Tracing disabled; traced operations run without spans")

    yield

    await dispose_engine()
    logger.info("Database engine disposed")
