"""FastAPI application factory. No business logic; only wiring and middleware.

Run with: uvicorn portfolio.main:create_app --factory
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from portfolio.api import admin_area
from portfolio.api import router as api_router
from portfolio.core.config import Settings, get_settings
from portfolio.core.database import Database
from portfolio.core.middleware import AdminGuardMiddleware

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """
    Build the app around one validated Settings and one Database handle.

    Settings validation errors (e.g. missing JWT_SECRET) surface here, before
    any request is served.
    """
    if settings is None:
        load_dotenv()
        settings = get_settings()
    if database is None:
        database = Database(settings.DATABASE_URL, echo=settings.DEBUG)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        database.dispose()

    app = FastAPI(
        title="Portfolio Admin API",
        version="0.1.0",
        docs_url="/docs" if settings.APP_ENV == "dev" else None,
        redoc_url=None,
        lifespan=lifespan,
    )
    logging.getLogger("portfolio").setLevel(settings.LOG_LEVEL)
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(AdminGuardMiddleware, settings=settings)

    app.include_router(api_router, prefix="/api")
    app.include_router(admin_area.build_router(settings))

    logger.info(
        "App created: env=%s admin_prefix=%s", settings.APP_ENV, settings.ADMIN_PATH_PREFIX
    )
    return app
