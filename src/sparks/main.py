"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from sparks.ads.router import router as ads_router
from sparks.boosts.router import router as boosts_router
from sparks.coins.router import router as coins_router
from sparks.config import get_settings
from sparks.database import close_db, get_session, init_db
from sparks.gifts.router import router as gifts_router
from sparks.gifts.seed import seed_gift_catalog
from sparks.health.router import router as health_router
from sparks.middleware import setup_middleware
from sparks.redis_client import close_redis, init_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url, settings.db_pool_size, settings.db_max_overflow)
    await init_redis(settings.redis_url)

    # Gift catalog upsert is idempotent
    try:
        async for db in get_session():
            await seed_gift_catalog(db)
            break
    except Exception:
        logger.warning("Gift catalog seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Sparks Economy API",
        description="Internal coin ledger, rewards, boosts and gifting service",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(coins_router)
    app.include_router(ads_router)
    app.include_router(boosts_router)
    app.include_router(gifts_router)

    return app


app = create_app()
