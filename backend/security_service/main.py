"""
Security Service Backend - FastAPI Application

Main entry point for the backend API.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from security_service.core.config import settings
from security_service.api.v1 import router as api_v1_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    # Initialize database
    from security_service.db.database import init_db, close_db
    await init_db()

    # Initialize Redis cache
    from security_service.services.cache.redis_client import init_redis, close_redis
    redis_client = await init_redis()
    if redis_client:
        logger.info("Redis cache connected")
    else:
        logger.info("Redis unavailable - using in-memory cache")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await close_redis()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Security Service API

    ## Derived metrics pipeline
    - **Trading calendar**: weekdays minus exchange holidays
    - **Indicator engine**: SMA, EMA, RSI, ROC, ATR, VMA over daily bars
    - **Normalization**: comparable scores against the latest bar
    - **Metric cache**: Redis read-through cache, invalidated on writes
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
