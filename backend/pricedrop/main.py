"""PriceDrop Backend -- FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pricedrop.api.v1.router import api_v1_router
from pricedrop.config import settings
from pricedrop.core.exceptions import PriceDropException
from pricedrop.db.session import async_session_factory, engine
from pricedrop.models import Base
from pricedrop.schemas.common import ErrorDetail, ErrorResponse
from pricedrop.scrapers.register_adapters import register_all_adapters
from pricedrop.scrapers.scheduler import AlertScheduler
from pricedrop.scrapers.utils.browser_manager import get_browser_manager
from pricedrop.services.alert_evaluator import AlertEvaluator

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: Optional[AlertScheduler] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    global scheduler

    # Startup
    logger.info("Starting PriceDrop API server...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables verified/created")
    except Exception as e:
        logger.error(f"Database init failed: {e}", exc_info=True)

    # Register all source adapters
    logger.info("Registering source adapters...")
    register_all_adapters()

    # Start alert scheduler (only in non-test environments)
    if settings.ENVIRONMENT != "test":
        logger.info("Initializing alert scheduler...")
        scheduler = AlertScheduler(AlertEvaluator(async_session_factory))
        scheduler.start()
        app.state.scheduler = scheduler
        logger.info(f"Alert evaluation every {scheduler.interval_minutes} minutes")
    else:
        logger.info("Scheduler disabled (test environment)")

    yield

    # Shutdown
    logger.info("Shutting down PriceDrop API server...")

    if scheduler:
        logger.info("Stopping alert scheduler...")
        scheduler.stop()

    # Stop browser manager (closes Playwright)
    try:
        browser_mgr = get_browser_manager()
        await browser_mgr.stop()
        logger.info("Browser manager stopped")
    except Exception as e:
        logger.warning(f"Error stopping browser manager: {e}")

    await engine.dispose()


app = FastAPI(
    title="PriceDrop API",
    description="Multi-source e-commerce price monitor",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_web_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PriceDropException)
async def pricedrop_exception_handler(request: Request, exc: PriceDropException):
    """Render application errors in the standard error envelope."""
    body = ErrorResponse(error=ErrorDetail(code=exc.__class__.__name__, message=exc.message))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "PriceDrop API",
        "version": "0.1.0",
        "description": "Multi-source e-commerce price monitor",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/v1/health",
    }
