"""TALLY — FastAPI Application Entry Point.

Weekly performance self-reporting: submit, review, and analyse.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.database import init_db, test_connection
from app.scheduler.jobs import start_scheduler, stop_scheduler
from app.api.report_routes import router as report_router
from app.api.analytics_routes import router as analytics_router
from app.api.dashboard_routes import router as dashboard_router
from app.core.logging import get_logger

logger = get_logger("main")

IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 TALLY starting up...")
    logger.info(f"🌍 Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    # Test connection first
    db_ok = test_connection()
    if db_ok:
        try:
            init_db()
        except Exception as e:
            logger.error(f"❌ Table creation failed: {e}")
    else:
        logger.error("❌ Database NOT connected — endpoints will fail")
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("TALLY shut down")


app = FastAPI(
    title="TALLY",
    description="Weekly performance reports — submit metrics once a week, track monthly pacing, and chart progress over time.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(report_router)
app.include_router(analytics_router)
app.include_router(dashboard_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "tally",
        "version": "1.0.0",
    }
