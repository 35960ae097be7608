# main.py
"""
LevelUp AI - Main Application.

FastAPI app turning generative AI output into workout routines, diet plans,
recipes and recommendations.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from database import Database
from settings import settings
from app.dependencies import build_generation_service
from app.routes import generation
from app.schemas.common import ApiResponse
from app.utils.errors import LevelUpException

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize Sentry for error tracking
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        integrations=[
            FastApiIntegration(),
            LoggingIntegration(
                level=logging.INFO,
                event_level=logging.ERROR
            ),
        ],
    )
    logger.info(f"Sentry initialized ({settings.SENTRY_ENVIRONMENT})")
else:
    logger.warning("Sentry DSN not configured - error tracking disabled")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting LevelUp AI...")
    try:
        await Database.connect_db(settings.DATABASE_URL, settings.DATABASE_NAME)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.warning(f"Failed to initialize database at startup: {e}")

    if getattr(app.state, "generation_service", None) is None:
        app.state.generation_service = build_generation_service()

    yield

    # Shutdown: Close MongoDB connection
    await Database.close_db()
    logger.info("LevelUp AI shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="LevelUp AI",
    version="1.0.0",
    description="AI-generated workout routines, diet plans and recommendations",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LevelUpException)
async def levelup_exception_handler(request: Request, exc: LevelUpException):
    """Answer domain errors with the standard failure envelope."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.detail})")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    body = ApiResponse.fail(error=exc.detail, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude={"data"}))


# Health check
@app.get("/health")
async def health_check():
    """Health check endpoint - fast response without database dependency."""
    return {
        "status": "ok",
        "environment": settings.ENV,
        "ai_provider_configured": settings.gemini_configured,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": "1.0.0"
    }


@app.get("/health/detailed")
async def health_check_detailed():
    """Detailed health check with MongoDB connectivity test."""
    try:
        mongo_ok = await Database.ping()
        return {
            "status": "ok" if mongo_ok else "degraded",
            "database": "mongodb",
            "database_connected": mongo_ok,
            "environment": settings.ENV,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": "1.0.0"
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return {
            "status": "error",
            "database": "mongodb",
            "database_connected": False,
            "environment": settings.ENV,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error": str(e)
        }


# Include routers
app.include_router(generation.router)


# Root endpoint
@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "message": "LevelUp AI",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
