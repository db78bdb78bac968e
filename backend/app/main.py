"""
Campaign Content Engine - FastAPI Application Entry Point
"""
import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import init_db
from .errors import (
    CampaignBusyError,
    CampaignConfigError,
    CampaignError,
    CampaignNotActiveError,
    InvalidTransitionError,
)
from .services.encryption_service import get_token_cipher
from .services.scheduler_service import start_scheduler, stop_scheduler, is_scheduler_running
from .routers import campaigns_router, articles_router

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    CampaignConfigError: 422,
    InvalidTransitionError: 409,
    CampaignBusyError: 409,
    CampaignNotActiveError: 400,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting Campaign Content Engine API...")
    init_db()
    logger.info("Database initialized")
    get_token_cipher()

    if settings.scheduler_enabled:
        start_scheduler()
        logger.info("Campaign scheduler started")

    yield

    # Shutdown
    logger.info("Shutting down Campaign Content Engine API...")
    if is_scheduler_running():
        stop_scheduler()
        logger.info("Campaign scheduler stopped")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Scheduled generation, validation and publishing of e-commerce blog articles",
    version="1.0.0",
    lifespan=lifespan
)

cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
# Add production URLs from environment
if os.getenv("CORS_ORIGINS"):
    cors_origins.extend(os.getenv("CORS_ORIGINS").split(","))

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CampaignError)
async def campaign_error_handler(request: Request, exc: CampaignError):
    """Map campaign errors that escape a route to HTTP responses."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS_CODES.items() if isinstance(exc, error_type)),
        500,
    )
    if status_code == 500:
        logger.error(f"Unhandled campaign error on {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Include routers
app.include_router(campaigns_router)
app.include_router(articles_router)


@app.get("/api")
def api_root():
    """API root endpoint - API info."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "scheduler_running": is_scheduler_running()}
