"""
Creator Funnel CRM API - Main Application.

FastAPI application with CORS enabled for frontend communication.

Configuration (environment, optionally from .env):
- LOG_LEVEL: logging level name (default: INFO)
- CORS_ALLOW_ORIGINS: comma-separated origins (default: *)
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="Creator Funnel CRM API",
    description="REST API for tracking leads through the creator monetization funnel",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

_origins = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "creator-funnel-crm-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Creator Funnel CRM API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import analytics, leads, views  # noqa: E402

app.include_router(leads.router, prefix="/api/v1", tags=["Leads"])
app.include_router(analytics.router, prefix="/api/v1", tags=["Analytics"])
app.include_router(views.router, prefix="/api/v1", tags=["Saved Views"])
