# src/orbit_social/main.py
"""Main entry point for the Orbit Social application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from orbit_social.api.v1 import (
    admin_router,
    auth_router,
    comments_router,
    feed_router,
    notifications_router,
    posts_router,
    users_router,
)
from orbit_social.core.logging import configure_logging
from orbit_social.core.settings import settings
from orbit_social.services.broker import reset_notification_broker

configure_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Orbit Social API",
    description="Social network API with privacy-aware visibility and notifications",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(feed_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    logger.info(
        "Starting %s %s (realtime backend: %s)",
        settings.app_name,
        settings.app_version,
        settings.realtime_backend,
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    reset_notification_broker()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Orbit Social API",
        "version": settings.app_version,
        "description": "Social network API with privacy-aware visibility and notifications",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("orbit_social.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
