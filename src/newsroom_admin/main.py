# src/newsroom_admin/main.py
"""Reference REST API backing the newsroom admin console."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from newsroom_admin.api.v1 import communities_router, community_content_router, users_router
from newsroom_admin.core.settings import settings
from newsroom_admin.db.session import create_tables

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Newsroom Admin API",
    description="Community onboarding and verification API for the admin console",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(users_router, prefix="/api/v1")
app.include_router(communities_router, prefix="/api/v1")
app.include_router(community_content_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    create_tables()
    logger.info("%s API ready", settings.app_name)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Newsroom Admin API",
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("newsroom_admin.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
