"""FastAPI application for the campusguard moderation API.

Provides REST API endpoints wrapping the campusguard package for:
- Pre-submission text checks and listing spam scores
- User reports
- Admin review of flagged content, prohibited items and users
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campusguard import __version__
from campusguard.config import load_settings
from campusguard.logging_setup import configure_logging
from web.backend.app.routers import admin, moderation, reports

configure_logging(load_settings().log_level)

app = FastAPI(
    title="campusguard API",
    description=(
        "REST API for campus marketplace content moderation. "
        "Provides endpoints for text checks, spam scoring, user reports, "
        "and admin review of flagged content."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(moderation.router)
app.include_router(reports.router)
app.include_router(admin.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "campusguard API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
