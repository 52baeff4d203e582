"""
SceneIt Backend API - FastAPI application.

Provides endpoints for:
- Per-show watch progress (season/overall percentages, next episode, library status)
- Toggling episodes and attaching journal entries
- Bulk mark/unmark of seasons and shows
- Premiere/finale tags for episodes
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import progress

logger = logging.getLogger(__name__)


def get_cors_origins() -> list[str]:
    """
    Get CORS allowed origins from environment.
    Set CORS_ALLOW_ORIGINS as comma-separated list of origins.
    """
    origins_str = os.getenv("CORS_ALLOW_ORIGINS", "")
    if not origins_str:
        return []
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up SceneIt Backend API...")
    yield
    logger.info("Shutting down SceneIt Backend API...")


app = FastAPI(
    title="SceneIt API",
    description="Watch-progress tracking for TV shows",
    version="0.1.0",
    lifespan=lifespan,
)

# Without explicit origins, allow all but disable credentials
cors_origins = get_cors_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],
    allow_credentials=len(cors_origins) > 0,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(progress.router, prefix="/api/v1")


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "sceneit-backend"}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}
