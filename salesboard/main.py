"""
FastAPI application entrypoint for the live sales leaderboard.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from salesboard.api.routes import router
from salesboard.core.config import get_settings
from salesboard.core.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Sales Leaderboard",
        version="0.1.0",
        description="Webhook receiver and live leaderboard feed for Zettle and PayPal sales.",
    )
    app.include_router(router)

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        # Mounted last so the API routes take precedence.
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        logger.info("Static directory %s not found; dashboard not served", static_dir)
    return app


app = create_app()

__all__ = ["app", "create_app"]
