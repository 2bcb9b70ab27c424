"""MindCanvas API - FastAPI application entry point.

Invariants:
    - Global error handlers map MindCanvasError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - SQLite databases get their schema created on startup; Postgres is
      migrated with alembic
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from mindcanvas import __version__
from mindcanvas.api.error_handlers import register_error_handlers
from mindcanvas.api.routes import (
    canvas_editing, canvas_enrichment, canvas_export, canvas_lifecycle,
    health, projects,
)
from mindcanvas.api.routes.canvas_helpers import _workspaces
from mindcanvas.config import get_settings
from mindcanvas.infrastructure.database import init_db
from mindcanvas.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Logging and the project store come up first; open canvases drain their
    background enrichments before the engine is disposed."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_url.startswith("sqlite"):
        await manager.create_schema()
    logger.info("MindCanvas API started")
    yield
    for workspace in list(_workspaces.values()):
        await workspace.wait_for_background()
    await manager.engine.dispose()
    logger.info("MindCanvas API shutting down")


app = FastAPI(
    title="MindCanvas API", version=__version__, lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

for router in (
    health.router,
    canvas_lifecycle.router,
    canvas_editing.router,
    canvas_enrichment.router,
    canvas_export.router,
    projects.canvas_router,
    projects.router,
):
    app.include_router(router)

register_error_handlers(app)

# Mounted after API routes so /api/v1/* takes precedence
if os.path.isdir("static"):
    app.mount("/", StaticFiles(directory="static", html=True), name="static")
