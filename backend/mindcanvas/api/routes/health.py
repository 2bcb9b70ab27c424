"""Health Probes - liveness and readiness for the canvas service.

Invariants:
    - Liveness answers 200 whenever the process serves requests
    - Readiness answers 503 while the project store is unreachable
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from mindcanvas import __version__
from mindcanvas.api.routes.canvas_helpers import _workspaces
from mindcanvas.infrastructure import database

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/")
async def liveness():
    return {"status": "healthy", "service": "mindcanvas-api", "version": __version__}


@router.get("/ready")
async def readiness():
    """Project store connectivity plus the number of open canvases."""
    store_ok = database.db_manager is not None and await database.db_manager.health_check()
    if not store_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "open_canvases": len(_workspaces),
    }
