"""Saved Projects - save/load a canvas and manage the project list.

Invariants:
    - Save upserts by the canvas' bound project id; the first save binds it
    - Save of an empty canvas is a no-op (snapshot returned, nothing stored)
    - Load replaces the canvas graph and rebinds every enrichment trigger to
      that canvas; a corrupt record is refused with 422 PROJECT_INTEGRITY
    - Deleting a project never touches open canvases
"""

import logging

from fastapi import APIRouter, Depends, status

from mindcanvas.api.routes.canvas_helpers import (
    get_project_store, get_workspace_or_404, snapshot,
)
from mindcanvas.core.domain_types import ProjectId
from mindcanvas.core.errors import ErrorContext, ResourceNotFoundError
from mindcanvas.infrastructure.project_repository import SqlProjectStore
from mindcanvas.schemas.canvas import CanvasSnapshot
from mindcanvas.schemas.project import ProjectList, ProjectSummary
from mindcanvas.services.canvas_workspace import CanvasWorkspace

logger = logging.getLogger(__name__)
canvas_router = APIRouter(prefix="/api/v1/canvases/{canvas_id}", tags=["projects"])
router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@canvas_router.post("/save", response_model=CanvasSnapshot)
async def save_canvas(
    workspace: CanvasWorkspace = Depends(get_workspace_or_404),
    store: SqlProjectStore = Depends(get_project_store),
):
    await workspace.save(store)
    return snapshot(workspace)


@canvas_router.post("/load/{project_id}", response_model=CanvasSnapshot)
async def load_project(
    project_id: str,
    workspace: CanvasWorkspace = Depends(get_workspace_or_404),
    store: SqlProjectStore = Depends(get_project_store),
):
    await workspace.load(store, ProjectId(project_id))
    return snapshot(workspace)


@router.get("", response_model=ProjectList)
async def list_projects(store: SqlProjectStore = Depends(get_project_store)):
    """Saved projects, most recently updated first."""
    records = await store.list()
    return ProjectList(projects=[ProjectSummary.from_record(r) for r in records])


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str, store: SqlProjectStore = Depends(get_project_store),
):
    if await store.get(project_id) is None:
        raise ResourceNotFoundError(
            "Project", project_id, ErrorContext(project_id=project_id),
        )
    await store.delete(project_id)
    logger.info("Project deleted", extra={"project_id": project_id})
