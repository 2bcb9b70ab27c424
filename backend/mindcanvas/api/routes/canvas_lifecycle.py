"""Canvas Lifecycle - open, inspect, close and generate canvases.

Invariants:
    - A canvas exists in _workspaces from POST until DELETE
    - Every mutating endpoint answers with the fresh CanvasSnapshot
    - Generation failures leave the previous graph untouched (GENERATION_FAILED)

Design Decisions:
    - Routes are thin: validation by Pydantic, behavior in CanvasWorkspace
"""

import logging
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, status

from mindcanvas.api.routes.canvas_helpers import (
    _workspaces, create_workspace, get_workspace_or_404, snapshot,
)
from mindcanvas.core.graph_model import Viewport
from mindcanvas.core.repository_protocols import MindmapBrief
from mindcanvas.schemas.canvas import (
    CanvasSnapshot, MindmapRequest, RenameRequest, ViewportIn,
)
from mindcanvas.services.canvas_workspace import CanvasWorkspace

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/canvases", tags=["canvases"])


@router.post(
    "", response_model=CanvasSnapshot, status_code=status.HTTP_201_CREATED,
)
async def create_canvas():
    """Open a new, empty canvas."""
    canvas_id = uuid4()
    workspace = create_workspace(canvas_id)
    _workspaces[canvas_id] = workspace
    logger.info("Canvas opened", extra={"canvas_id": str(canvas_id)})
    return snapshot(workspace)


@router.get("")
async def list_canvases():
    """Open canvases in this process."""
    return {
        "canvases": [
            {
                "id": str(w.id),
                "name": w.name,
                "project_id": w.project_id,
                "node_count": len(w.controller.graph.nodes),
            }
            for w in _workspaces.values()
        ],
    }


@router.get("/{canvas_id}", response_model=CanvasSnapshot)
async def get_canvas(workspace: CanvasWorkspace = Depends(get_workspace_or_404)):
    return snapshot(workspace)


@router.delete("/{canvas_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_canvas(canvas_id: UUID):
    """Close a canvas. Unsaved work is discarded; saved projects are kept."""
    get_workspace_or_404(canvas_id)
    _workspaces.pop(canvas_id, None)
    logger.info("Canvas closed", extra={"canvas_id": str(canvas_id)})


@router.post("/{canvas_id}/generate", response_model=CanvasSnapshot)
async def generate_mindmap(
    body: MindmapRequest,
    workspace: CanvasWorkspace = Depends(get_workspace_or_404),
):
    """Replace the canvas graph with an AI-generated mind map for the topic."""
    await workspace.generate(MindmapBrief(
        topic=body.topic, goal=body.goal,
        audience=body.audience, depth=body.depth,
    ))
    return snapshot(workspace)


@router.put("/{canvas_id}/viewport", response_model=CanvasSnapshot)
async def update_viewport(
    body: ViewportIn,
    workspace: CanvasWorkspace = Depends(get_workspace_or_404),
):
    workspace.set_viewport(Viewport(x=body.x, y=body.y, zoom=body.zoom))
    return snapshot(workspace)


@router.put("/{canvas_id}/name", response_model=CanvasSnapshot)
async def rename_canvas(
    body: RenameRequest,
    workspace: CanvasWorkspace = Depends(get_workspace_or_404),
):
    """Set the project name used by the next save and by export file names."""
    workspace.rename(body.name.strip())
    return snapshot(workspace)
