"""Canvas Editing - manual authoring, connections, drag and selection.

Invariants:
    - Every mutation goes through CanvasWorkspace -> CanvasController
    - Illegal transitions (compose twice, select while composing) answer
      409 ILLEGAL_TRANSITION
    - Unknown node or edge ids answer 404 RESOURCE_NOT_FOUND
"""

import logging

from fastapi import APIRouter, Depends

from mindcanvas.api.routes.canvas_helpers import get_workspace_or_404, snapshot
from mindcanvas.core.domain_types import EdgeId, NodeId
from mindcanvas.core.graph_model import Position
from mindcanvas.schemas.canvas import (
    CanvasSnapshot, ConnectRequest, DraftUpdate, PositionUpdate,
)
from mindcanvas.services.canvas_workspace import CanvasWorkspace

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/canvases/{canvas_id}", tags=["editing"])


# --- Manual node composition --------------------------------------------------

@router.post("/compose", response_model=CanvasSnapshot)
async def begin_compose(workspace: CanvasWorkspace = Depends(get_workspace_or_404)):
    """Enter Composing mode with an empty draft."""
    workspace.begin_compose()
    return snapshot(workspace)


@router.put("/compose", response_model=CanvasSnapshot)
async def update_draft(
    body: DraftUpdate,
    workspace: CanvasWorkspace = Depends(get_workspace_or_404),
):
    workspace.set_draft(body.label)
    return snapshot(workspace)


@router.post("/compose/confirm", response_model=CanvasSnapshot)
async def confirm_compose(workspace: CanvasWorkspace = Depends(get_workspace_or_404)):
    """Add the drafted node. A blank draft just leaves Composing mode."""
    workspace.confirm_compose()
    return snapshot(workspace)


@router.post("/compose/cancel", response_model=CanvasSnapshot)
async def cancel_compose(workspace: CanvasWorkspace = Depends(get_workspace_or_404)):
    workspace.cancel_compose()
    return snapshot(workspace)


# --- Structure ----------------------------------------------------------------

@router.post("/edges", response_model=CanvasSnapshot)
async def connect_nodes(
    body: ConnectRequest,
    workspace: CanvasWorkspace = Depends(get_workspace_or_404),
):
    """Connect source -> target. Missing endpoints leave the graph unchanged."""
    workspace.connect(NodeId(body.source), NodeId(body.target))
    return snapshot(workspace)


@router.delete("/edges/{edge_id}", response_model=CanvasSnapshot)
async def delete_edge(
    edge_id: str, workspace: CanvasWorkspace = Depends(get_workspace_or_404),
):
    workspace.remove_edge(EdgeId(edge_id))
    return snapshot(workspace)


@router.delete("/nodes/{node_id}", response_model=CanvasSnapshot)
async def delete_node(
    node_id: str, workspace: CanvasWorkspace = Depends(get_workspace_or_404),
):
    """Remove a node and every edge touching it."""
    workspace.remove_node(NodeId(node_id))
    return snapshot(workspace)


# --- Drag -----------------------------------------------------------------------

@router.post("/nodes/{node_id}/drag/start", response_model=CanvasSnapshot)
async def start_drag(
    node_id: str, workspace: CanvasWorkspace = Depends(get_workspace_or_404),
):
    workspace.start_drag(NodeId(node_id))
    return snapshot(workspace)


@router.patch("/nodes/{node_id}/position", response_model=CanvasSnapshot)
async def move_node(
    node_id: str,
    body: PositionUpdate,
    workspace: CanvasWorkspace = Depends(get_workspace_or_404),
):
    workspace.move_node(NodeId(node_id), Position(x=body.x, y=body.y))
    return snapshot(workspace)


@router.post("/nodes/{node_id}/drag/end", response_model=CanvasSnapshot)
async def end_drag(
    node_id: str, workspace: CanvasWorkspace = Depends(get_workspace_or_404),
):
    """Finish the drag of node_id (409 if another node is being dragged);
    a generation held during the drag is applied now."""
    workspace.end_drag(NodeId(node_id))
    return snapshot(workspace)


# --- Selection ------------------------------------------------------------------

@router.post("/nodes/{node_id}/select", response_model=CanvasSnapshot)
async def select_node(
    node_id: str, workspace: CanvasWorkspace = Depends(get_workspace_or_404),
):
    workspace.select(NodeId(node_id))
    return snapshot(workspace)


@router.post("/selection/clear", response_model=CanvasSnapshot)
async def clear_selection(workspace: CanvasWorkspace = Depends(get_workspace_or_404)):
    workspace.clear_selection()
    return snapshot(workspace)
