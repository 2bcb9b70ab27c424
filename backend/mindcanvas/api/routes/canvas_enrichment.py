"""Canvas Enrichment - brainstorm a node into the side panel.

Invariants:
    - POST brainstorm answers 202 with the panel in Loading; the deep dive
      arrives in the background and is read via GET panel or the snapshot
    - Only the latest brainstorm may fill the panel (epoch, last-write-wins)
    - The trigger used is the one bound in the workspace's behavior table
"""

import logging

from fastapi import APIRouter, Depends, status

from mindcanvas.api.routes.canvas_helpers import (
    get_workspace_or_404, panel_view, snapshot,
)
from mindcanvas.core.domain_types import NodeId
from mindcanvas.schemas.canvas import CanvasSnapshot, PanelOut
from mindcanvas.services.canvas_workspace import CanvasWorkspace

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/canvases/{canvas_id}", tags=["enrichment"])


@router.post(
    "/nodes/{node_id}/brainstorm",
    response_model=PanelOut,
    status_code=status.HTTP_202_ACCEPTED,
)
async def brainstorm_node(
    node_id: str, workspace: CanvasWorkspace = Depends(get_workspace_or_404),
):
    """Fire the node's enrichment trigger; the panel opens in Loading."""
    trigger = workspace.trigger_for(NodeId(node_id))
    trigger()
    return panel_view(workspace)


@router.get("/panel", response_model=PanelOut)
async def get_panel(workspace: CanvasWorkspace = Depends(get_workspace_or_404)):
    return panel_view(workspace)


@router.post("/panel/close", response_model=CanvasSnapshot)
async def close_panel(workspace: CanvasWorkspace = Depends(get_workspace_or_404)):
    """Empty the panel; any in-flight result for it is discarded on arrival."""
    workspace.close_panel()
    return snapshot(workspace)
