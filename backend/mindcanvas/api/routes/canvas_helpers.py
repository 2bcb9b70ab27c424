"""Canvas Route Helpers - workspace registry, dependencies, snapshot rendering.

Invariants:
    - CanvasWorkspace is per-canvas, in-memory (module-level dict)
    - _workspaces is the single source for open canvases
    - One ResilientAnthropicClient per process, created lazily
    - Snapshots drain pending notifications exactly once

Design Decisions:
    - Module-level registry: single-process uvicorn; open canvases are lost on
      restart, saved projects are not
"""

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mindcanvas.config import get_settings
from mindcanvas.core.domain_types import NodeId
from mindcanvas.core.errors import ErrorContext, ResourceNotFoundError
from mindcanvas.core.export_bounds import NodeSizes
from mindcanvas.infrastructure.anthropic_client import ResilientAnthropicClient
from mindcanvas.infrastructure.database import get_db
from mindcanvas.infrastructure.project_repository import SqlProjectStore
from mindcanvas.schemas.canvas import (
    CanvasSnapshot, DeepDiveOut, NotificationOut, PanelOut, ViewportIn,
)
from mindcanvas.schemas.graph import FlowEdge, FlowNode, FlowNodeData, GraphData, XY
from mindcanvas.services.canvas_workspace import CanvasWorkspace, WorkspaceOptions
from mindcanvas.services.mindmap_generation import ClaudeMindmapGenerator
from mindcanvas.services.node_enrichment import ClaudeNodeEnricher

logger = logging.getLogger(__name__)

_workspaces: dict[UUID, CanvasWorkspace] = {}
_anthropic_client: ResilientAnthropicClient | None = None


def _get_anthropic_client() -> ResilientAnthropicClient:
    global _anthropic_client
    if _anthropic_client is None:
        settings = get_settings()
        _anthropic_client = ResilientAnthropicClient(
            api_key=settings.anthropic_api_key,
            max_retries=settings.anthropic_max_retries,
            base_delay_ms=settings.anthropic_base_delay_ms,
            max_delay_ms=settings.anthropic_max_delay_ms,
            timeout_seconds=settings.anthropic_timeout_seconds,
        )
    return _anthropic_client


def create_workspace(canvas_id: UUID) -> CanvasWorkspace:
    """Build a workspace wired to the Claude collaborators and settings."""
    settings = get_settings()
    client = _get_anthropic_client()
    options = WorkspaceOptions(
        sizes=NodeSizes(
            node=(settings.node_width, settings.node_height),
            root=(settings.root_node_width, settings.root_node_height),
        ),
        manual_spread=settings.manual_node_spread,
        export_padding=settings.export_padding,
        export_background=settings.export_background,
    )
    return CanvasWorkspace(
        canvas_id,
        ClaudeMindmapGenerator(
            client, settings.generation_model, settings.generation_max_tokens,
        ),
        ClaudeNodeEnricher(
            client, settings.generation_model, settings.enrichment_max_tokens,
        ),
        options,
    )


def get_workspace_or_404(canvas_id: UUID) -> CanvasWorkspace:
    """FastAPI dependency: the open workspace for canvas_id."""
    workspace = _workspaces.get(canvas_id)
    if workspace is None:
        raise ResourceNotFoundError(
            "Canvas", str(canvas_id), ErrorContext(canvas_id=str(canvas_id)),
        )
    return workspace


async def get_project_store(
    db: AsyncSession = Depends(get_db),
) -> SqlProjectStore:
    settings = get_settings()
    return SqlProjectStore(
        db, quota=settings.project_quota, max_bytes=settings.project_max_bytes,
    )


def panel_view(workspace: CanvasWorkspace) -> PanelOut:
    panel = workspace.panel
    content = None
    if panel.content is not None:
        content = DeepDiveOut(
            angles=list(panel.content.angles),
            headlines=list(panel.content.headlines),
            keywords=list(panel.content.keywords),
        )
    return PanelOut(
        status=panel.status.value,
        node_id=panel.subject_node_id,
        label=panel.subject_label,
        content=content,
    )


def graph_view(workspace: CanvasWorkspace) -> GraphData:
    controller = workspace.controller
    return GraphData(
        nodes=[
            FlowNode(
                id=n.id,
                type=n.kind.value,
                position=XY(x=n.position.x, y=n.position.y),
                data=FlowNodeData(
                    label=n.label,
                    brainstormable=workspace.behaviors.trigger_for(NodeId(n.id)) is not None,
                ),
                selected=n.id == controller.selected_node_id,
            )
            for n in controller.graph.nodes
        ],
        edges=[
            FlowEdge(id=e.id, source=e.source, target=e.target)
            for e in controller.graph.edges
        ],
    )


def snapshot(workspace: CanvasWorkspace) -> CanvasSnapshot:
    """Render the workspace for the client and hand over pending notifications."""
    controller = workspace.controller
    viewport = workspace.viewport
    return CanvasSnapshot(
        id=workspace.id,
        name=workspace.name,
        project_id=workspace.project_id,
        graph=graph_view(workspace),
        viewport=(
            ViewportIn(x=viewport.x, y=viewport.y, zoom=viewport.zoom)
            if viewport else None
        ),
        mode=controller.mode.value,
        draft=controller.draft,
        selected_node_id=controller.selected_node_id,
        dragging_node_id=controller.dragging_node_id,
        pending_layout=controller.has_pending_layout,
        panel=panel_view(workspace),
        notifications=[
            NotificationOut(type=n.type.value, message=n.message, code=n.code)
            for n in workspace.drain_notifications()
        ],
    )
