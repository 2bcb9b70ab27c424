"""Canvas Workspace - imperative shell around one open mind-map canvas.

Invariants:
    - All graph mutations go through CanvasController, on the event loop,
      synchronously; awaits happen only around AI calls, store IO and export
    - Generation is last-write-wins: a result whose epoch was superseded by a
      newer generate() is dropped; a failed generation leaves the graph as is
    - A save binds the canvas to its project only if no generation or load
      replaced the graph while the store was writing
    - An enrichment that fails in any way leaves the panel empty with a
      notification, never stuck in Loading
    - Enrichment triggers in the behavior table are bound to THIS workspace;
      loading a project rebinds every node to this workspace's handler
    - At most one export rasterizes at a time; a concurrent request is refused
    - Failures never corrupt in-memory state: errors are raised or turned
      into notifications before anything is replaced

Design Decisions:
    - Functional core (canvas_state, layout_engine, enrichment_panel,
      project_codec, export_bounds) driven from here; this is the only
      module in the request path that awaits
    - Background enrichment runs as an asyncio.Task held in _tasks so the
      HTTP call can return the Loading panel immediately
"""

import asyncio
import logging
import random
import time
from collections import deque
from dataclasses import dataclass
from datetime import date
from functools import partial
from typing import Callable
from uuid import UUID

from mindcanvas.core.canvas_state import CanvasController
from mindcanvas.core.domain_types import (
    CanvasId, EdgeId, NodeId, NotificationType, ProjectId,
)
from mindcanvas.core.enrichment_panel import EnrichmentPanel, EnrichmentTicket
from mindcanvas.core.errors import (
    EmptyExportError, EnrichmentError, ErrorContext, ExportInProgressError,
    GenerationError, InteractionError, MindCanvasError, ResourceNotFoundError,
)
from mindcanvas.core.export_bounds import (
    NodeSizes, compute_bounds, export_filename, plan_export,
)
from mindcanvas.core.graph_model import Edge, Node, Position, Viewport
from mindcanvas.core.layout_engine import compute_layout
from mindcanvas.core.project_codec import (
    BehaviorTable, Project, RuntimeProject, deserialize, serialize,
)
from mindcanvas.core.repository_protocols import (
    MindmapBrief, MindmapGenerator, NodeEnricher, ProjectStore,
)
from mindcanvas.services.export_renderer import ExportArtifact, render_png

logger = logging.getLogger(__name__)

_MAX_NOTIFICATIONS = 20


@dataclass(frozen=True)
class Notification:
    type: NotificationType
    message: str
    code: str | None = None


@dataclass(frozen=True)
class WorkspaceOptions:
    """Geometry and export settings for a workspace (see config.Settings)."""
    sizes: NodeSizes = NodeSizes()
    manual_spread: float = 400.0
    export_padding: float = 50.0
    export_background: str = "#F8FAFC"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class CanvasWorkspace:
    """One user's open canvas: graph, authoring state, panel, project binding."""

    def __init__(
        self,
        canvas_id: UUID,
        generator: MindmapGenerator,
        enricher: NodeEnricher,
        options: WorkspaceOptions | None = None,
        *,
        rng: random.Random | None = None,
        now_ms: Callable[[], int] = _epoch_ms,
    ):
        self.id = CanvasId(canvas_id)
        self.options = options or WorkspaceOptions()
        self.controller = CanvasController(
            manual_spread=self.options.manual_spread,
            node_size=self.options.sizes.node,
            root_size=self.options.sizes.root,
            rng=rng,
            now_ms=now_ms,
        )
        self.panel = EnrichmentPanel()
        self.behaviors = BehaviorTable.bind(self.controller.graph, self._enrichment_trigger)
        self.name = ""
        self.project_id: ProjectId | None = None
        self.viewport: Viewport | None = None
        self.notifications: deque[Notification] = deque(maxlen=_MAX_NOTIFICATIONS)
        self._generator = generator
        self._enricher = enricher
        self._now_ms = now_ms
        self._generation_epoch = 0
        self._binding_epoch = 0
        self._pending_topic: str | None = None
        self._export_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    # --- Notifications ---------------------------------------------------------

    def notify(
        self, type: NotificationType, message: str, code: str | None = None,
    ) -> None:
        self.notifications.append(Notification(type, message, code))

    def drain_notifications(self) -> list[Notification]:
        drained = list(self.notifications)
        self.notifications.clear()
        return drained

    def _context(self, **kwargs) -> ErrorContext:
        return ErrorContext(canvas_id=str(self.id), **kwargs)

    def _log_extra(self, **kwargs) -> dict:
        return {"canvas_id": str(self.id), **kwargs}

    # --- Generation ------------------------------------------------------------

    async def generate(self, brief: MindmapBrief) -> bool:
        """Replace the graph with a freshly generated, laid-out one.

        Returns True if applied now, False if held until the current drag
        ends. Raises GenerationError (graph untouched) on failure; a result
        superseded by a newer generate() raises nothing and changes nothing.
        """
        self._generation_epoch += 1
        epoch = self._generation_epoch
        try:
            mindmap = await self._generator.generate(brief)
        except GenerationError as e:
            e.context.canvas_id = str(self.id)
            logger.warning(
                f"Generation failed: {e.message}",
                extra=self._log_extra(error_code=e.code),
            )
            raise

        if epoch != self._generation_epoch:
            logger.info(
                "Discarding superseded generation", extra=self._log_extra(),
            )
            return False

        graph = compute_layout(mindmap)
        if graph.is_empty:
            raise GenerationError(
                "Generated mind map has no root node",
                self._context(user_message="Could not build a mind map for this topic"),
            )

        applied = self.controller.apply_generation(graph)
        if applied:
            self._pending_topic = None
            self._after_generation(brief.topic)
        else:
            self._pending_topic = brief.topic
        logger.info(
            f"Generated {len(graph.nodes)} nodes / {len(graph.edges)} edges"
            f"{'' if applied else ' (held until drag ends)'}",
            extra=self._log_extra(),
        )
        return applied

    def _after_generation(self, topic: str) -> None:
        self._binding_epoch += 1
        self.behaviors = BehaviorTable.bind(self.controller.graph, self._enrichment_trigger)
        self.project_id = None
        self.name = topic
        self.viewport = None
        self.panel.close()

    # --- Authoring -------------------------------------------------------------

    def begin_compose(self) -> None:
        self.controller.begin_compose()
        self.panel.close()

    def set_draft(self, label: str) -> None:
        self.controller.set_draft(label)

    def confirm_compose(self) -> Node | None:
        node = self.controller.confirm_compose()
        if node is not None:
            self.behaviors.sync(self.controller.graph)
            self.notify(NotificationType.SUCCESS, "Node added")
        return node

    def cancel_compose(self) -> None:
        self.controller.cancel_compose()

    def connect(self, source: NodeId, target: NodeId) -> Edge | None:
        return self.controller.connect(source, target)

    def remove_node(self, node_id: NodeId) -> None:
        if self.controller.remove_node(node_id):
            self._release_held_generation()
            return
        self.behaviors.sync(self.controller.graph)
        if self.panel.subject_node_id == node_id:
            self.panel.close()

    def remove_edge(self, edge_id: EdgeId) -> None:
        self.controller.remove_edge(edge_id)

    def start_drag(self, node_id: NodeId) -> None:
        self.controller.start_drag(node_id)

    def move_node(self, node_id: NodeId, position: Position) -> None:
        self.controller.move_node(node_id, position)

    def end_drag(self, node_id: NodeId | None = None) -> bool:
        applied = self.controller.end_drag(node_id)
        if applied:
            self._release_held_generation()
        return applied

    def _release_held_generation(self) -> None:
        self._after_generation(self._pending_topic or self.name)
        self._pending_topic = None

    def select(self, node_id: NodeId) -> None:
        self.controller.select(node_id)

    def clear_selection(self) -> None:
        self.controller.clear_selection()

    def set_viewport(self, viewport: Viewport) -> None:
        self.viewport = viewport

    def rename(self, name: str) -> None:
        self.name = name

    # --- Enrichment ------------------------------------------------------------

    def _enrichment_trigger(self, node_id: NodeId):
        return partial(self.start_brainstorm, node_id)

    def trigger_for(self, node_id: NodeId):
        trigger = self.behaviors.trigger_for(node_id)
        if trigger is None:
            raise ResourceNotFoundError("Node", node_id, self._context(node_id=node_id))
        return trigger

    def start_brainstorm(self, node_id: NodeId) -> asyncio.Task:
        """Open the panel on node_id (Loading) and fetch its deep dive in the background."""
        if self.controller.draft is not None:
            raise InteractionError(
                "Finish or cancel the new node first", self._context(node_id=node_id),
            )
        node = self.controller.graph.get_node(node_id)
        if node is None:
            raise ResourceNotFoundError("Node", node_id, self._context(node_id=node_id))
        self.controller.select(node_id)
        ticket = self.panel.open(node_id, node.label)
        task = asyncio.create_task(self._run_enrichment(ticket))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_enrichment(self, ticket: EnrichmentTicket) -> None:
        extra = self._log_extra(node_id=ticket.node_id)
        try:
            content = await self._enricher.enrich(ticket.label)
        except EnrichmentError as e:
            logger.warning(f"Enrichment failed: {e.message}", extra=extra)
            self._fail_enrichment(ticket, e)
            return
        except Exception as e:
            logger.error(
                f"Enricher crashed: {type(e).__name__}: {e}", exc_info=True, extra=extra,
            )
            self._fail_enrichment(
                ticket,
                EnrichmentError(
                    "Could not analyze this node", self._context(node_id=ticket.node_id),
                ),
            )
            return
        if self.panel.resolve(ticket, content, self.controller.selected_node_id):
            logger.info("Enrichment loaded", extra=extra)
        else:
            logger.info("Discarding stale enrichment result", extra=extra)

    def _fail_enrichment(self, ticket: EnrichmentTicket, error: EnrichmentError) -> None:
        if self.panel.fail(ticket):
            note = error.to_notification()
            self.notify(NotificationType.ERROR, note["message"], note["code"])

    def close_panel(self) -> None:
        self.panel.close()

    async def wait_for_background(self) -> None:
        """Await in-flight enrichment tasks (shutdown and tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # --- Persistence -----------------------------------------------------------

    async def save(self, store: ProjectStore) -> Project | None:
        """Upsert the current graph. None (no-op) when the canvas is empty."""
        graph = self.controller.graph
        if graph.is_empty:
            return None
        now = self._now_ms()
        project_id = self.project_id or ProjectId(str(now))
        binding_epoch = self._binding_epoch
        name, viewport, behaviors = self.name, self.viewport, self.behaviors
        existing = await store.get(project_id) if self.project_id else None
        project = Project(
            id=project_id,
            name=name.strip() or f"Mindmap {date.today().isoformat()}",
            graph=graph,
            viewport=viewport,
            created_at=existing["createdAt"] if existing else now,
            updated_at=now,
        )
        extra = self._log_extra(project_id=project_id)
        try:
            await store.upsert(serialize(RuntimeProject(project, behaviors)))
        except MindCanvasError as e:
            logger.warning(f"Save failed: {e.message}", extra={**extra, "error_code": e.code})
            raise
        if binding_epoch == self._binding_epoch:
            self.project_id = project_id
        else:
            logger.info(
                "Canvas was replaced while saving; project left unbound", extra=extra,
            )
        self.notify(NotificationType.SUCCESS, "Project saved")
        logger.info(f"Saved project '{project.name}'", extra=extra)
        return project

    async def load(self, store: ProjectStore, project_id: ProjectId) -> Project:
        """Replace the canvas with a saved project, rebinding every trigger here."""
        record = await store.get(project_id)
        if record is None:
            raise ResourceNotFoundError(
                "Project", project_id, self._context(project_id=project_id),
            )
        runtime = deserialize(record, self._enrichment_trigger)
        project = runtime.project

        self._generation_epoch += 1
        self._binding_epoch += 1
        self.controller.load(project.graph)
        self.behaviors = runtime.behaviors
        self.name = project.name
        self.project_id = project.id
        self.viewport = project.viewport
        self.panel.close()
        self.notify(NotificationType.SUCCESS, f'Loaded "{project.name}"')
        logger.info(
            f"Loaded project '{project.name}'",
            extra=self._log_extra(project_id=project.id),
        )
        return project

    # --- Export ----------------------------------------------------------------

    async def export_png(self) -> ExportArtifact | None:
        """Rasterize the graph. None (no-op) for an empty graph.

        Raises ExportInProgressError if another export is running and
        ExportError if rasterization fails.
        """
        if self._export_lock.locked():
            raise ExportInProgressError(self._context())
        async with self._export_lock:
            graph = self.controller.graph
            sizes = self.options.sizes
            try:
                plan = plan_export(
                    compute_bounds(graph.nodes, sizes.of),
                    self.options.export_padding,
                )
            except EmptyExportError:
                logger.info("Export skipped: empty graph", extra=self._log_extra())
                return None
            content = await asyncio.to_thread(
                render_png, graph, plan, sizes, self.options.export_background,
            )
        self.notify(NotificationType.SUCCESS, "Export ready")
        logger.info(
            f"Exported {plan.width}x{plan.height} PNG", extra=self._log_extra(),
        )
        return ExportArtifact(
            filename=export_filename(self.name),
            content=content,
            width=plan.width,
            height=plan.height,
        )
