"""Canvas Workspace - verifies the shell: generation, enrichment, persistence, export.

Tests:
    - Generation replaces the graph; failures keep it; superseded results drop
    - Generation during a drag is applied on drag end
      (or when the dragged node is deleted); repeated generated ids collapse
    - Brainstorm A then B: only B's content is shown
    - A arriving while B is still loading leaves B loading; a crashing
      enricher empties the panel
    - Save/load round-trip rebinds triggers to the loading workspace
    - A generation landing mid-save leaves the canvas unbound
    - Export returns PNG bytes; empty canvas exports nothing; concurrent export refused
"""

import asyncio
import io
import random
import uuid

import pytest
from PIL import Image

from mindcanvas.core.domain_types import CanvasMode, NodeId, NodeKind, PanelStatus, ProjectId
from mindcanvas.core.errors import (
    ExportInProgressError, GenerationError, InteractionError,
    ProjectIntegrityError, ResourceNotFoundError,
)
from mindcanvas.core.graph_model import Position, Viewport
from mindcanvas.core.layout_engine import GeneratedEdge, GeneratedMindmap, GeneratedNode
from mindcanvas.core.repository_protocols import MindmapBrief
from mindcanvas.services.canvas_workspace import CanvasWorkspace


async def _generated(workspace, topic="Healthy Snacks"):
    await workspace.generate(MindmapBrief(topic=topic))
    return workspace


def _messages(workspace):
    return [n.message for n in workspace.drain_notifications()]


# --- Generation -----------------------------------------------------------------

async def test_generate_replaces_graph_and_names_canvas(workspace):
    await _generated(workspace)
    graph = workspace.controller.graph
    assert len(graph.nodes) == 9
    assert len(graph.edges) == 8
    assert graph.root().position == Position(0, 0)
    assert workspace.name == "Healthy Snacks"
    assert workspace.project_id is None
    assert all(workspace.behaviors.trigger_for(n.id) for n in graph.nodes)


async def test_failed_generation_keeps_previous_graph(workspace, generator):
    await _generated(workspace)
    before = workspace.controller.graph
    generator.fail = True
    with pytest.raises(GenerationError):
        await workspace.generate(MindmapBrief(topic="Other"))
    assert workspace.controller.graph is before


async def test_superseded_generation_is_dropped(workspace, generator):
    gate = asyncio.Event()
    generator.gates["Slow"] = gate
    slow = asyncio.create_task(workspace.generate(MindmapBrief(topic="Slow")))
    await asyncio.sleep(0)
    await workspace.generate(MindmapBrief(topic="Fast"))
    gate.set()
    assert await slow is False
    assert workspace.name == "Fast"
    assert workspace.controller.graph.root().label == "Fast"


async def test_generation_during_drag_applies_on_drag_end(workspace):
    await _generated(workspace, "First")
    workspace.start_drag(NodeId("b1"))
    assert await workspace.generate(MindmapBrief(topic="Second")) is False
    assert workspace.controller.graph.root().label == "First"

    assert workspace.end_drag() is True
    assert workspace.controller.graph.root().label == "Second"
    assert workspace.name == "Second"


async def test_deleting_dragged_node_releases_held_generation(workspace):
    await _generated(workspace, "First")
    workspace.start_drag(NodeId("b1"))
    await workspace.generate(MindmapBrief(topic="Second"))

    workspace.remove_node(NodeId("b1"))
    assert workspace.controller.graph.root().label == "Second"
    assert workspace.name == "Second"

    await workspace.generate(MindmapBrief(topic="Third"))
    workspace.start_drag(NodeId("b2"))
    assert workspace.end_drag(NodeId("b2")) is False
    assert workspace.controller.graph.root().label == "Third"


async def test_end_drag_for_another_node_is_illegal(workspace):
    await _generated(workspace)
    workspace.start_drag(NodeId("b1"))
    with pytest.raises(InteractionError):
        workspace.end_drag(NodeId("b2"))
    assert workspace.controller.dragging_node_id == "b1"


async def test_repeated_generated_ids_still_save_and_load(
    workspace, store, generator, enricher,
):
    generator.mindmaps["Dupes"] = GeneratedMindmap(
        nodes=(
            GeneratedNode("root", "root", "Dupes"),
            GeneratedNode("b1", "branch", "B"),
            GeneratedNode("l", "leaf", "L"),
            GeneratedNode("l", "leaf", "L again"),
        ),
        edges=(GeneratedEdge("e1", "root", "b1"), GeneratedEdge("e2", "b1", "l")),
    )
    await _generated(workspace, "Dupes")
    assert [n.id for n in workspace.controller.graph.nodes] == ["root", "b1", "l"]

    await workspace.save(store)
    other = CanvasWorkspace(uuid.uuid4(), generator, enricher, rng=random.Random(1))
    await other.load(store, ProjectId("1700000000000"))
    assert other.controller.graph == workspace.controller.graph


# --- Authoring --------------------------------------------------------------------

async def test_manual_node_gets_trigger_and_notification(workspace):
    await _generated(workspace)
    workspace.drain_notifications()
    workspace.begin_compose()
    workspace.set_draft("Idea X")
    node = workspace.confirm_compose()
    assert node.kind == NodeKind.MANUAL
    assert workspace.behaviors.trigger_for(node.id) is not None
    assert _messages(workspace) == ["Node added"]


async def test_remove_subject_node_closes_panel(workspace):
    await _generated(workspace)
    workspace.start_brainstorm(NodeId("b1"))
    workspace.remove_node(NodeId("b1"))
    assert workspace.panel.status == PanelStatus.EMPTY
    assert workspace.behaviors.trigger_for(NodeId("b1")) is None
    await workspace.wait_for_background()


# --- Enrichment -------------------------------------------------------------------

async def test_brainstorm_loads_panel(workspace):
    await _generated(workspace)
    await workspace.trigger_for(NodeId("b1"))()
    assert workspace.panel.status == PanelStatus.LOADED
    assert workspace.panel.content.angles == ("Healthy Snacks 1 angle",)
    assert workspace.controller.selected_node_id == "b1"


async def test_brainstorm_last_write_wins(workspace, enricher):
    await _generated(workspace)
    gate = asyncio.Event()
    enricher.gates["Healthy Snacks 1"] = gate

    first = workspace.start_brainstorm(NodeId("b1"))
    second = workspace.start_brainstorm(NodeId("b2"))
    await second
    gate.set()
    await first

    assert workspace.panel.subject_node_id == "b2"
    assert workspace.panel.content.angles == ("Healthy Snacks 2 angle",)


async def test_brainstorm_failure_notifies_and_keeps_graph(workspace, enricher):
    await _generated(workspace)
    workspace.drain_notifications()
    before = workspace.controller.graph
    enricher.failing.add("Healthy Snacks 1")
    await workspace.start_brainstorm(NodeId("b1"))
    assert workspace.panel.status == PanelStatus.EMPTY
    assert workspace.controller.graph is before
    assert _messages(workspace) == ["Could not analyze this node"]


async def test_first_result_leaves_later_request_loading(workspace, enricher):
    await _generated(workspace)
    gate_a, gate_b = asyncio.Event(), asyncio.Event()
    enricher.gates["Healthy Snacks 1"] = gate_a
    enricher.gates["Healthy Snacks 2"] = gate_b

    first = workspace.start_brainstorm(NodeId("b1"))
    second = workspace.start_brainstorm(NodeId("b2"))
    gate_a.set()
    await first
    assert workspace.panel.status == PanelStatus.LOADING
    assert workspace.panel.subject_node_id == "b2"
    assert workspace.panel.content is None

    gate_b.set()
    await second
    assert workspace.panel.status == PanelStatus.LOADED
    assert workspace.panel.content.angles == ("Healthy Snacks 2 angle",)


async def test_enricher_crash_empties_panel_with_notification(workspace, enricher):
    await _generated(workspace)
    workspace.drain_notifications()
    enricher.crashing.add("Healthy Snacks 1")
    await workspace.start_brainstorm(NodeId("b1"))
    assert workspace.panel.status == PanelStatus.EMPTY
    assert _messages(workspace) == ["Could not analyze this node"]


async def test_brainstorm_while_composing_is_illegal(workspace):
    await _generated(workspace)
    workspace.begin_compose()
    with pytest.raises(InteractionError):
        workspace.start_brainstorm(NodeId("b1"))


async def test_begin_compose_closes_panel(workspace):
    await _generated(workspace)
    await workspace.start_brainstorm(NodeId("b1"))
    workspace.begin_compose()
    assert workspace.controller.mode == CanvasMode.COMPOSING
    assert workspace.panel.status == PanelStatus.EMPTY


def test_trigger_for_unknown_node(workspace):
    with pytest.raises(ResourceNotFoundError):
        workspace.trigger_for(NodeId("ghost"))


# --- Persistence ------------------------------------------------------------------

async def test_save_empty_canvas_is_noop(workspace, store):
    assert await workspace.save(store) is None
    assert store.records == {}


async def test_first_save_binds_project_id(workspace, store, clock):
    await _generated(workspace)
    project = await workspace.save(store)
    assert project.id == "1700000000000"
    assert workspace.project_id == "1700000000000"
    assert store.records["1700000000000"]["name"] == "Healthy Snacks"
    assert "Project saved" in _messages(workspace)


async def test_resave_keeps_created_at(workspace, store, clock):
    await _generated(workspace)
    await workspace.save(store)
    clock.state["now"] += 5_000
    workspace.move_node(NodeId("b1"), Position(1, 2))
    await workspace.save(store)
    assert list(store.records) == ["1700000000000"]
    record = store.records["1700000000000"]
    assert record["createdAt"] == 1_700_000_000_000
    assert record["updatedAt"] == 1_700_000_005_000


async def test_unnamed_project_gets_dated_name(workspace, store):
    await _generated(workspace)
    workspace.rename("")
    project = await workspace.save(store)
    assert project.name.startswith("Mindmap ")


async def test_load_rebinds_triggers_to_loading_workspace(
    workspace, store, generator, enricher,
):
    await _generated(workspace)
    workspace.set_viewport(Viewport(5, 6, 0.8))
    await workspace.save(store)

    other = CanvasWorkspace(uuid.uuid4(), generator, enricher, rng=random.Random(1))
    await other.load(store, ProjectId("1700000000000"))

    assert other.controller.graph == workspace.controller.graph
    assert other.viewport == Viewport(5, 6, 0.8)
    assert other.project_id == "1700000000000"
    await other.trigger_for(NodeId("b1"))()
    assert other.panel.status == PanelStatus.LOADED
    assert workspace.panel.status == PanelStatus.EMPTY


async def test_load_missing_project(workspace, store):
    with pytest.raises(ResourceNotFoundError):
        await workspace.load(store, ProjectId("nope"))


async def test_load_corrupt_project_keeps_canvas(workspace, store):
    await _generated(workspace)
    before = workspace.controller.graph
    store.records["bad"] = {
        "id": "bad", "name": "Bad", "nodes": [],
        "edges": [{"id": "e", "source": "a", "target": "b"}],
        "viewport": None, "createdAt": 1, "updatedAt": 1,
    }
    with pytest.raises(ProjectIntegrityError):
        await workspace.load(store, ProjectId("bad"))
    assert workspace.controller.graph is before


async def test_generation_during_save_leaves_canvas_unbound(workspace, store):
    await _generated(workspace, "Old")
    store.upsert_gate = asyncio.Event()
    saving = asyncio.create_task(workspace.save(store))
    await store.upserting.wait()

    await workspace.generate(MindmapBrief(topic="New"))
    store.upsert_gate.set()
    await saving

    assert store.records["1700000000000"]["name"] == "Old"
    assert workspace.name == "New"
    assert workspace.project_id is None


# --- Export -----------------------------------------------------------------------

async def test_export_png(workspace):
    await _generated(workspace)
    workspace.rename("Snacks")
    artifact = await workspace.export_png()
    assert artifact.filename == "mindmap-Snacks.png"
    assert artifact.media_type == "image/png"
    image = Image.open(io.BytesIO(artifact.content))
    assert image.format == "PNG"
    assert image.size == (artifact.width, artifact.height)


async def test_export_empty_canvas_returns_none(workspace):
    assert await workspace.export_png() is None


async def test_concurrent_export_refused(workspace):
    await _generated(workspace)
    async with workspace._export_lock:
        with pytest.raises(ExportInProgressError):
            await workspace.export_png()
