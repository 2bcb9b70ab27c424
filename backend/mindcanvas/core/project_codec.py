"""Project Codec - persisted shape vs runtime shape of a mind-map project.

Invariants:
    - serialize() emits only {id, kind, label, position} per node; behavior
      never reaches the record
    - deserialize() validates the whole record BEFORE building anything:
      malformed nodes or edges that reference missing node ids raise
      ProjectIntegrityError (no repair, no silent drop)
    - Every node of a deserialized project gets a fresh trigger from the
      factory passed in, i.e. the CURRENT session's enrichment handler
    - Record keys match the stored JSON: createdAt/updatedAt in epoch ms

Design Decisions:
    - BehaviorTable keyed by node id lives beside the pure graph, rebuilt on
      every load and re-synced after structural edits
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from mindcanvas.core.domain_types import EdgeId, NodeId, NodeKind, ProjectId
from mindcanvas.core.errors import ProjectIntegrityError
from mindcanvas.core.graph_model import (
    Edge, GraphState, Node, Position, Viewport, dangling_edges,
)

EnrichTrigger = Callable[[], Awaitable[Any]]
TriggerFactory = Callable[[NodeId], EnrichTrigger]


@dataclass(frozen=True)
class Project:
    """Persisted unit: graph + viewport under one id."""
    id: ProjectId
    name: str
    graph: GraphState
    viewport: Viewport | None
    created_at: int
    updated_at: int


@dataclass
class BehaviorTable:
    """Runtime-only enrichment triggers, one per node id."""
    factory: TriggerFactory
    triggers: dict[NodeId, EnrichTrigger] = field(default_factory=dict)

    @classmethod
    def bind(cls, graph: GraphState, factory: TriggerFactory) -> "BehaviorTable":
        return cls(factory, {n.id: factory(n.id) for n in graph.nodes})

    def sync(self, graph: GraphState) -> None:
        """Add triggers for new nodes, drop triggers of removed ones."""
        ids = graph.node_ids
        for node_id in list(self.triggers):
            if node_id not in ids:
                del self.triggers[node_id]
        for node_id in ids:
            if node_id not in self.triggers:
                self.triggers[node_id] = self.factory(node_id)

    def trigger_for(self, node_id: NodeId) -> EnrichTrigger | None:
        return self.triggers.get(node_id)


@dataclass
class RuntimeProject:
    """Project paired with the behavior table of the session that holds it."""
    project: Project
    behaviors: BehaviorTable


def node_to_record(node: Node) -> dict:
    return {
        "id": node.id,
        "kind": node.kind.value,
        "label": node.label,
        "position": {"x": node.position.x, "y": node.position.y},
    }


def edge_to_record(edge: Edge) -> dict:
    return {"id": edge.id, "source": edge.source, "target": edge.target}


def serialize(runtime: RuntimeProject) -> dict:
    """Storable record; enrichment triggers never appear in it."""
    project = runtime.project
    viewport = project.viewport
    return {
        "id": project.id,
        "name": project.name,
        "nodes": [node_to_record(n) for n in project.graph.nodes],
        "edges": [edge_to_record(e) for e in project.graph.edges],
        "viewport": (
            {"x": viewport.x, "y": viewport.y, "zoom": viewport.zoom}
            if viewport else None
        ),
        "createdAt": project.created_at,
        "updatedAt": project.updated_at,
    }


def deserialize(record: dict, rebind: TriggerFactory) -> RuntimeProject:
    """Rebuild a project from its record and wire fresh triggers to it."""
    project_id = str(record.get("id") or "")
    try:
        nodes = tuple(_node_from_record(n) for n in record.get("nodes") or [])
        edges = tuple(_edge_from_record(e) for e in record.get("edges") or [])
        viewport = _viewport_from_record(record.get("viewport"))
        created_at = int(record.get("createdAt") or 0)
        updated_at = int(record.get("updatedAt") or created_at)
    except (KeyError, TypeError, ValueError) as e:
        raise ProjectIntegrityError(
            f"Project '{project_id}' record is malformed: {e}",
        )

    ids = [n.id for n in nodes]
    if len(ids) != len(set(ids)):
        raise ProjectIntegrityError(
            f"Project '{project_id}' has duplicate node ids",
        )
    dangling = dangling_edges(nodes, edges)
    if dangling:
        raise ProjectIntegrityError(
            f"Project '{project_id}' edges reference missing nodes: "
            f"{', '.join(dangling)}",
            dangling_edges=dangling,
        )

    graph = GraphState(nodes=nodes, edges=edges)
    project = Project(
        id=ProjectId(project_id),
        name=str(record.get("name") or ""),
        graph=graph,
        viewport=viewport,
        created_at=created_at,
        updated_at=updated_at,
    )
    return RuntimeProject(project, BehaviorTable.bind(graph, rebind))


def _node_from_record(data: dict) -> Node:
    position = data["position"]
    return Node(
        id=NodeId(str(data["id"])),
        kind=NodeKind(data.get("kind", NodeKind.MANUAL.value)),
        label=str(data["label"]),
        position=Position(float(position["x"]), float(position["y"])),
    )


def _edge_from_record(data: dict) -> Edge:
    return Edge(
        id=EdgeId(str(data["id"])),
        source=NodeId(str(data["source"])),
        target=NodeId(str(data["target"])),
    )


def _viewport_from_record(data: dict | None) -> Viewport | None:
    if not data:
        return None
    return Viewport(
        float(data["x"]), float(data["y"]), float(data.get("zoom", 1.0)),
    )
