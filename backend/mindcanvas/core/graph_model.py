"""Graph Data Model - node/edge entities and immutable mutation primitives.

Invariants:
    - Node.id is immutable and unique within a graph
    - Every mutation returns a NEW GraphState; inputs are never modified
    - remove_node cascades: every edge touching the node goes, and only those
    - connect is a no-op unless both endpoints exist
    - Multiple edges between the same pair are allowed (no dedup)

Design Decisions:
    - Frozen dataclasses + tuples: structural sharing, equality by value,
      safe to hand to renderers and the exporter without copying
    - Behavior (enrichment triggers) is NOT stored here; see project_codec.BehaviorTable
"""

from dataclasses import dataclass, replace

from mindcanvas.core.domain_types import EdgeId, NodeId, NodeKind
from mindcanvas.core.errors import InteractionError, ResourceNotFoundError


@dataclass(frozen=True)
class Position:
    x: float
    y: float


@dataclass(frozen=True)
class Viewport:
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0


@dataclass(frozen=True)
class Node:
    """Pure-data node: the persisted shape."""
    id: NodeId
    kind: NodeKind
    label: str
    position: Position


@dataclass(frozen=True)
class Edge:
    """Directed for layout (source is topologically earlier), undirected for rendering."""
    id: EdgeId
    source: NodeId
    target: NodeId


@dataclass(frozen=True)
class GraphState:
    """Snapshot of all nodes and edges on a canvas."""
    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()

    @property
    def node_ids(self) -> set[NodeId]:
        return {n.id for n in self.nodes}

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def get_node(self, node_id: NodeId) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def has_node(self, node_id: NodeId) -> bool:
        return self.get_node(node_id) is not None

    def root(self) -> Node | None:
        for node in self.nodes:
            if node.kind == NodeKind.ROOT:
                return node
        return None


def add_node(graph: GraphState, node: Node) -> GraphState:
    """Append a node. Raises InteractionError if the id is taken."""
    if graph.has_node(node.id):
        raise InteractionError(f"Node id '{node.id}' already exists")
    return replace(graph, nodes=graph.nodes + (node,))


def add_edge(graph: GraphState, edge: Edge) -> GraphState:
    """Append an edge whose endpoints must already exist."""
    ids = graph.node_ids
    for endpoint in (edge.source, edge.target):
        if endpoint not in ids:
            raise ResourceNotFoundError("Node", endpoint)
    return replace(graph, edges=graph.edges + (edge,))


def connect(
    graph: GraphState, source: NodeId, target: NodeId, edge_id: EdgeId,
) -> GraphState:
    """Add source->target if both ids exist; otherwise return graph unchanged."""
    ids = graph.node_ids
    if source not in ids or target not in ids:
        return graph
    return replace(graph, edges=graph.edges + (Edge(edge_id, source, target),))


def update_node_position(
    graph: GraphState, node_id: NodeId, position: Position,
) -> GraphState:
    """Move one node. Raises ResourceNotFoundError for unknown ids."""
    if not graph.has_node(node_id):
        raise ResourceNotFoundError("Node", node_id)
    return replace(graph, nodes=tuple(
        replace(n, position=position) if n.id == node_id else n
        for n in graph.nodes
    ))


def remove_node(graph: GraphState, node_id: NodeId) -> GraphState:
    """Remove a node and every edge that references it."""
    if not graph.has_node(node_id):
        raise ResourceNotFoundError("Node", node_id)
    return GraphState(
        nodes=tuple(n for n in graph.nodes if n.id != node_id),
        edges=tuple(
            e for e in graph.edges
            if e.source != node_id and e.target != node_id
        ),
    )


def remove_edge(graph: GraphState, edge_id: EdgeId) -> GraphState:
    if not any(e.id == edge_id for e in graph.edges):
        raise ResourceNotFoundError("Edge", edge_id)
    return replace(graph, edges=tuple(e for e in graph.edges if e.id != edge_id))


def dangling_edges(nodes: tuple[Node, ...], edges: tuple[Edge, ...]) -> list[EdgeId]:
    """Ids of edges whose source or target is not among nodes."""
    ids = {n.id for n in nodes}
    return [e.id for e in edges if e.source not in ids or e.target not in ids]
