"""Layout Engine - single-pass tree placement for a generated root/branch/leaf graph.

Invariants:
    - Root at (0, 0)
    - Branches at x = BRANCH_X, stacked BRANCH_SPACING_Y apart, centered on root.y
    - Leaves of a branch at x = branch.x + LEAF_X_OFFSET, LEAF_SPACING_Y apart,
      centered on that branch's y
    - Same structure in, bit-identical coordinates out (no randomness, no iteration)
    - No root in the input -> empty GraphState; the caller reports the error
    - Each node id is placed at most once: a repeated id keeps its first
      occurrence, and a leaf claimed by two branches stays with the first
      branch in input order
    - Edge ids are unique in the result; a repeated edge id keeps the first

Design Decisions:
    - Pure function over the flat generation payload: runs only on a fresh
      generation, never on manual edits or loaded projects
    - Edges whose endpoints were not placed are dropped so the resulting graph
      always satisfies the project edge invariant
"""

import logging
from dataclasses import dataclass, field

from mindcanvas.core.domain_types import (
    BRANCH_SPACING_Y, BRANCH_X, LEAF_SPACING_Y, LEAF_X_OFFSET,
    EdgeId, NodeId, NodeKind,
)
from mindcanvas.core.graph_model import Edge, GraphState, Node, Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedNode:
    id: str
    type: str
    label: str


@dataclass(frozen=True)
class GeneratedEdge:
    id: str
    source: str
    target: str


@dataclass(frozen=True)
class GeneratedMindmap:
    """Flat payload returned by the generation collaborator."""
    nodes: tuple[GeneratedNode, ...] = ()
    edges: tuple[GeneratedEdge, ...] = ()


@dataclass
class TreeStructure:
    """Root, ordered branches, and the ordered leaves of each branch."""
    root: GeneratedNode
    branches: list[GeneratedNode] = field(default_factory=list)
    leaves: dict[str, list[GeneratedNode]] = field(default_factory=dict)


def column_offsets(count: int, spacing: float) -> list[float]:
    """Offsets of `count` items spaced `spacing` apart, centered on zero."""
    start = -((count - 1) * spacing) / 2
    return [start + i * spacing for i in range(count)]


def first_by_id(items):
    """Items in input order with repeated ids removed (first one wins)."""
    seen: set[str] = set()
    kept = []
    for item in items:
        if item.id not in seen:
            seen.add(item.id)
            kept.append(item)
    return kept


def classify(mindmap: GeneratedMindmap) -> TreeStructure | None:
    """Split the flat payload into root, branches, and per-branch leaves."""
    nodes = first_by_id(mindmap.nodes)
    root = next((n for n in nodes if n.type == NodeKind.ROOT.value), None)
    if root is None:
        return None

    branches = [n for n in nodes if n.type == NodeKind.BRANCH.value]
    claimed = {root.id} | {b.id for b in branches}
    structure = TreeStructure(root=root, branches=branches)

    for branch in branches:
        targets = {e.target for e in mindmap.edges if e.source == branch.id}
        leaves = []
        for n in nodes:
            if n.id in targets and n.id not in claimed:
                claimed.add(n.id)
                leaves.append(n)
        structure.leaves[branch.id] = leaves
    return structure


def place(structure: TreeStructure) -> dict[str, Position]:
    """Absolute position of every node in the structure."""
    positions = {structure.root.id: Position(0.0, 0.0)}
    root_y = positions[structure.root.id].y
    branch_offsets = column_offsets(len(structure.branches), BRANCH_SPACING_Y)

    for branch, offset in zip(structure.branches, branch_offsets):
        branch_pos = Position(BRANCH_X, root_y + offset)
        positions[branch.id] = branch_pos
        leaves = structure.leaves.get(branch.id, [])
        leaf_offsets = column_offsets(len(leaves), LEAF_SPACING_Y)
        for leaf, leaf_offset in zip(leaves, leaf_offsets):
            positions[leaf.id] = Position(
                branch_pos.x + LEAF_X_OFFSET, branch_pos.y + leaf_offset,
            )
    return positions


def _kind_of(raw: GeneratedNode) -> NodeKind:
    try:
        return NodeKind(raw.type)
    except ValueError:
        return NodeKind.LEAF


def compute_layout(mindmap: GeneratedMindmap) -> GraphState:
    """Lay out a generated mind map. Empty GraphState when there is no root."""
    structure = classify(mindmap)
    if structure is None:
        return GraphState()

    positions = place(structure)
    ordered = [structure.root]
    for branch in structure.branches:
        ordered.append(branch)
        ordered.extend(structure.leaves.get(branch.id, []))

    nodes = tuple(
        Node(NodeId(raw.id), _kind_of(raw), raw.label, positions[raw.id])
        for raw in ordered
    )
    edges = tuple(
        Edge(EdgeId(e.id), NodeId(e.source), NodeId(e.target))
        for e in first_by_id(mindmap.edges)
        if e.source in positions and e.target in positions
    )
    dropped = len(mindmap.nodes) - len(nodes)
    if dropped:
        logger.warning(f"Layout skipped {dropped} unreachable or repeated generated node(s)")
    return GraphState(nodes=nodes, edges=edges)
