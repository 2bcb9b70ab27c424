"""Canvas State - interaction controller for node/edge authoring.

Invariants:
    - Mode is exactly one of Idle or Composing(draft); no boolean flag soup
    - Composing -> confirm with a blank label behaves as cancel
    - Manual nodes get kind=MANUAL, zero edges, and a position that does not
      overlap the root's footprint
    - Drag/move never changes mode and never triggers relayout
    - A generated graph arriving mid-drag is held back and applied on drag end
      (or when the dragged node is deleted); any graph installed directly
      discards an older held one
    - Selection always refers to an existing node (cleared on removal/replace)

Design Decisions:
    - Mutable controller over an immutable GraphState: one owner, many readers
    - Randomness and clock injected (rng, now_ms) so placement is testable
"""

import random
import time
from dataclasses import dataclass
from typing import Callable
from uuid import uuid4

from mindcanvas.core.domain_types import CanvasMode, EdgeId, NodeId, NodeKind
from mindcanvas.core.errors import InteractionError, ResourceNotFoundError
from mindcanvas.core.graph_model import (
    Edge, GraphState, Node, Position,
    add_node, connect, remove_edge, remove_node, update_node_position,
)

_PLACEMENT_ATTEMPTS = 8
_ROOT_CLEARANCE = 20.0


@dataclass(frozen=True)
class Idle:
    mode = CanvasMode.IDLE


@dataclass(frozen=True)
class Composing:
    draft: str = ""
    mode = CanvasMode.COMPOSING


@dataclass(frozen=True)
class Footprint:
    """Axis-aligned box a node occupies on the canvas."""
    x: float
    y: float
    width: float
    height: float

    def overlaps(self, other: "Footprint") -> bool:
        return not (
            self.x + self.width <= other.x or other.x + other.width <= self.x
            or self.y + self.height <= other.y or other.y + other.height <= self.y
        )


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class CanvasController:
    """Owns the graph of one canvas and the authoring state machine."""

    def __init__(
        self,
        *,
        manual_spread: float = 400.0,
        node_size: tuple[float, float] = (160.0, 40.0),
        root_size: tuple[float, float] = (180.0, 56.0),
        rng: random.Random | None = None,
        now_ms: Callable[[], int] = _epoch_ms,
    ):
        self.graph = GraphState()
        self.state: Idle | Composing = Idle()
        self.selected_node_id: NodeId | None = None
        self.dragging_node_id: NodeId | None = None
        self._pending_graph: GraphState | None = None
        self._manual_spread = manual_spread
        self._node_size = node_size
        self._root_size = root_size
        self._rng = rng or random.Random()
        self._now_ms = now_ms

    @property
    def mode(self) -> CanvasMode:
        return self.state.mode

    @property
    def draft(self) -> str | None:
        return self.state.draft if isinstance(self.state, Composing) else None

    @property
    def has_pending_layout(self) -> bool:
        return self._pending_graph is not None

    # --- Composing -------------------------------------------------------------

    def begin_compose(self) -> None:
        """Idle -> Composing with an empty draft."""
        if isinstance(self.state, Composing):
            raise InteractionError("Already composing a node")
        self.state = Composing()
        self.selected_node_id = None

    def set_draft(self, label: str) -> None:
        if not isinstance(self.state, Composing):
            raise InteractionError("No node is being composed")
        self.state = Composing(draft=label)

    def confirm_compose(self) -> Node | None:
        """Composing -> Idle. Returns the new manual node, or None if blank."""
        if not isinstance(self.state, Composing):
            raise InteractionError("No node is being composed")
        label = self.state.draft.strip()
        self.state = Idle()
        if not label:
            return None
        node = Node(
            id=self._manual_node_id(),
            kind=NodeKind.MANUAL,
            label=label,
            position=self._manual_position(),
        )
        self.graph = add_node(self.graph, node)
        return node

    def cancel_compose(self) -> None:
        """Composing -> Idle, discarding the draft. No-op when Idle."""
        self.state = Idle()

    # --- Selection -------------------------------------------------------------

    def select(self, node_id: NodeId) -> None:
        if isinstance(self.state, Composing):
            raise InteractionError("Finish or cancel the new node first")
        self._require_node(node_id)
        self.selected_node_id = node_id

    def clear_selection(self) -> None:
        self.selected_node_id = None

    # --- Direct manipulation ----------------------------------------------------

    def start_drag(self, node_id: NodeId) -> None:
        self._require_node(node_id)
        self.dragging_node_id = node_id

    def move_node(self, node_id: NodeId, position: Position) -> None:
        self.graph = update_node_position(self.graph, node_id, position)

    def end_drag(self, node_id: NodeId | None = None) -> bool:
        """Finish a drag. Returns True if a held-back generation was applied.

        node_id, when given, must be the node being dragged.
        """
        if (
            node_id is not None
            and self.dragging_node_id is not None
            and node_id != self.dragging_node_id
        ):
            raise InteractionError(f"Node '{node_id}' is not being dragged")
        self.dragging_node_id = None
        if self._pending_graph is None:
            return False
        pending, self._pending_graph = self._pending_graph, None
        self._replace(pending)
        return True

    def connect(self, source: NodeId, target: NodeId) -> Edge | None:
        """One user-drawn edge. None when either endpoint is unknown."""
        edge_id = EdgeId(f"e-{source}-{target}-{uuid4().hex[:8]}")
        before = len(self.graph.edges)
        self.graph = connect(self.graph, source, target, edge_id)
        if len(self.graph.edges) == before:
            return None
        return self.graph.edges[-1]

    def remove_node(self, node_id: NodeId) -> bool:
        """Delete a node. Deleting the dragged node ends the drag, so a held
        generation is applied; returns True when that happened."""
        self.graph = remove_node(self.graph, node_id)
        if self.selected_node_id == node_id:
            self.selected_node_id = None
        if self.dragging_node_id == node_id:
            return self.end_drag()
        return False

    def remove_edge(self, edge_id: EdgeId) -> None:
        self.graph = remove_edge(self.graph, edge_id)

    # --- Whole-graph replacement ------------------------------------------------

    def apply_generation(self, graph: GraphState) -> bool:
        """Install a freshly laid-out graph. Held back (False) while dragging."""
        if self.dragging_node_id is not None:
            self._pending_graph = graph
            return False
        self._replace(graph)
        return True

    def load(self, graph: GraphState) -> None:
        """Install a saved graph as-is; positions are never recomputed."""
        self.dragging_node_id = None
        self._pending_graph = None
        self.state = Idle()
        self._replace(graph)

    # --- Internals --------------------------------------------------------------

    def _replace(self, graph: GraphState) -> None:
        self.graph = graph
        self._pending_graph = None
        self.selected_node_id = None

    def _require_node(self, node_id: NodeId) -> Node:
        node = self.graph.get_node(node_id)
        if node is None:
            raise ResourceNotFoundError("Node", node_id)
        return node

    def _manual_node_id(self) -> NodeId:
        base = f"manual-{self._now_ms()}"
        candidate, n = base, 1
        while self.graph.has_node(NodeId(candidate)):
            candidate = f"{base}-{n}"
            n += 1
        return NodeId(candidate)

    def _manual_position(self) -> Position:
        """Random spot in [0, spread) on both axes, clear of the root."""
        root = self.graph.root()
        avoid = None
        if root is not None:
            avoid = Footprint(
                root.position.x, root.position.y, *self._root_size,
            )
        width, height = self._node_size
        for _ in range(_PLACEMENT_ATTEMPTS):
            x = self._rng.uniform(0, self._manual_spread)
            y = self._rng.uniform(0, self._manual_spread)
            if avoid is None or not Footprint(x, y, width, height).overlaps(avoid):
                return Position(x, y)
        return Position(x, avoid.y + avoid.height + _ROOT_CLEARANCE)
