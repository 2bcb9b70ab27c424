"""Domain Types - identity types, enums and layout constants for the mind-map editor.

Invariants:
    - NodeId, EdgeId, ProjectId wrap str: ids are opaque, never parsed
    - CanvasId wraps UUID: one per open editor workspace
    - All valid states encoded as Enums: no raw string matching
    - Layout constants are fixed; relayout output depends on structure only

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

NodeId = NewType("NodeId", str)
EdgeId = NewType("EdgeId", str)
ProjectId = NewType("ProjectId", str)
CanvasId = NewType("CanvasId", UUID)


# ─── Layout Constants ────────────────────────────────────────────

BRANCH_X = 400.0
BRANCH_SPACING_Y = 250.0
LEAF_X_OFFSET = 300.0
LEAF_SPACING_Y = 70.0


# ─── Enums ───────────────────────────────────────────────────────

class NodeKind(str, Enum):
    """Node roles: root/branch/leaf come from generation, manual from the user."""
    ROOT = "root"
    BRANCH = "branch"
    LEAF = "leaf"
    MANUAL = "manual"


class CanvasMode(str, Enum):
    """Authoring states of the interaction controller."""
    IDLE = "idle"
    COMPOSING = "composing"


class PanelStatus(str, Enum):
    """Side-panel states of the enrichment side-channel."""
    EMPTY = "empty"
    LOADING = "loading"
    LOADED = "loaded"


class NotificationType(str, Enum):
    """Transient notification flavour shown by the client."""
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
