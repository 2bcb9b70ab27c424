"""Export Bounds - tight raster geometry over an unbounded canvas.

Invariants:
    - Bounds cover every node footprint (position = top-left, plus render size)
    - Zero width or height -> EmptyExportError; nothing is rendered
    - Output size = (bounds.width + 2*padding) x (bounds.height + 2*padding)
    - Translation maps (bounds.x - padding, bounds.y - padding) to (0, 0)
    - File name is "mindmap-<project name>.png", "mindmap-export.png" if unnamed
    - Content-Disposition is latin-1 encodable: an ASCII filename= fallback
      plus the UTF-8 name in filename*= (RFC 5987)
"""

import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Callable, Iterable
from urllib.parse import quote

from mindcanvas.core.domain_types import NodeKind
from mindcanvas.core.errors import EmptyExportError
from mindcanvas.core.graph_model import Node

_UNSAFE_FILENAME = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class ExportPlan:
    """Raster size and the translation applied to layout coordinates."""
    width: int
    height: int
    offset_x: float
    offset_y: float

    def to_raster(self, x: float, y: float) -> tuple[float, float]:
        return x + self.offset_x, y + self.offset_y


@dataclass(frozen=True)
class NodeSizes:
    """Rendered size of nodes; the root is drawn larger."""
    node: tuple[float, float] = (160.0, 40.0)
    root: tuple[float, float] = (180.0, 56.0)

    def of(self, node: Node) -> tuple[float, float]:
        return self.root if node.kind == NodeKind.ROOT else self.node


def compute_bounds(
    nodes: Iterable[Node], size_of: Callable[[Node], tuple[float, float]],
) -> Rect:
    """Axis-aligned box over all node footprints. Rect(0,0,0,0) when empty."""
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for node in nodes:
        width, height = size_of(node)
        min_x = min(min_x, node.position.x)
        min_y = min(min_y, node.position.y)
        max_x = max(max_x, node.position.x + width)
        max_y = max(max_y, node.position.y + height)
    if min_x == math.inf:
        return Rect(0.0, 0.0, 0.0, 0.0)
    return Rect(min_x, min_y, max_x - min_x, max_y - min_y)


def plan_export(bounds: Rect, padding: float) -> ExportPlan:
    """Raster geometry for the given bounds. Raises EmptyExportError on zero area."""
    if bounds.width <= 0 or bounds.height <= 0:
        raise EmptyExportError()
    return ExportPlan(
        width=math.ceil(bounds.width + 2 * padding),
        height=math.ceil(bounds.height + 2 * padding),
        offset_x=padding - bounds.x,
        offset_y=padding - bounds.y,
    )


def export_filename(project_name: str | None) -> str:
    name = _UNSAFE_FILENAME.sub("-", (project_name or "").strip()).strip("-. ")
    return f"mindmap-{name or 'export'}.png"


def content_disposition(filename: str) -> str:
    """Attachment header for filename, safe for non-Latin project names."""
    ascii_name = (
        unicodedata.normalize("NFKD", filename)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    ascii_name = _UNSAFE_FILENAME.sub("-", ascii_name)
    return (
        f'attachment; filename="{ascii_name}"; '
        f"filename*=UTF-8''{quote(filename, safe='')}"
    )
