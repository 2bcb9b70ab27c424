"""Export Renderer - rasterizes the graph layer of a canvas into a PNG.

Invariants:
    - Only the graph layer is drawn (edges, then nodes); no UI chrome
    - Image size and translation come from an ExportPlan; nothing is clipped
    - Rendering errors raise ExportError and produce no bytes
    - Pure function of (graph, plan, sizes, background): safe to run in a thread

Design Decisions:
    - Pillow ImageDraw over a headless browser: exact pixel size, no DOM
    - Edges as smooth-step connectors (source right handle -> target left handle)
"""

import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageColor, ImageDraw, ImageFont

from mindcanvas.core.domain_types import NodeKind
from mindcanvas.core.errors import ExportError
from mindcanvas.core.export_bounds import ExportPlan, NodeSizes
from mindcanvas.core.graph_model import GraphState, Node

logger = logging.getLogger(__name__)

EDGE_COLOR = "#94A3B8"
NODE_FILL = "#FFFFFF"
NODE_BORDER = "#E2E8F0"
NODE_TEXT = "#334155"
ROOT_FILL = "#4F46E5"
ROOT_TEXT = "#FFFFFF"
EDGE_WIDTH = 2
CORNER_RADIUS = 8


@dataclass(frozen=True)
class ExportArtifact:
    """Finished download: file name and PNG bytes."""
    filename: str
    content: bytes
    width: int
    height: int

    media_type = "image/png"


def _load_font(size: int, bold: bool = False) -> ImageFont.ImageFont:
    """DejaVu when installed, Pillow's built-in font otherwise."""
    name = "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf"
    try:
        return ImageFont.truetype(name, size)
    except OSError:
        return ImageFont.load_default()


def smoothstep_path(
    start: tuple[float, float], end: tuple[float, float],
) -> list[tuple[float, float]]:
    """Orthogonal connector: out horizontally, across vertically, in horizontally."""
    mid_x = (start[0] + end[0]) / 2
    return [start, (mid_x, start[1]), (mid_x, end[1]), end]


def _box(node: Node, plan: ExportPlan, sizes: NodeSizes) -> tuple[float, float, float, float]:
    width, height = sizes.of(node)
    x, y = plan.to_raster(node.position.x, node.position.y)
    return x, y, x + width, y + height


def _draw_label(draw, box, label: str, font, fill: str) -> None:
    left, top, right, bottom = draw.textbbox((0, 0), label, font=font)
    text_w, text_h = right - left, bottom - top
    x0, y0, x1, y1 = box
    draw.text(
        ((x0 + x1 - text_w) / 2 - left, (y0 + y1 - text_h) / 2 - top),
        label, fill=fill, font=font,
    )


def render_png(
    graph: GraphState, plan: ExportPlan, sizes: NodeSizes, background: str,
) -> bytes:
    """Draw the graph onto a plan-sized canvas and encode it as PNG."""
    try:
        fill = ImageColor.getrgb(background)
        img = Image.new("RGB", (plan.width, plan.height), fill)
        draw = ImageDraw.Draw(img)
        font = _load_font(14)
        root_font = _load_font(16, bold=True)

        boxes = {n.id: _box(n, plan, sizes) for n in graph.nodes}
        for edge in graph.edges:
            if edge.source not in boxes or edge.target not in boxes:
                continue
            sx0, sy0, sx1, sy1 = boxes[edge.source]
            tx0, ty0, tx1, ty1 = boxes[edge.target]
            path = smoothstep_path((sx1, (sy0 + sy1) / 2), (tx0, (ty0 + ty1) / 2))
            draw.line(path, fill=EDGE_COLOR, width=EDGE_WIDTH, joint="curve")

        for node in graph.nodes:
            box = boxes[node.id]
            if node.kind == NodeKind.ROOT:
                draw.rounded_rectangle(box, radius=CORNER_RADIUS + 4, fill=ROOT_FILL)
                _draw_label(draw, box, node.label, root_font, ROOT_TEXT)
            else:
                draw.rounded_rectangle(
                    box, radius=CORNER_RADIUS, fill=NODE_FILL,
                    outline=NODE_BORDER, width=1,
                )
                _draw_label(draw, box, node.label, font, NODE_TEXT)

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()
    except (OSError, ValueError, MemoryError) as e:
        logger.error(f"Rasterization failed: {e}", exc_info=True)
        raise ExportError(str(e))
