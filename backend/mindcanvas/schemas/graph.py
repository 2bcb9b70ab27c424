"""Graph Schemas - Pydantic models for AI payloads and React Flow graph output.

Invariants:
    - GenerationPayload matches the emit_mindmap tool schema
    - FlowNode/FlowEdge shape matches what React Flow expects
    - FlowNode.data never carries behavior; `brainstormable` only says a
      trigger is bound for this node in the current session

Design Decisions:
    - Separate from canvas schemas: graph data is consumed by React Flow,
      canvas data by the REST client
"""

from typing import Literal

from pydantic import BaseModel, Field


# --- AI payloads -------------------------------------------------------------

class GeneratedNodeIn(BaseModel):
    id: str = Field(min_length=1)
    label: str
    type: Literal["root", "branch", "leaf"]


class GeneratedEdgeIn(BaseModel):
    id: str = Field(min_length=1)
    source: str
    target: str


class GenerationPayload(BaseModel):
    """Flat mind-map payload from the generation collaborator."""
    nodes: list[GeneratedNodeIn] = []
    edges: list[GeneratedEdgeIn] = []


class DeepDivePayload(BaseModel):
    """Deep-dive payload from the enrichment collaborator."""
    angles: list[str] = []
    headlines: list[str] = []
    keywords: list[str] = []


# --- React Flow output -------------------------------------------------------

class XY(BaseModel):
    x: float
    y: float


class FlowNodeData(BaseModel):
    label: str
    brainstormable: bool = False


class FlowNode(BaseModel):
    """A node in React Flow format."""
    id: str
    type: Literal["root", "branch", "leaf", "manual"]
    position: XY
    data: FlowNodeData
    selected: bool = False


class FlowEdge(BaseModel):
    """An edge in React Flow format, drawn as an animated smooth-step connector."""
    id: str
    source: str
    target: str
    type: str = "smoothstep"
    animated: bool = True


class GraphData(BaseModel):
    """Complete graph for React Flow rendering."""
    nodes: list[FlowNode] = []
    edges: list[FlowEdge] = []
