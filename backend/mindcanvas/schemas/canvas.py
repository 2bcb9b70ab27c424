"""Canvas Schemas - request validation and snapshot responses for canvas endpoints.

Invariants:
    - MindmapRequest.topic: 1-200 chars, stripped, non-empty; depth 2..4
    - Viewport zoom is strictly positive
    - Snapshots are read-only views; nothing here mutates a workspace
"""

from uuid import UUID
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from mindcanvas.schemas.graph import GraphData, XY


class MindmapRequest(BaseModel):
    """Generation brief. Only topic is required."""
    topic: str = Field(min_length=1, max_length=200)
    goal: str | None = Field(None, max_length=500)
    audience: str | None = Field(None, max_length=200)
    depth: int = Field(3, ge=2, le=4)

    @model_validator(mode="before")
    @classmethod
    def accept_bare_keyword(cls, data):
        if isinstance(data, str):
            return {"topic": data}
        return data

    @field_validator("topic")
    @classmethod
    def strip_topic(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("topic cannot be empty or whitespace")
        return v


class DraftUpdate(BaseModel):
    label: str = Field("", max_length=200)


class ConnectRequest(BaseModel):
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)


class PositionUpdate(XY):
    pass


class ViewportIn(BaseModel):
    x: float
    y: float
    zoom: float = Field(gt=0)


class RenameRequest(BaseModel):
    name: str = Field("", max_length=255)


class DeepDiveOut(BaseModel):
    angles: list[str] = []
    headlines: list[str] = []
    keywords: list[str] = []


class PanelOut(BaseModel):
    """Side-panel state: empty, loading(subject) or loaded(subject, content)."""
    status: Literal["empty", "loading", "loaded"]
    node_id: str | None = None
    label: str | None = None
    content: DeepDiveOut | None = None


class NotificationOut(BaseModel):
    type: Literal["success", "error", "info"]
    message: str
    code: str | None = None


class CanvasSnapshot(BaseModel):
    """Everything the client needs to render one canvas."""
    id: UUID
    name: str
    project_id: str | None = None
    graph: GraphData
    viewport: ViewportIn | None = None
    mode: Literal["idle", "composing"]
    draft: str | None = None
    selected_node_id: str | None = None
    dragging_node_id: str | None = None
    pending_layout: bool = False
    panel: PanelOut
    notifications: list[NotificationOut] = []
