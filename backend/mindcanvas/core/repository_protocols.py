"""Boundary Protocols - contracts between core and shell.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - All IO (project store, AI collaborators) accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: implementations do IO; the pure core that consumes
      their results is never async itself
"""

from dataclasses import dataclass
from typing import Protocol

from mindcanvas.core.domain_types import ProjectId
from mindcanvas.core.enrichment_panel import DeepDive
from mindcanvas.core.layout_engine import GeneratedMindmap


@dataclass(frozen=True)
class MindmapBrief:
    """What the user asked the generator for. A bare keyword becomes topic."""
    topic: str
    goal: str | None = None
    audience: str | None = None
    depth: int = 3


class ProjectStore(Protocol):
    """Saved-project list: records are codec dicts (see project_codec)."""
    async def list(self) -> list[dict]: ...
    async def get(self, project_id: ProjectId) -> dict | None: ...
    async def upsert(self, record: dict) -> None: ...
    async def delete(self, project_id: ProjectId) -> None: ...


class MindmapGenerator(Protocol):
    """Keyword -> flat root/branch/leaf payload. Raises on failure."""
    async def generate(self, brief: MindmapBrief) -> GeneratedMindmap: ...


class NodeEnricher(Protocol):
    """Node label -> deep-dive content. Raises on failure."""
    async def enrich(self, label: str) -> DeepDive: ...
