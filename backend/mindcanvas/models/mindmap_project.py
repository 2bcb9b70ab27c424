"""MindmapProject ORM - one saved mind-map project per row.

Invariants:
    - id is the client-visible project id (epoch-ms string on first save)
    - nodes/edges hold the codec record lists verbatim (no behavior, ever)
    - created_at/updated_at are epoch milliseconds, matching the record keys
    - created_at is preserved across upserts

Design Decisions:
    - JSON columns for nodes/edges/viewport: a project is always read whole
    - String PK instead of UUID: ids are assigned by the save flow, not the DB
"""

from sqlalchemy import BigInteger, String, JSON
from sqlalchemy.orm import Mapped, mapped_column

from mindcanvas.db.base import Base


class MindmapProject(Base):
    """Saved mind-map project."""
    __tablename__ = "mindmap_projects"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    nodes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    edges: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    viewport: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(
        BigInteger, nullable=False, index=True,
    )

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "nodes": self.nodes,
            "edges": self.edges,
            "viewport": self.viewport,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
