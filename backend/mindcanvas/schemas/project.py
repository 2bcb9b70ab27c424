"""Project Schemas - saved-project listing responses."""

from pydantic import BaseModel


class ProjectSummary(BaseModel):
    """One row of the saved-projects list."""
    id: str
    name: str
    node_count: int
    edge_count: int
    created_at: int
    updated_at: int

    @classmethod
    def from_record(cls, record: dict) -> "ProjectSummary":
        return cls(
            id=record["id"],
            name=record["name"],
            node_count=len(record.get("nodes") or []),
            edge_count=len(record.get("edges") or []),
            created_at=record["createdAt"],
            updated_at=record["updatedAt"],
        )


class ProjectList(BaseModel):
    projects: list[ProjectSummary] = []
