"""Project Repository - SQLAlchemy implementation of the ProjectStore protocol.

Invariants:
    - upsert is keyed by record["id"]: insert when new, overwrite when existing
    - An overwrite keeps the stored created_at
    - Capacity is finite: a NEW id beyond `quota` projects, or any record
      larger than `max_bytes` once JSON-encoded, raises QuotaExceededError
    - SQLAlchemy failures roll back and surface as PersistenceError
    - list() is ordered most recently updated first

Design Decisions:
    - Quota checked before touching the row so a rejected save leaves the
      store exactly as it was
"""

import json
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mindcanvas.core.domain_types import ProjectId
from mindcanvas.core.errors import (
    ErrorContext, PersistenceError, QuotaExceededError,
)
from mindcanvas.models.mindmap_project import MindmapProject

logger = logging.getLogger(__name__)


class SqlProjectStore:
    """Saved projects backed by the mindmap_projects table."""

    def __init__(
        self, db: AsyncSession, quota: int = 50, max_bytes: int = 1_048_576,
    ):
        self._db = db
        self._quota = quota
        self._max_bytes = max_bytes

    async def list(self) -> list[dict]:
        try:
            result = await self._db.execute(
                select(MindmapProject).order_by(MindmapProject.updated_at.desc()),
            )
        except SQLAlchemyError as e:
            raise PersistenceError(str(e), "list")
        return [row.to_record() for row in result.scalars().all()]

    async def get(self, project_id: ProjectId) -> dict | None:
        try:
            row = await self._db.get(MindmapProject, project_id)
        except SQLAlchemyError as e:
            raise PersistenceError(str(e), "load")
        return row.to_record() if row else None

    async def upsert(self, record: dict) -> None:
        project_id = record["id"]
        ctx = ErrorContext(project_id=project_id)
        size = len(json.dumps(record, ensure_ascii=False).encode("utf-8"))
        if size > self._max_bytes:
            raise QuotaExceededError(
                f"project is {size} bytes, limit is {self._max_bytes}", ctx,
            )
        try:
            row = await self._db.get(MindmapProject, project_id)
            if row is None:
                await self._check_capacity(ctx)
                row = MindmapProject(
                    id=project_id, created_at=record["createdAt"],
                )
                self._db.add(row)
            row.name = record["name"]
            row.nodes = record["nodes"]
            row.edges = record["edges"]
            row.viewport = record["viewport"]
            row.updated_at = record["updatedAt"]
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            logger.error(
                f"Project upsert failed: {e}", extra={"project_id": project_id},
            )
            raise PersistenceError("storage backend error", "save", ctx)

    async def delete(self, project_id: ProjectId) -> None:
        try:
            await self._db.execute(
                delete(MindmapProject).where(MindmapProject.id == project_id),
            )
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            logger.error(
                f"Project delete failed: {e}", extra={"project_id": project_id},
            )
            raise PersistenceError(
                "storage backend error", "delete",
                ErrorContext(project_id=project_id),
            )

    async def _check_capacity(self, ctx: ErrorContext) -> None:
        count = await self._db.scalar(
            select(func.count()).select_from(MindmapProject),
        )
        if (count or 0) >= self._quota:
            raise QuotaExceededError(
                f"saved project limit ({self._quota}) reached", ctx,
            )
