"""ORM Models - SQLAlchemy declarative models for persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - MindmapProject is the only persisted aggregate; canvases live in memory

Design Decisions:
    - One file per entity
    - All models imported here so Base.metadata is complete before create_all
"""

from mindcanvas.models.mindmap_project import MindmapProject  # noqa: F401
