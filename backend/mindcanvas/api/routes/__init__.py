"""Route Modules - one file per canvas concern plus projects and health.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Routes never contain business logic (delegate to CanvasWorkspace)
"""
