"""Canvas Export - download the graph layer as a PNG.

Invariants:
    - 200 image/png with an attachment Content-Disposition on success
      (ASCII filename plus UTF-8 filename*)
    - 204 with no body when the canvas has no nodes
    - 409 EXPORT_BUSY while another export of the same canvas is running
"""

import logging

from fastapi import APIRouter, Depends, Response, status

from mindcanvas.api.routes.canvas_helpers import get_workspace_or_404
from mindcanvas.core.export_bounds import content_disposition
from mindcanvas.services.canvas_workspace import CanvasWorkspace

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/canvases/{canvas_id}", tags=["export"])


@router.get(
    "/export",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}, 204: {"description": "Empty canvas"}},
)
async def export_canvas(workspace: CanvasWorkspace = Depends(get_workspace_or_404)):
    artifact = await workspace.export_png()
    if artifact is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": content_disposition(artifact.filename),
        },
    )
