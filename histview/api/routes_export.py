from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from histview.deps import get_viewer
from histview.errors import ExportFailure
from histview.models.domain import DisplayTab, TimeRangeClass

router = APIRouter()


@router.get("/{tab}")
async def export_tab(
    tab: DisplayTab,
    range_class: Optional[TimeRangeClass] = Query(None, description="Defaults to the viewer's active range"),
) -> Response:
    """
    CSV of the unsampled series for a tab. Passed through from the upstream export.
    """
    viewer = get_viewer()
    try:
        export = await viewer.export_csv(tab=tab, range_class=range_class)
    except ExportFailure as exc:
        # auth problems stay 401 for the frontend; everything else is an upstream failure
        status = 401 if exc.status_code == 401 else 502
        raise HTTPException(status_code=status, detail=str(exc))

    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
