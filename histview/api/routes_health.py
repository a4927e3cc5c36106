from __future__ import annotations

from datetime import datetime
from fastapi import APIRouter
from histview.deps import get_viewer
from histview.models.domain import HealthResponse, SchedulerStatsResponse

router = APIRouter()

@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    sched = get_viewer().scheduler
    return HealthResponse(
        status="ok",
        ts=datetime.now().isoformat(),
        scheduler=SchedulerStatsResponse(
            fetches_started=sched.fetches_started,
            ticks_skipped=sched.ticks_skipped,
            stale_discarded=sched.stale_discarded,
            in_flight=sched.in_flight,
        ),
    )
