"""
owner_scout/api/routers/status_router.py

Liveness endpoint exposing a snapshot of the run state.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from owner_scout.domain.run_state import RunState
from owner_scout.schemas.status import StatusResponse

router = APIRouter(tags=["status"])


def get_run_state(request: Request) -> RunState:
    return request.app.state.run_state


@router.get("/", response_model=StatusResponse)
def status(request: Request) -> StatusResponse:
    """
    Report that the process is alive and whether a scrape is in progress.
    """

    snapshot = get_run_state(request).snapshot()
    return StatusResponse(
        status="healthy",
        scraping=snapshot.scraping,
        total_logged=snapshot.total_logged,
        timestamp=snapshot.timestamp,
    )
