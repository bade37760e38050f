"""
owner_scout/schemas/status.py

Response schema for the liveness endpoint.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StatusResponse(BaseModel):
    """
    Liveness and progress snapshot of the worker.
    """

    model_config = ConfigDict(populate_by_name=True)

    status: str = "healthy"
    scraping: bool
    total_logged: int = Field(..., ge=0, alias="totalLogged")
    timestamp: datetime
