from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from owner_scout.config import load_env_files
from owner_scout.domain.run_state import RunState


def configure_logging() -> None:
    """
    Configure root logging once for the worker process.
    """

    load_env_files()
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(*, run_state: RunState | None = None) -> FastAPI:
    """
    Create the status application bound to one worker's run state.
    """

    application = FastAPI(
        title="Owner Scout Status",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
    )
    application.state.run_state = run_state or RunState()

    from owner_scout.api.routers import status_router

    application.include_router(status_router)
    return application
