"""FastAPI application serving the task API."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .. import __version__
from ..config import default_state_dir
from ..task_engine.engine import TaskEngine
from .task_api import create_task_router


def create_app(
    state_dir: Optional[Path] = None,
    engine: Optional[TaskEngine] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        state_dir: Tracker state directory (default: `.task_tracker` in cwd).
        engine: Pre-built engine; when omitted one is built from `state_dir`.
        enable_cors: Whether to enable CORS.

    Returns:
        Configured FastAPI app.

    Raises:
        StoreLoadError: If the stored tasks cannot be parsed.
    """
    if engine is None:
        engine = TaskEngine.from_state_dir(state_dir or default_state_dir())
    if not engine.initialized:
        engine.initialize()

    app = FastAPI(
        title="Task Tracker",
        description="Local task tracker API",
        version=__version__,
    )

    # Enable CORS for a locally served UI
    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.state.engine = engine

    def _get_engine() -> TaskEngine:
        return app.state.engine

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Task Tracker",
            "version": __version__,
            "status": "running",
        }

    app.include_router(create_task_router(_get_engine))
    logger.debug("Task API ready")
    return app
