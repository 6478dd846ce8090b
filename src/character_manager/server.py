"""Entrypoint for the character manager console bridge."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

if __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # pragma: no cover

from starlette.applications import Starlette

from character_manager import __version__
from character_manager.config import load_settings
from character_manager.logging_utils import configure_logging

logger = logging.getLogger(__name__)


def build_app() -> Starlette:
    """Configure logging and create the bridge application."""
    settings = load_settings()
    configure_logging()
    from character_manager.bridge.app import create_app

    logger.info("Initializing character manager v%s", __version__)
    if settings.logging.file:
        logger.info("Log file configured at: %s", settings.logging.file)
    if settings.storage.journal_enabled:
        logger.info("Call journal at: %s", settings.storage.sqlite_path)
    return create_app()


def run_entrypoint() -> None:
    """Serve the bridge with uvicorn."""
    import uvicorn

    settings = load_settings()
    app = build_app()
    uvicorn.run(
        app,
        host=settings.bridge.host,
        port=settings.bridge.port,
        ws="none",
        log_config=None,
    )


if __name__ == "__main__":  # pragma: no cover
    run_entrypoint()
