"""Application context assembly."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from character_manager.config import Settings, load_settings
from character_manager.controllers.logs import AuditLogViewer
from character_manager.display.strings import load_strings
from character_manager.domain.models import SessionConfig
from character_manager.gateway.client import RemoteCallGateway
from character_manager.journal.store import JournalStore
from character_manager.workflow.machine import Workflow

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Application-wide dependency container.

    One console session per process: the workflow and the log viewer share
    the gateway and therefore the session credential.
    """

    settings: Settings
    journal: JournalStore | None
    gateway: RemoteCallGateway
    workflow: Workflow
    logs: AuditLogViewer

    def open_session(self, session: SessionConfig) -> None:
        self.workflow.open(session)
        self.logs.reset()

    def hide(self) -> None:
        self.workflow.hide()
        self.logs.reset()

    def startup(self) -> None:
        ttl = self.settings.storage.journal_ttl_seconds
        if self.journal is None or ttl <= 0:
            return
        deleted = self.journal.purge_older_than(ttl)
        if deleted:
            logger.info("Purged %d journaled call(s) older than %ds", deleted, ttl)

    def shutdown(self) -> None:
        if self.journal is not None:
            self.journal.close()


def build_app_context(settings: Settings) -> AppContext:
    journal = None
    if settings.storage.journal_enabled:
        journal = JournalStore(settings.storage.sqlite_path, wal=settings.storage.sqlite_wal)
    gateway = RemoteCallGateway(
        settings.host.base_url,
        timeout_seconds=settings.host.timeout_seconds,
        journal=journal,
    )
    workflow = Workflow(
        gateway,
        max_results=settings.workflow.max_results,
        complete_delay_seconds=settings.workflow.complete_delay_seconds,
        base_strings=load_strings(settings.strings.path),
    )
    return AppContext(
        settings=settings,
        journal=journal,
        gateway=gateway,
        workflow=workflow,
        logs=AuditLogViewer(gateway),
    )


@lru_cache(maxsize=1)
def get_app_context() -> AppContext:
    """Get or create the cached application context."""
    return build_app_context(load_settings())
