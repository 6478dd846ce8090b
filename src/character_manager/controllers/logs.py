"""Audit log viewer: a read-only path beside the wipe/restore workflow."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from character_manager.domain.models import LogEntry, ResultStatus, SearchCriteria
from character_manager.gateway.client import RemoteCallGateway

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def sort_newest_first(entries: list[LogEntry]) -> list[LogEntry]:
    """Order entries by timestamp, newest first; unparseable timestamps sort last."""
    dated = [entry for entry in entries if entry.occurred_at is not None]
    undated = [entry for entry in entries if entry.occurred_at is None]
    dated.sort(key=lambda entry: entry.occurred_at or _OLDEST, reverse=True)
    return dated + undated


@dataclass
class LogViewState:
    status: ResultStatus = ResultStatus.NO_RESULTS
    entries: list[LogEntry] = field(default_factory=list)
    expanded: set[int] = field(default_factory=set)
    loading: bool = False
    searched: bool = False
    generation: int = 0


class AuditLogViewer:
    def __init__(self, gateway: RemoteCallGateway) -> None:
        self._gateway = gateway
        self.state = LogViewState()

    def reset(self) -> None:
        self.state = LogViewState(generation=self.state.generation + 1)

    async def fetch(self, criteria: SearchCriteria) -> bool:
        """Load the entries matching *criteria*.

        Returns False when the criteria are empty or the answer arrived after
        a newer fetch or a reset; the view is left alone in both cases.
        """
        if criteria.is_empty:
            return False

        view = self.state
        view.generation += 1
        generation = view.generation
        view.loading = True
        response = await self._gateway.try_call(
            "getPlayerLogs", criteria.to_payload(phone_field="phone")
        )
        if self.state is not view or view.generation != generation:
            logger.debug("Discarding stale getPlayerLogs response")
            return False

        entries: list[LogEntry] = []
        if response.success:
            for raw in response.items("logs"):
                try:
                    entry = LogEntry.from_host(raw)
                except (TypeError, ValueError) as exc:
                    logger.warning("Ignoring malformed log row: %s", exc)
                    continue
                if entry is None:
                    logger.warning("Ignoring malformed log row")
                    continue
                entries.append(entry)

        view.entries = sort_newest_first(entries)
        view.status = ResultStatus.MATCHES if view.entries else ResultStatus.NO_RESULTS
        view.expanded = set()
        view.loading = False
        view.searched = True
        logger.info("Loaded %d log entries", len(view.entries))
        return True

    def toggle(self, index: int) -> bool:
        view = self.state
        if not 0 <= index < len(view.entries):
            return False
        if not view.entries[index].vehicles:
            return False
        if index in view.expanded:
            view.expanded.discard(index)
        else:
            view.expanded.add(index)
        return True
