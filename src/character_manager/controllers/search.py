"""Player search: resolves a wipe/restore candidate from partial identity fields."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from character_manager.controllers.base import StageController
from character_manager.domain.models import (
    CandidateList,
    PlayerRecord,
    ResultStatus,
    SearchCriteria,
    SearchMode,
    SessionConfig,
)
from character_manager.gateway.client import RemoteCallGateway
from character_manager.workflow.state import Reason, Stage, TransitionResult, WorkflowState

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 10


def classify_candidates(
    raw_players: Iterable[object],
    *,
    max_results: int = DEFAULT_MAX_RESULTS,
    exclude_key: str | None = None,
) -> CandidateList:
    """Turn a host player list into a candidate list.

    Entries whose canonical key equals ``exclude_key`` are removed before
    counting. Entries without any canonical key still count toward the
    overflow threshold but can never be selected.
    """
    records: list[PlayerRecord | None] = []
    for raw in raw_players:
        record = PlayerRecord.from_host(raw)
        if record is None:
            logger.warning("Ignoring host player without citizenid/identifier")
        elif exclude_key is not None and record.key == exclude_key:
            continue
        records.append(record)

    total = len(records)
    if total > max_results:
        return CandidateList(status=ResultStatus.TOO_MANY, total=total)
    players = tuple(record for record in records if record is not None)
    if not players:
        return CandidateList(status=ResultStatus.NO_RESULTS, total=total)
    return CandidateList(status=ResultStatus.MATCHES, players=players, total=total)


class SearchController(StageController):
    def __init__(
        self,
        gateway: RemoteCallGateway,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        super().__init__(gateway)
        self.max_results = max_results

    async def search(
        self,
        state: WorkflowState,
        session: SessionConfig,
        criteria: SearchCriteria,
        mode: SearchMode,
    ) -> TransitionResult:
        if criteria.is_empty:
            return state.reject(Reason.EMPTY_CRITERIA)
        if mode is SearchMode.RESTORE and not session.restore_enabled:
            return state.reject(Reason.RESTORE_DISABLED)

        payload = {**criteria.to_payload(), "searchType": mode.value}
        response = await self._request(state, "searchPlayer", payload)
        if response is None:
            return state.reject(Reason.STALE_RESPONSE)

        candidates = (
            classify_candidates(response.items("players"), max_results=self.max_results)
            if response.success
            else CandidateList.empty()
        )
        logger.info(
            "Player search (%s) returned %s with %d candidate(s)",
            mode.value,
            candidates.status.value,
            candidates.total,
        )
        state.mode = mode
        state.candidates = candidates
        state.selected_player = None
        state.clear_vehicle_plan()
        state.stage = Stage.RESULTS
        return state.accept()

    def select(self, state: WorkflowState, key: str) -> TransitionResult:
        player = state.candidates.find(key)
        if player is None:
            return state.reject(Reason.UNKNOWN_CANDIDATE, key)
        if state.selected_player is None or state.selected_player.key != player.key:
            state.clear_vehicle_plan()
        state.selected_player = player
        return state.accept()
