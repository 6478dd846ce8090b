"""Transfer-target search and selection."""

from __future__ import annotations

import logging

from character_manager.controllers.base import StageController
from character_manager.controllers.search import DEFAULT_MAX_RESULTS, classify_candidates
from character_manager.domain.models import (
    CandidateList,
    DispositionChoice,
    SearchCriteria,
)
from character_manager.gateway.client import RemoteCallGateway
from character_manager.workflow.state import Reason, Stage, TransitionResult, WorkflowState

logger = logging.getLogger(__name__)


class TransferTargetResolver(StageController):
    def __init__(
        self,
        gateway: RemoteCallGateway,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        super().__init__(gateway)
        self.max_results = max_results

    async def search(self, state: WorkflowState, criteria: SearchCriteria) -> TransitionResult:
        """Search for characters that may receive the selected vehicles.

        The source player is never offered as a target, and the overflow
        threshold is applied after it has been removed.
        """
        source = state.selected_player
        if source is None:
            return state.reject(Reason.NO_PLAYER)
        if criteria.is_empty:
            return state.reject(Reason.EMPTY_CRITERIA)

        response = await self._request(state, "searchTransferTargets", criteria.to_payload())
        if response is None:
            return state.reject(Reason.STALE_RESPONSE)

        candidates = (
            classify_candidates(
                response.items("players"),
                max_results=self.max_results,
                exclude_key=source.key,
            )
            if response.success
            else CandidateList.empty()
        )
        logger.info(
            "Transfer target search returned %s with %d candidate(s)",
            candidates.status.value,
            candidates.total,
        )
        state.transfer_candidates = candidates
        state.transfer_target = None
        return state.accept()

    def select(self, state: WorkflowState, key: str) -> TransitionResult:
        if not state.selection:
            return state.reject(Reason.EMPTY_SELECTION)
        target = state.transfer_candidates.find(key)
        if target is None:
            return state.reject(Reason.UNKNOWN_CANDIDATE, key)
        state.transfer_target = target
        state.disposition = DispositionChoice.TRANSFER
        state.stage = Stage.CONFIRMATION
        return state.accept()
