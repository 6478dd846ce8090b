"""Confirmation summary and the single destructive call."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from character_manager.controllers.base import StageController
from character_manager.domain.models import DispositionChoice, SearchMode, SessionConfig
from character_manager.workflow.gate import evaluate_plan
from character_manager.workflow.state import Reason, Stage, TransitionResult, WorkflowState

logger = logging.getLogger(__name__)


@dataclass
class PlanSummary:
    title: str
    lines: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "lines": list(self.lines)}


def build_summary(state: WorkflowState, strings: Mapping[str, str]) -> PlanSummary | None:
    """Describe the pending plan the way the confirmation screen shows it."""
    player = state.selected_player
    if player is None:
        return None

    if state.mode is SearchMode.RESTORE:
        summary = PlanSummary(title=strings["restoreConfirm"])
    else:
        summary = PlanSummary(title=strings["wipeConfirm"])
    summary.lines.append(player.display_name)
    summary.lines.append(player.phone or "N/A")
    summary.lines.append(player.key)

    if state.mode is SearchMode.RESTORE or not state.inventory:
        return summary

    summary.lines.append(strings["vehicleActionTitle"])
    summary.lines.append(
        f"{len(state.selection)}/{len(state.inventory)} {strings['vehicleSelectedCount']}"
    )
    target = state.transfer_target
    if state.disposition is DispositionChoice.TRANSFER and target is not None:
        summary.lines.append(f"{strings['vehTransfertTo']}: {target.display_name} ({target.key})")
    elif state.disposition is DispositionChoice.KEEP:
        summary.lines.append(strings["vehicleKeepConfirm"])
    else:
        summary.lines.append(strings["vehicleDeleteConfirm"])
    return summary


def build_execution_request(state: WorkflowState) -> tuple[str, dict[str, Any]]:
    player = state.selected_player
    if player is None:
        raise ValueError("No player selected")
    if state.mode is SearchMode.RESTORE:
        return "restorePlayer", {"playerData": player.to_payload()}
    target = state.transfer_target
    return "wipePlayer", {
        "playerData": player.to_payload(),
        "targetCharacter": target.to_payload() if target is not None else None,
        "selectedVehicles": state.selected_plates(),
        "vehicleAction": state.disposition.value,
    }


class ExecutionController(StageController):
    async def execute(self, state: WorkflowState, session: SessionConfig) -> TransitionResult:
        decision = evaluate_plan(state, session)
        if not decision.allowed:
            logger.info("Execution refused: %s", "; ".join(decision.reasons))
            if state.mode is SearchMode.RESTORE and not session.restore_enabled:
                return state.reject(Reason.RESTORE_DISABLED)
            return state.reject(Reason.PLAN_INCOMPLETE, "; ".join(decision.reasons))

        operation, payload = build_execution_request(state)
        player_key = state.selected_player.key if state.selected_player else None
        response = await self._request(state, operation, payload)
        if response is None:
            return state.reject(Reason.STALE_RESPONSE)
        if not response.success:
            logger.warning("%s failed for %s; plan kept for retry", operation, player_key)
            return state.reject(Reason.REMOTE_FAILURE, operation)

        logger.info("%s succeeded for %s", operation, player_key)
        state.reset(stage=Stage.COMPLETE)
        return state.accept()
