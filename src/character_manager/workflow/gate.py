"""Completeness check applied to a plan before it may be executed."""

from __future__ import annotations

from dataclasses import dataclass, field

from character_manager.domain.models import DispositionChoice, SearchMode, SessionConfig
from character_manager.workflow.state import WorkflowState


@dataclass
class PlanDecision:
    allowed: bool
    reasons: list[str] = field(default_factory=list)


def evaluate_plan(state: WorkflowState, session: SessionConfig) -> PlanDecision:
    reasons: list[str] = []
    player = state.selected_player
    if player is None:
        reasons.append("No player selected")
        return PlanDecision(False, reasons)

    if state.mode is SearchMode.RESTORE:
        if not session.restore_enabled:
            reasons.append("Restore is disabled by host configuration")
        return PlanDecision(not reasons, reasons)

    target = state.transfer_target
    if state.disposition is DispositionChoice.TRANSFER:
        if target is None:
            reasons.append("Transfer requires a target character")
        elif target.key == player.key:
            reasons.append("Transfer target must differ from the wiped player")
        if not state.selection:
            reasons.append("Transfer requires at least one selected vehicle")
    elif target is not None:
        reasons.append(f"Disposition '{state.disposition.value}' cannot carry a transfer target")

    stale = state.selection - {vehicle.plate for vehicle in state.inventory}
    if stale:
        reasons.append("Selection references vehicles outside the inventory")

    return PlanDecision(not reasons, reasons)
