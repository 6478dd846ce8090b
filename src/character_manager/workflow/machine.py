"""The workflow orchestrator: owns WorkflowState and applies operator commands."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from character_manager.controllers.execution import ExecutionController, PlanSummary, build_summary
from character_manager.controllers.search import DEFAULT_MAX_RESULTS, SearchController
from character_manager.controllers.transfer import TransferTargetResolver
from character_manager.controllers.vehicles import VehicleDispositionEngine
from character_manager.display.strings import DEFAULT_STRINGS, merge_strings
from character_manager.domain.models import (
    CandidateList,
    DispositionChoice,
    SearchMode,
    SessionConfig,
)
from character_manager.gateway.client import RemoteCallGateway
from character_manager.workflow.commands import (
    Advance,
    Cancel,
    ChooseDisposition,
    Close,
    Command,
    Execute,
    ManageVehicles,
    Search,
    SearchTransferTargets,
    SelectCandidate,
    SelectTransferTarget,
    ToggleVehicle,
)
from character_manager.workflow.gate import evaluate_plan
from character_manager.workflow.state import Reason, Stage, TransitionResult, WorkflowState

logger = logging.getLogger(__name__)

LEGAL_STAGES: dict[type, frozenset[Stage]] = {
    Search: frozenset({Stage.SEARCH, Stage.RESULTS}),
    SelectCandidate: frozenset({Stage.RESULTS}),
    Advance: frozenset({Stage.RESULTS}),
    ManageVehicles: frozenset({Stage.VEHICLE_CHOICE}),
    ToggleVehicle: frozenset({Stage.VEHICLE_SELECTION}),
    ChooseDisposition: frozenset({Stage.VEHICLE_CHOICE, Stage.VEHICLE_SELECTION}),
    SearchTransferTargets: frozenset({Stage.TRANSFER_TARGET}),
    SelectTransferTarget: frozenset({Stage.TRANSFER_TARGET}),
    Execute: frozenset({Stage.CONFIRMATION}),
    Cancel: frozenset(
        {Stage.CONFIRMATION, Stage.VEHICLE_SELECTION, Stage.TRANSFER_TARGET, Stage.VEHICLE_CHOICE}
    ),
}

CANCEL_TARGETS: dict[Stage, Stage] = {
    Stage.CONFIRMATION: Stage.RESULTS,
    Stage.VEHICLE_SELECTION: Stage.VEHICLE_CHOICE,
    Stage.TRANSFER_TARGET: Stage.VEHICLE_SELECTION,
    Stage.VEHICLE_CHOICE: Stage.RESULTS,
}


class Workflow:
    """Single transition function over one console session.

    Commands are serialised; a host-initiated hide or an operator close is
    applied immediately and turns any in-flight response stale.
    """

    def __init__(
        self,
        gateway: RemoteCallGateway,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        complete_delay_seconds: float = 1.5,
        base_strings: Mapping[str, str] | None = None,
    ) -> None:
        self.gateway = gateway
        self.complete_delay_seconds = complete_delay_seconds
        self.state = WorkflowState()
        self.session = SessionConfig()
        self.base_strings = {**DEFAULT_STRINGS, **(base_strings or {})}
        self.strings = dict(self.base_strings)
        self.search = SearchController(gateway, max_results=max_results)
        self.vehicles = VehicleDispositionEngine(gateway)
        self.transfer = TransferTargetResolver(gateway, max_results=max_results)
        self.execution = ExecutionController(gateway)
        self.pending_close: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()
        self._handlers: dict[type, Callable[[Any], Awaitable[TransitionResult]]] = {
            Search: self._on_search,
            SelectCandidate: self._on_select_candidate,
            Advance: self._on_advance,
            ManageVehicles: self._on_manage_vehicles,
            ToggleVehicle: self._on_toggle_vehicle,
            ChooseDisposition: self._on_choose_disposition,
            SearchTransferTargets: self._on_search_transfer_targets,
            SelectTransferTarget: self._on_select_transfer_target,
            Execute: self._on_execute,
            Cancel: self._on_cancel,
        }

    def open(self, session: SessionConfig) -> None:
        self.session = session
        self.gateway.set_token(session.token)
        self.strings = merge_strings(self.base_strings, session.translations)
        self.state.reset(Stage.SEARCH)
        logger.info(
            "Console opened (vehicle transfer %s, restore %s)",
            "on" if session.veh_transfert else "off",
            "on" if session.restore_enabled else "off",
        )

    def hide(self) -> None:
        self.state.reset(Stage.CLOSED)

    async def close(self) -> None:
        self.hide()
        await self.gateway.try_call("closeMenu", {})

    @property
    def can_execute(self) -> bool:
        if self.state.stage is not Stage.CONFIRMATION or self.state.loading:
            return False
        return evaluate_plan(self.state, self.session).allowed

    def summary(self) -> PlanSummary | None:
        if self.state.stage is not Stage.CONFIRMATION:
            return None
        return build_summary(self.state, self.strings)

    async def dispatch(self, command: Command) -> TransitionResult:
        if isinstance(command, Close):
            await self.close()
            return self.state.accept()
        if not self.state.visible:
            return self._rejected(command, self.state.reject(Reason.CLOSED))

        async with self._lock:
            if self.state.stage not in LEGAL_STAGES[type(command)]:
                result = self.state.reject(Reason.ILLEGAL_STAGE, type(command).__name__)
            else:
                result = await self._handlers[type(command)](command)

        if not result.accepted:
            return self._rejected(command, result)
        if result.stage is Stage.COMPLETE:
            self.pending_close = asyncio.create_task(
                self._close_after_delay(self.state.generation)
            )
        return result

    def _rejected(self, command: Command, result: TransitionResult) -> TransitionResult:
        logger.debug(
            "Rejected %s in stage %s: %s %s",
            type(command).__name__,
            result.stage.value,
            result.reason.value if result.reason else "",
            result.detail or "",
        )
        return result

    async def _close_after_delay(self, generation: int) -> None:
        await asyncio.sleep(self.complete_delay_seconds)
        if self.state.generation != generation or self.state.stage is not Stage.COMPLETE:
            return
        await self.close()

    async def _on_search(self, command: Search) -> TransitionResult:
        return await self.search.search(self.state, self.session, command.criteria, command.mode)

    async def _on_select_candidate(self, command: SelectCandidate) -> TransitionResult:
        return self.search.select(self.state, command.key)

    async def _on_advance(self, command: Advance) -> TransitionResult:
        if self.state.selected_player is None:
            return self.state.reject(Reason.NO_PLAYER)
        if self.state.mode is SearchMode.RESTORE:
            if not self.session.restore_enabled:
                return self.state.reject(Reason.RESTORE_DISABLED)
            self.state.clear_vehicle_plan()
            self.state.stage = Stage.CONFIRMATION
            return self.state.accept()
        return await self.vehicles.enter(self.state, self.session)

    async def _on_manage_vehicles(self, command: ManageVehicles) -> TransitionResult:
        return self.vehicles.manage(self.state)

    async def _on_toggle_vehicle(self, command: ToggleVehicle) -> TransitionResult:
        return self.vehicles.toggle(self.state, command.plate)

    async def _on_choose_disposition(self, command: ChooseDisposition) -> TransitionResult:
        return self.vehicles.choose(self.state, command.kind)

    async def _on_search_transfer_targets(self, command: SearchTransferTargets) -> TransitionResult:
        return await self.transfer.search(self.state, command.criteria)

    async def _on_select_transfer_target(self, command: SelectTransferTarget) -> TransitionResult:
        return self.transfer.select(self.state, command.key)

    async def _on_execute(self, command: Execute) -> TransitionResult:
        return await self.execution.execute(self.state, self.session)

    async def _on_cancel(self, command: Cancel) -> TransitionResult:
        state = self.state
        if state.stage is Stage.TRANSFER_TARGET:
            state.disposition = DispositionChoice.DELETE
            state.transfer_target = None
            state.transfer_candidates = CandidateList.empty()
        state.stage = CANCEL_TARGETS[state.stage]
        return state.accept()
