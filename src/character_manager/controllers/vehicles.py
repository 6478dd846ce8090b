"""Vehicle disposition: inventory fetch, name resolution, selection and the delete/keep/transfer choice."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from character_manager.controllers.base import StageController
from character_manager.domain.models import (
    CandidateList,
    DispositionChoice,
    SessionConfig,
    VehicleRecord,
)
from character_manager.workflow.state import Reason, Stage, TransitionResult, WorkflowState

logger = logging.getLogger(__name__)


def apply_resolved_names(
    vehicles: Sequence[VehicleRecord],
    resolved: Sequence[object],
) -> list[VehicleRecord]:
    """Map resolved names back onto vehicles by position.

    A missing, empty or non-string entry keeps the raw identifier.
    """
    named: list[VehicleRecord] = []
    for index, vehicle in enumerate(vehicles):
        name = resolved[index] if index < len(resolved) else None
        if isinstance(name, str) and name.strip():
            named.append(vehicle.with_model(name.strip()))
            continue
        named.append(vehicle)
    return named


class VehicleDispositionEngine(StageController):
    async def enter(self, state: WorkflowState, session: SessionConfig) -> TransitionResult:
        """Prepare the vehicle plan for the selected player.

        Without vehicle transfer enabled, or when the player owns nothing the
        host can report, the plan defaults to deleting everything and the
        workflow goes straight to confirmation.
        """
        player = state.selected_player
        if player is None:
            return state.reject(Reason.NO_PLAYER)

        state.clear_vehicle_plan()
        if not session.veh_transfert:
            state.stage = Stage.CONFIRMATION
            return state.accept()

        response = await self._request(
            state, "getPlayerVehicles", {"playerData": player.to_payload()}
        )
        if response is None:
            return state.reject(Reason.STALE_RESPONSE)

        vehicles = self._parse_inventory(response.items("vehicles")) if response.success else []
        if not vehicles:
            logger.info("No vehicles to manage for %s", player.key)
            state.stage = Stage.CONFIRMATION
            return state.accept()

        response = await self._request(
            state, "resolveVehicleHashes", {"hashes": [vehicle.model for vehicle in vehicles]}
        )
        if response is None:
            return state.reject(Reason.STALE_RESPONSE)
        if response.success:
            vehicles = apply_resolved_names(vehicles, response.items("resolved"))
        else:
            logger.info("Vehicle name resolution unavailable; showing raw model identifiers")

        state.replace_inventory(
            vehicles,
            selection=[vehicle.plate for vehicle in vehicles if vehicle.preselected],
        )
        state.stage = Stage.VEHICLE_CHOICE
        logger.info(
            "Loaded %d vehicle(s) for %s, %d preselected",
            len(vehicles),
            player.key,
            len(state.selection),
        )
        return state.accept()

    @staticmethod
    def _parse_inventory(raw_vehicles: list[object]) -> list[VehicleRecord]:
        vehicles: list[VehicleRecord] = []
        seen: set[str] = set()
        for raw in raw_vehicles:
            vehicle = VehicleRecord.from_host(raw)
            if vehicle is None:
                logger.warning("Ignoring host vehicle without a plate")
                continue
            if vehicle.plate in seen:
                logger.warning("Ignoring duplicate vehicle plate %r", vehicle.plate)
                continue
            seen.add(vehicle.plate)
            vehicles.append(vehicle)
        return vehicles

    def manage(self, state: WorkflowState) -> TransitionResult:
        state.stage = Stage.VEHICLE_SELECTION
        return state.accept()

    def toggle(self, state: WorkflowState, plate: str) -> TransitionResult:
        if not state.toggle(plate):
            return state.reject(Reason.UNKNOWN_PLATE, plate)
        return state.accept()

    def choose(self, state: WorkflowState, kind: DispositionChoice) -> TransitionResult:
        if kind is not DispositionChoice.DELETE and state.stage is not Stage.VEHICLE_SELECTION:
            return state.reject(Reason.ILLEGAL_STAGE, kind.value)

        if kind is DispositionChoice.TRANSFER:
            if not state.selection:
                return state.reject(Reason.EMPTY_SELECTION)
            state.disposition = DispositionChoice.TRANSFER
            state.transfer_target = None
            state.transfer_candidates = CandidateList.empty()
            state.stage = Stage.TRANSFER_TARGET
            return state.accept()

        state.disposition = kind
        state.transfer_target = None
        state.stage = Stage.CONFIRMATION
        return state.accept()
