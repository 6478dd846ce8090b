"""Workflow state: the single source of truth for an open console session."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from character_manager.domain.models import (
    CandidateList,
    DispositionChoice,
    PlayerRecord,
    SearchMode,
    VehicleRecord,
)


class Stage(str, Enum):
    SEARCH = "search"
    RESULTS = "results"
    VEHICLE_CHOICE = "vehicle_choice"
    VEHICLE_SELECTION = "vehicle_selection"
    TRANSFER_TARGET = "transfer_target"
    CONFIRMATION = "confirmation"
    COMPLETE = "complete"
    CLOSED = "closed"


class Reason(str, Enum):
    """Why a command was not applied."""

    CLOSED = "closed"
    ILLEGAL_STAGE = "illegal_stage"
    EMPTY_CRITERIA = "empty_criteria"
    RESTORE_DISABLED = "restore_disabled"
    NO_PLAYER = "no_player"
    UNKNOWN_CANDIDATE = "unknown_candidate"
    UNKNOWN_PLATE = "unknown_plate"
    EMPTY_SELECTION = "empty_selection"
    PLAN_INCOMPLETE = "plan_incomplete"
    REMOTE_FAILURE = "remote_failure"
    STALE_RESPONSE = "stale_response"


@dataclass(frozen=True)
class TransitionResult:
    accepted: bool
    stage: Stage
    reason: Reason | None = None
    detail: str | None = None


@dataclass(frozen=True)
class Ticket:
    """Identifies the session and player a remote call was issued for."""

    generation: int
    player_key: str | None


@dataclass
class WorkflowState:
    stage: Stage = Stage.CLOSED
    mode: SearchMode = SearchMode.WIPE
    candidates: CandidateList = field(default_factory=CandidateList.empty)
    selected_player: PlayerRecord | None = None
    inventory: list[VehicleRecord] = field(default_factory=list)
    selection: set[str] = field(default_factory=set)
    disposition: DispositionChoice = DispositionChoice.DELETE
    transfer_candidates: CandidateList = field(default_factory=CandidateList.empty)
    transfer_target: PlayerRecord | None = None
    loading: bool = False
    generation: int = 0

    @property
    def visible(self) -> bool:
        return self.stage is not Stage.CLOSED

    def accept(self) -> TransitionResult:
        return TransitionResult(True, self.stage)

    def reject(self, reason: Reason, detail: str | None = None) -> TransitionResult:
        return TransitionResult(False, self.stage, reason, detail)

    def reset(self, stage: Stage = Stage.SEARCH) -> None:
        """Return to the initial state. Responses issued before the reset become stale."""
        self.stage = stage
        self.mode = SearchMode.WIPE
        self.candidates = CandidateList.empty()
        self.selected_player = None
        self.clear_vehicle_plan()
        self.loading = False
        self.generation += 1

    def clear_vehicle_plan(self) -> None:
        self.inventory = []
        self.selection = set()
        self.disposition = DispositionChoice.DELETE
        self.transfer_candidates = CandidateList.empty()
        self.transfer_target = None

    def ticket(self) -> Ticket:
        key = self.selected_player.key if self.selected_player else None
        return Ticket(self.generation, key)

    def is_current(self, ticket: Ticket) -> bool:
        return ticket == self.ticket()

    def replace_inventory(
        self,
        vehicles: Iterable[VehicleRecord],
        selection: Iterable[str] | None = None,
    ) -> None:
        """Swap the inventory, keeping only selected plates that still exist."""
        self.inventory = list(vehicles)
        plates = {vehicle.plate for vehicle in self.inventory}
        wanted = self.selection if selection is None else set(selection)
        self.selection = wanted & plates

    def has_vehicle(self, plate: str) -> bool:
        return any(vehicle.plate == plate for vehicle in self.inventory)

    def toggle(self, plate: str) -> bool:
        if not self.has_vehicle(plate):
            return False
        if plate in self.selection:
            self.selection.discard(plate)
        else:
            self.selection.add(plate)
        return True

    def selected_plates(self) -> list[str]:
        """Selected plates in inventory order."""
        return [vehicle.plate for vehicle in self.inventory if vehicle.plate in self.selection]
