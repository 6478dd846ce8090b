"""Operator commands accepted by the workflow transition function."""

from __future__ import annotations

from dataclasses import dataclass

from character_manager.domain.models import DispositionChoice, SearchCriteria, SearchMode


@dataclass(frozen=True)
class Search:
    criteria: SearchCriteria
    mode: SearchMode = SearchMode.WIPE


@dataclass(frozen=True)
class SelectCandidate:
    key: str


@dataclass(frozen=True)
class Advance:
    pass


@dataclass(frozen=True)
class ManageVehicles:
    pass


@dataclass(frozen=True)
class ToggleVehicle:
    plate: str


@dataclass(frozen=True)
class ChooseDisposition:
    kind: DispositionChoice


@dataclass(frozen=True)
class SearchTransferTargets:
    criteria: SearchCriteria


@dataclass(frozen=True)
class SelectTransferTarget:
    key: str


@dataclass(frozen=True)
class Execute:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class Close:
    pass


Command = (
    Search
    | SelectCandidate
    | Advance
    | ManageVehicles
    | ToggleVehicle
    | ChooseDisposition
    | SearchTransferTargets
    | SelectTransferTarget
    | Execute
    | Cancel
    | Close
)
