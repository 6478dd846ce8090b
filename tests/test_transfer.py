from __future__ import annotations

import pytest
from conftest import player

from character_manager.domain.models import DispositionChoice, ResultStatus, SearchCriteria
from character_manager.workflow.commands import (
    Advance,
    Cancel,
    ChooseDisposition,
    ManageVehicles,
    Search,
    SearchTransferTargets,
    SelectCandidate,
    SelectTransferTarget,
)
from character_manager.workflow.state import Reason, Stage


async def _at_transfer_target(workflow, host) -> None:
    host.replies["searchPlayer"] = {"success": True, "players": [player("SRC")]}
    host.replies["getPlayerVehicles"] = {
        "success": True,
        "vehicles": [{"plate": "AB12", "model": "429", "value": 0}],
    }
    host.replies["resolveVehicleHashes"] = {"success": True, "resolved": ["adder"]}
    await workflow.dispatch(Search(SearchCriteria(lastname="Doe")))
    await workflow.dispatch(SelectCandidate("SRC"))
    await workflow.dispatch(Advance())
    await workflow.dispatch(ManageVehicles())
    await workflow.dispatch(ChooseDisposition(DispositionChoice.TRANSFER))


@pytest.mark.asyncio
async def test_transfer_search_excludes_source_player(workflow, host) -> None:
    await _at_transfer_target(workflow, host)
    host.replies["searchTransferTargets"] = {
        "success": True,
        "players": [player("SRC"), player("T1", "Jane", "Roe"), {"identifier": "SRC"}],
    }

    result = await workflow.dispatch(SearchTransferTargets(SearchCriteria(firstname="Jane")))

    assert result.accepted is True
    keys = [p.key for p in workflow.state.transfer_candidates.players]
    assert keys == ["T1"]
    assert "searchType" not in host.body("searchTransferTargets")
    assert host.body("searchTransferTargets")["phonenumber"] == ""


@pytest.mark.asyncio
async def test_transfer_overflow_counts_after_self_filter(workflow, host) -> None:
    await _at_transfer_target(workflow, host)
    host.replies["searchTransferTargets"] = {
        "success": True,
        "players": [player("SRC")] + [player(f"T{i}") for i in range(10)],
    }

    await workflow.dispatch(SearchTransferTargets(SearchCriteria(lastname="Doe")))

    assert workflow.state.transfer_candidates.status is ResultStatus.MATCHES
    assert len(workflow.state.transfer_candidates.players) == 10


@pytest.mark.asyncio
async def test_select_target_moves_to_confirmation(workflow, host) -> None:
    await _at_transfer_target(workflow, host)
    host.replies["searchTransferTargets"] = {"success": True, "players": [player("T1", "Jane", "Roe")]}
    await workflow.dispatch(SearchTransferTargets(SearchCriteria(firstname="Jane")))

    result = await workflow.dispatch(SelectTransferTarget("T1"))

    assert result.accepted is True
    assert workflow.state.stage is Stage.CONFIRMATION
    assert workflow.state.transfer_target.key == "T1"
    assert workflow.state.disposition is DispositionChoice.TRANSFER
    assert workflow.can_execute is True


@pytest.mark.asyncio
async def test_source_player_cannot_be_selected_as_target(workflow, host) -> None:
    await _at_transfer_target(workflow, host)
    host.replies["searchTransferTargets"] = {"success": True, "players": [player("SRC")]}
    await workflow.dispatch(SearchTransferTargets(SearchCriteria(firstname="John")))

    result = await workflow.dispatch(SelectTransferTarget("SRC"))

    assert workflow.state.transfer_candidates.status is ResultStatus.NO_RESULTS
    assert result.reason is Reason.UNKNOWN_CANDIDATE
    assert workflow.state.stage is Stage.TRANSFER_TARGET


@pytest.mark.asyncio
async def test_empty_transfer_criteria_rejected(workflow, host) -> None:
    await _at_transfer_target(workflow, host)
    calls_before = len(host.calls)

    result = await workflow.dispatch(SearchTransferTargets(SearchCriteria()))

    assert result.reason is Reason.EMPTY_CRITERIA
    assert len(host.calls) == calls_before


@pytest.mark.asyncio
async def test_cancel_from_target_returns_to_selection(workflow, host) -> None:
    await _at_transfer_target(workflow, host)
    host.replies["searchTransferTargets"] = {"success": True, "players": [player("T1")]}
    await workflow.dispatch(SearchTransferTargets(SearchCriteria(firstname="Jane")))

    result = await workflow.dispatch(Cancel())

    assert result.stage is Stage.VEHICLE_SELECTION
    assert workflow.state.transfer_candidates.players == ()
    assert workflow.state.disposition is DispositionChoice.DELETE
    assert workflow.state.selection == {"AB12"}
