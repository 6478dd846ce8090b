from __future__ import annotations

import httpx
import pytest
from conftest import player

from character_manager.controllers.search import classify_candidates
from character_manager.domain.models import ResultStatus, SearchCriteria, SearchMode
from character_manager.workflow.commands import Search, SelectCandidate
from character_manager.workflow.state import Reason, Stage


def test_classify_candidates_matches() -> None:
    result = classify_candidates([player("C1"), player("C2")])

    assert result.status is ResultStatus.MATCHES
    assert [p.key for p in result.players] == ["C1", "C2"]


def test_classify_candidates_overflow_counts_keyless_entries() -> None:
    raw = [player(f"C{i}") for i in range(10)] + [{"firstname": "Ghost"}]

    result = classify_candidates(raw, max_results=10)

    assert result.status is ResultStatus.TOO_MANY
    assert result.total == 11
    assert result.players == ()


def test_classify_candidates_only_keyless_is_empty() -> None:
    result = classify_candidates([{"firstname": "Ghost"}])

    assert result.status is ResultStatus.NO_RESULTS
    assert result.total == 1


def test_classify_candidates_excludes_key_before_counting() -> None:
    raw = [player(f"C{i}") for i in range(11)]

    result = classify_candidates(raw, max_results=10, exclude_key="C0")

    assert result.status is ResultStatus.MATCHES
    assert "C0" not in [p.key for p in result.players]
    assert result.total == 10


@pytest.mark.asyncio
@pytest.mark.parametrize("criteria", [SearchCriteria(), SearchCriteria(firstname="  ", phone=" ")])
async def test_empty_criteria_make_no_remote_call(workflow, host, criteria) -> None:
    before = workflow.state.generation

    result = await workflow.dispatch(Search(criteria))

    assert result.accepted is False
    assert result.reason is Reason.EMPTY_CRITERIA
    assert host.calls == []
    assert workflow.state.stage is Stage.SEARCH
    assert workflow.state.generation == before


@pytest.mark.asyncio
async def test_search_sends_criteria_and_mode(workflow, host) -> None:
    host.replies["searchPlayer"] = {"success": True, "players": [player("C1")]}

    result = await workflow.dispatch(
        Search(SearchCriteria(firstname=" John ", phone="555"), mode=SearchMode.RESTORE)
    )

    assert result.accepted is True
    assert result.stage is Stage.RESULTS
    assert host.body("searchPlayer") == {
        "firstname": "John",
        "lastname": "",
        "phonenumber": "555",
        "searchType": "restore",
        "token": "session-token",
    }
    assert workflow.state.mode is SearchMode.RESTORE


@pytest.mark.asyncio
async def test_up_to_ten_results_are_selectable_with_single_selection(workflow, host) -> None:
    host.replies["searchPlayer"] = {
        "success": True,
        "players": [player(f"C{i}") for i in range(10)],
    }

    await workflow.dispatch(Search(SearchCriteria(lastname="Doe")))
    for i in range(10):
        result = await workflow.dispatch(SelectCandidate(f"C{i}"))
        assert result.accepted is True
        assert workflow.state.selected_player.key == f"C{i}"

    assert workflow.state.candidates.status is ResultStatus.MATCHES
    assert len(workflow.state.candidates.players) == 10


@pytest.mark.asyncio
async def test_more_than_ten_results_overflow_and_nothing_selectable(workflow, host) -> None:
    host.replies["searchPlayer"] = {
        "success": True,
        "players": [player(f"C{i}") for i in range(11)],
    }

    await workflow.dispatch(Search(SearchCriteria(lastname="Doe")))
    result = await workflow.dispatch(SelectCandidate("C0"))

    assert workflow.state.candidates.status is ResultStatus.TOO_MANY
    assert workflow.state.candidates.total == 11
    assert result.accepted is False
    assert result.reason is Reason.UNKNOWN_CANDIDATE
    assert workflow.state.selected_player is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [{"success": False}, {"success": True}, {"success": True, "players": []}, httpx.ConnectError("down")],
)
async def test_failed_or_empty_search_shows_no_results(workflow, host, reply) -> None:
    host.replies["searchPlayer"] = reply

    result = await workflow.dispatch(Search(SearchCriteria(firstname="John")))

    assert result.accepted is True
    assert workflow.state.stage is Stage.RESULTS
    assert workflow.state.candidates.status is ResultStatus.NO_RESULTS


@pytest.mark.asyncio
async def test_restore_search_rejected_when_restore_disabled(workflow, host) -> None:
    workflow.session = workflow.session.model_copy(update={"safe_wipe_mode": False})

    result = await workflow.dispatch(
        Search(SearchCriteria(firstname="John"), mode=SearchMode.RESTORE)
    )

    assert result.reason is Reason.RESTORE_DISABLED
    assert host.calls == []


@pytest.mark.asyncio
async def test_new_search_clears_pending_selection(workflow, host) -> None:
    host.replies["searchPlayer"] = {"success": True, "players": [player("C1"), player("C2")]}
    await workflow.dispatch(Search(SearchCriteria(lastname="Doe")))
    await workflow.dispatch(SelectCandidate("C1"))

    await workflow.dispatch(Search(SearchCriteria(lastname="Roe")))

    assert workflow.state.selected_player is None
    assert workflow.state.stage is Stage.RESULTS
