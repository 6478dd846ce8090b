"""JSON view model of the console, rendered by the presentation layer."""

from __future__ import annotations

from typing import Any

from character_manager.controllers.logs import AuditLogViewer
from character_manager.domain.models import CandidateList, LogEntry, PlayerRecord
from character_manager.workflow.machine import Workflow
from character_manager.workflow.state import TransitionResult


def _player(player: PlayerRecord | None) -> dict[str, Any] | None:
    if player is None:
        return None
    return {
        "key": player.key,
        "citizenid": player.citizenid,
        "identifier": player.identifier,
        "name": player.display_name,
        "phone": player.phone or None,
        "online": player.online,
    }


def _candidates(candidates: CandidateList) -> dict[str, Any]:
    return {
        "status": candidates.status.value,
        "total": candidates.total,
        "selectable": candidates.selectable,
        "players": [_player(player) for player in candidates.players],
    }


def _log_timestamp(entry: LogEntry) -> str | None:
    if entry.occurred_at is not None:
        return entry.occurred_at.isoformat()
    if entry.timestamp is None or entry.timestamp == "":
        return None
    # Unparseable host values are shown verbatim.
    return str(entry.timestamp)


def _log_entry(entry: LogEntry, expanded: bool) -> dict[str, Any]:
    return {
        "action": entry.action,
        "timestamp": _log_timestamp(entry),
        "identifier": entry.identifier,
        "citizenid": entry.citizenid,
        "name": entry.display_name,
        "phone": entry.phone,
        "admin": entry.admin_label,
        "tables_count": entry.tables_count,
        "vehicle_transferred": entry.vehicle_transferred,
        "transfer_target_name": entry.transfer_target_name,
        "vehicles": [vehicle.model_dump() for vehicle in entry.vehicles],
        "expanded": expanded,
    }


def build_snapshot(workflow: Workflow, logs: AuditLogViewer) -> dict[str, Any]:
    state = workflow.state
    summary = workflow.summary()
    log_view = logs.state
    return {
        "visible": state.visible,
        "stage": state.stage.value,
        "mode": state.mode.value,
        "loading": state.loading,
        "candidates": _candidates(state.candidates),
        "selected_player": _player(state.selected_player),
        "vehicles": [
            {
                "plate": vehicle.plate,
                "model": vehicle.display_model,
                "value": vehicle.value,
                "selected": vehicle.plate in state.selection,
            }
            for vehicle in state.inventory
        ],
        "disposition": state.disposition.value,
        "transfer_candidates": _candidates(state.transfer_candidates),
        "transfer_target": _player(state.transfer_target),
        "summary": summary.to_dict() if summary else None,
        "can_execute": workflow.can_execute,
        "logs": {
            "status": log_view.status.value,
            "searched": log_view.searched,
            "loading": log_view.loading,
            "entries": [
                _log_entry(entry, index in log_view.expanded)
                for index, entry in enumerate(log_view.entries)
            ],
        },
        "flags": {
            "vehicle_transfer": workflow.session.veh_transfert,
            "restore_enabled": workflow.session.restore_enabled,
        },
        "strings": dict(workflow.strings),
    }


def result_payload(result: TransitionResult) -> dict[str, Any]:
    return {
        "accepted": result.accepted,
        "stage": result.stage.value,
        "reason": result.reason.value if result.reason else None,
        "detail": result.detail,
    }
