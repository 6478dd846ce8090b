"""Inbound bridge envelopes: host messages and operator commands."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from character_manager.domain.models import (
    DispositionChoice,
    SearchCriteria,
    SearchMode,
    SessionConfig,
)
from character_manager.errors import BridgeMessageError
from character_manager.workflow import commands


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore")


class OpenMenuMessage(_Envelope):
    action: Literal["openMenu"]
    config: SessionConfig | None = None


class CloseMenuMessage(_Envelope):
    action: Literal["closeMenu"]


HostMessage = Annotated[OpenMenuMessage | CloseMenuMessage, Field(discriminator="action")]


class _CriteriaFields(_Envelope):
    firstname: str = ""
    lastname: str = ""
    phone: str = ""

    @field_validator("firstname", "lastname", "phone", mode="before")
    @classmethod
    def _as_text(cls, value: object) -> str:
        return "" if value is None else str(value)

    def criteria(self) -> SearchCriteria:
        return SearchCriteria(firstname=self.firstname, lastname=self.lastname, phone=self.phone)


class SearchEnvelope(_CriteriaFields):
    type: Literal["search"]
    mode: SearchMode = SearchMode.WIPE

    def to_command(self) -> commands.Command:
        return commands.Search(criteria=self.criteria(), mode=self.mode)


class SelectCandidateEnvelope(_Envelope):
    type: Literal["select_candidate"]
    key: str

    def to_command(self) -> commands.Command:
        return commands.SelectCandidate(key=self.key)


class AdvanceEnvelope(_Envelope):
    type: Literal["advance"]

    def to_command(self) -> commands.Command:
        return commands.Advance()


class ManageVehiclesEnvelope(_Envelope):
    type: Literal["manage_vehicles"]

    def to_command(self) -> commands.Command:
        return commands.ManageVehicles()


class ToggleVehicleEnvelope(_Envelope):
    type: Literal["toggle_vehicle"]
    plate: str

    def to_command(self) -> commands.Command:
        return commands.ToggleVehicle(plate=self.plate)


class ChooseDispositionEnvelope(_Envelope):
    type: Literal["choose_disposition"]
    kind: DispositionChoice

    def to_command(self) -> commands.Command:
        return commands.ChooseDisposition(kind=self.kind)


class SearchTransferTargetsEnvelope(_CriteriaFields):
    type: Literal["search_transfer_targets"]

    def to_command(self) -> commands.Command:
        return commands.SearchTransferTargets(criteria=self.criteria())


class SelectTransferTargetEnvelope(_Envelope):
    type: Literal["select_transfer_target"]
    key: str

    def to_command(self) -> commands.Command:
        return commands.SelectTransferTarget(key=self.key)


class ExecuteEnvelope(_Envelope):
    type: Literal["execute"]

    def to_command(self) -> commands.Command:
        return commands.Execute()


class CancelEnvelope(_Envelope):
    type: Literal["cancel"]

    def to_command(self) -> commands.Command:
        return commands.Cancel()


class CloseEnvelope(_Envelope):
    type: Literal["close"]

    def to_command(self) -> commands.Command:
        return commands.Close()


CommandEnvelope = Annotated[
    SearchEnvelope
    | SelectCandidateEnvelope
    | AdvanceEnvelope
    | ManageVehiclesEnvelope
    | ToggleVehicleEnvelope
    | ChooseDispositionEnvelope
    | SearchTransferTargetsEnvelope
    | SelectTransferTargetEnvelope
    | ExecuteEnvelope
    | CancelEnvelope
    | CloseEnvelope,
    Field(discriminator="type"),
]


class LogSearchRequest(_CriteriaFields):
    pass


class LogToggleRequest(_Envelope):
    index: int


_host_message_adapter: TypeAdapter[Any] = TypeAdapter(HostMessage)
_command_adapter: TypeAdapter[Any] = TypeAdapter(CommandEnvelope)


def _errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
        for error in exc.errors()
    )


def parse_host_message(data: Any) -> OpenMenuMessage | CloseMenuMessage:
    try:
        return _host_message_adapter.validate_python(data)
    except ValidationError as exc:
        raise BridgeMessageError(f"Invalid host message: {_errors(exc)}") from exc


def parse_command(data: Any) -> commands.Command:
    try:
        envelope = _command_adapter.validate_python(data)
    except ValidationError as exc:
        raise BridgeMessageError(f"Invalid command: {_errors(exc)}") from exc
    return envelope.to_command()


def parse_log_search(data: Any) -> SearchCriteria:
    try:
        return LogSearchRequest.model_validate(data).criteria()
    except ValidationError as exc:
        raise BridgeMessageError(f"Invalid log search: {_errors(exc)}") from exc


def parse_log_toggle(data: Any) -> int:
    try:
        return LogToggleRequest.model_validate(data).index
    except ValidationError as exc:
        raise BridgeMessageError(f"Invalid log toggle: {_errors(exc)}") from exc
