"""Domain records exchanged with the host runtime.

Host payloads are loosely typed: identity may live in ``citizenid`` or
``identifier``, names may be top-level or nested in ``charinfo`` (sometimes
as a JSON string), and numbers may arrive as strings. Everything is
normalised here so the workflow only ever sees validated records.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from character_manager.utils.time import parse_timestamp


class SearchMode(str, Enum):
    WIPE = "wipe"
    RESTORE = "restore"


class DispositionChoice(str, Enum):
    DELETE = "delete"
    KEEP = "keep"
    TRANSFER = "transfer"


class ResultStatus(str, Enum):
    NO_RESULTS = "no_results"
    TOO_MANY = "too_many"
    MATCHES = "matches"


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _charinfo(data: Mapping[str, Any]) -> Mapping[str, Any]:
    raw = data.get("charinfo")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return {}
    return raw if isinstance(raw, Mapping) else {}


def canonical_key_of(data: Mapping[str, Any]) -> str | None:
    """Return ``citizenid`` or ``identifier`` as text, or None if neither is set."""
    for field in ("citizenid", "identifier"):
        value = _text(data.get(field))
        if value:
            return value
    return None


class PlayerRecord(BaseModel):
    """A player (or transfer-target character) returned by a host search."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="Canonical key: citizenid or identifier.")
    citizenid: str | None = None
    identifier: str | None = None
    firstname: str = ""
    lastname: str = ""
    phone: str = ""
    online: bool = False
    source: dict[str, Any] = Field(default_factory=dict, repr=False)

    @classmethod
    def from_host(cls, data: object) -> PlayerRecord | None:
        if not isinstance(data, Mapping):
            return None
        key = canonical_key_of(data)
        if key is None:
            return None
        charinfo = _charinfo(data)
        return cls(
            key=key,
            citizenid=_text(data.get("citizenid")) or None,
            identifier=_text(data.get("identifier")) or None,
            firstname=_text(data.get("firstname") or charinfo.get("firstname")),
            lastname=_text(data.get("lastname") or charinfo.get("lastname")),
            phone=_text(data.get("phone") or charinfo.get("phone")),
            online=bool(data.get("online") or data.get("isOnline")),
            source=dict(data),
        )

    @property
    def display_name(self) -> str:
        name = f"{self.firstname} {self.lastname}".strip()
        return name or "N/A"

    def to_payload(self) -> dict[str, Any]:
        """The host object exactly as it was received."""
        return dict(self.source)


class VehicleRecord(BaseModel):
    """One entry of a player's vehicle inventory."""

    model_config = ConfigDict(frozen=True)

    plate: str = Field(..., min_length=1)
    model: str = ""
    value: float = 0.0

    @field_validator("plate", "model", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> str:
        return "" if value is None else str(value)

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: object) -> float:
        if isinstance(value, bool):
            return 0.0
        try:
            number = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0.0
        if not math.isfinite(number) or number < 0:
            return 0.0
        return number

    @classmethod
    def from_host(cls, data: object) -> VehicleRecord | None:
        if not isinstance(data, Mapping) or data.get("plate") in (None, ""):
            return None
        return cls(plate=data["plate"], model=data.get("model"), value=data.get("value"))

    @property
    def preselected(self) -> bool:
        return self.value == 0

    @property
    def display_model(self) -> str:
        return self.model.upper() if self.model else "UNKNOWN"

    def with_model(self, name: str) -> VehicleRecord:
        return self.model_copy(update={"model": name})


class SearchCriteria(BaseModel):
    """Partial identity fields typed by the operator."""

    firstname: str = ""
    lastname: str = ""
    phone: str = ""

    @field_validator("firstname", "lastname", "phone", mode="before")
    @classmethod
    def _strip(cls, value: object) -> str:
        return _text(value)

    @property
    def is_empty(self) -> bool:
        return not (self.firstname or self.lastname or self.phone)

    def to_payload(self, phone_field: str = "phonenumber") -> dict[str, str]:
        return {"firstname": self.firstname, "lastname": self.lastname, phone_field: self.phone}


class SessionConfig(BaseModel):
    """Configuration pushed by the host with ``openMenu``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: str | None = None
    veh_transfert: bool = Field(default=False, alias="vehTransfert")
    # The host only disables restore with an explicit false.
    safe_wipe_mode: bool = Field(default=True, alias="safeWipeMode")
    translations: dict[str, str] = Field(default_factory=dict)

    @field_validator("token", mode="before")
    @classmethod
    def _token_text(cls, value: object) -> str | None:
        text = _text(value)
        return text or None

    @field_validator("translations", mode="before")
    @classmethod
    def _translations(cls, value: object) -> dict[str, str]:
        if not isinstance(value, Mapping):
            return {}
        return {str(k): str(v) for k, v in value.items() if v is not None}

    @property
    def restore_enabled(self) -> bool:
        return self.safe_wipe_mode


@dataclass(frozen=True)
class CandidateList:
    """Outcome of a player or transfer-target search."""

    status: ResultStatus
    players: tuple[PlayerRecord, ...] = ()
    total: int = 0

    @classmethod
    def empty(cls) -> CandidateList:
        return cls(status=ResultStatus.NO_RESULTS)

    @property
    def selectable(self) -> bool:
        return self.status is ResultStatus.MATCHES

    def find(self, key: str) -> PlayerRecord | None:
        if not self.selectable:
            return None
        for player in self.players:
            if player.key == key:
                return player
        return None


class LoggedVehicle(BaseModel):
    model_config = ConfigDict(frozen=True)

    plate: str = "N/A"
    model: str | None = None


def parse_vehicle_details(details: object) -> list[LoggedVehicle]:
    """Decode the vehicle list embedded in a log row.

    Malformed JSON, non-list payloads and non-object items yield no detail.
    """
    if isinstance(details, str):
        try:
            details = json.loads(details)
        except ValueError:
            return []
    if not isinstance(details, list):
        return []
    vehicles: list[LoggedVehicle] = []
    for item in details:
        if not isinstance(item, Mapping):
            continue
        vehicles.append(
            LoggedVehicle(
                plate=_text(item.get("plate")) or "N/A",
                model=_text(item.get("model")) or None,
            )
        )
    return vehicles


class LogEntry(BaseModel):
    """A historical wipe/restore action as recorded by the host."""

    model_config = ConfigDict(frozen=True)

    action: str = "restore"
    timestamp: Any = None
    occurred_at: datetime | None = None
    identifier: str | None = None
    citizenid: str | None = None
    firstname: str = ""
    lastname: str = ""
    phone: str | None = None
    admin_identifier: str | None = None
    admin_name: str | None = None
    tables_count: int | None = None
    vehicle_transferred: bool = False
    transfer_target_name: str | None = None
    vehicles: tuple[LoggedVehicle, ...] = ()

    @classmethod
    def from_host(cls, data: object) -> LogEntry | None:
        if not isinstance(data, Mapping):
            return None
        transferred = bool(data.get("vehicle_transferred"))
        tables_count = data.get("tables_count")
        try:
            tables_count = int(tables_count) if tables_count not in (None, "") else None
        except (TypeError, ValueError):
            tables_count = None
        return cls(
            action="wipe" if data.get("action") == "wipe" else "restore",
            timestamp=data.get("timestamp"),
            occurred_at=parse_timestamp(data.get("timestamp")),
            identifier=_text(data.get("identifier")) or None,
            citizenid=_text(data.get("citizenid")) or None,
            firstname=_text(data.get("firstname")),
            lastname=_text(data.get("lastname")),
            phone=_text(data.get("phone")) or None,
            admin_identifier=_text(data.get("admin_identifier")) or None,
            admin_name=_text(data.get("admin_name")) or None,
            tables_count=tables_count,
            vehicle_transferred=transferred,
            transfer_target_name=_text(data.get("transfer_target_name")) or None,
            vehicles=tuple(parse_vehicle_details(data.get("details"))) if transferred else (),
        )

    @property
    def admin_label(self) -> str | None:
        return self.admin_name or self.admin_identifier

    @property
    def display_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()
