"""Display strings used by the plan summary and the log viewer.

The host pushes translations with ``openMenu``; any key it omits falls back
to the optional YAML override file, then to ``DEFAULT_STRINGS``.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import yaml

DEFAULT_STRINGS: dict[str, str] = {
    "title": "Character Manager",
    "noResults": "No results found",
    "tooMany": "Too many results",
    "wipeConfirm": "Confirm Wipe",
    "restoreConfirm": "Confirm Restore",
    "vehicleActionTitle": "Vehicle action",
    "vehicleSelectedCount": "selected vehicle(s)",
    "vehTransfertTo": "Vehicles will be transferred to",
    "vehicleKeepConfirm": "Only selected vehicles will be kept; others will be deleted.",
    "vehicleDeleteConfirm": "Vehicles will be deleted.",
    "vehicleCount": "vehicle(s) found",
    "vehicleNone": "No vehicles found",
    "logsNoLogs": "No logs found",
    "logsActionWipe": "WIPE",
    "logsActionRestore": "RESTORE",
    "logsIdentifier": "Identifier",
    "logsCitizenId": "Citizen ID",
    "logsName": "Name",
    "logsAdmin": "Admin",
    "logsTablesModified": "Tables Modified",
    "logsTransferredTo": "Transferred to",
    "logsVehiclesTransferred": "vehicle(s) transferred",
    "logsUnknown": "Unknown",
}


def load_strings(path: str | None) -> dict[str, str]:
    """Return the default strings overlaid with the YAML file at *path*, if any."""
    strings = dict(DEFAULT_STRINGS)
    if not path:
        return strings
    strings_path = Path(path)
    if not strings_path.exists():
        raise FileNotFoundError(f"Strings file not found: {strings_path}")
    with strings_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Strings file must contain a mapping: {strings_path}")
    strings.update({str(k): str(v) for k, v in data.items() if v is not None})
    return strings


def merge_strings(base: Mapping[str, str], translations: Mapping[str, str]) -> dict[str, str]:
    merged = dict(base)
    merged.update({k: v for k, v in translations.items() if v})
    return merged
