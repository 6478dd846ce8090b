"""Configuration management for the character manager console."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from character_manager.errors import ConfigurationError

_config_logger = logging.getLogger(__name__)


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class HostSettings(BaseModel):
    """Where the host runtime accepts outbound calls."""

    base_url: str = Field(default="http://127.0.0.1:30120/character-manager")
    timeout_seconds: float = Field(default=10.0, ge=0.1, le=120.0)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        candidate = value.strip().rstrip("/")
        if not candidate.lower().startswith(("http://", "https://")):
            raise ValueError("base_url must use http or https")
        return candidate


class BridgeSettings(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8765, ge=1024, le=65535)
    allowed_origins: tuple[str, ...] = Field(default=())


class WorkflowSettings(BaseModel):
    max_results: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Searches returning more matches than this must be refined.",
    )
    complete_delay_seconds: float = Field(default=1.5, ge=0.0, le=30.0)


class StorageSettings(BaseModel):
    journal_enabled: bool = Field(default=True)
    sqlite_path: str = Field(default="./data/journal.sqlite")
    sqlite_wal: bool = Field(default=True)
    journal_ttl_seconds: int = Field(
        default=604800, ge=0, description="Journal retention; 0 keeps every call"
    )


class StringsSettings(BaseModel):
    path: str | None = Field(default=None, description="Optional YAML display string overrides")


class Settings(BaseModel):
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    host: HostSettings = Field(default_factory=HostSettings)
    bridge: BridgeSettings = Field(default_factory=BridgeSettings)
    workflow: WorkflowSettings = Field(default_factory=WorkflowSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    strings: StringsSettings = Field(default_factory=StringsSettings)


ENV_KEYS = {
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
    "host_base_url": "HOST_BASE_URL",
    "host_timeout": "HOST_TIMEOUT_SECONDS",
    "bridge_host": "BRIDGE_HOST",
    "bridge_port": "BRIDGE_PORT",
    "bridge_origins": "BRIDGE_ALLOWED_ORIGINS",
    "max_results": "WORKFLOW_MAX_RESULTS",
    "complete_delay": "WORKFLOW_COMPLETE_DELAY_SECONDS",
    "journal_enabled": "JOURNAL_ENABLED",
    "sqlite_path": "JOURNAL_SQLITE_PATH",
    "sqlite_wal": "SQLITE_WAL",
    "journal_ttl": "JOURNAL_TTL_SECONDS",
    "strings_path": "STRINGS_PATH",
}

_TRUE_VALUES = frozenset({"1", "true", "yes"})


def _split_csv_preserve_case(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _resolve_path(path: str) -> str:
    candidate = Path(path)
    root = _project_root().resolve()
    if candidate.is_absolute():
        resolved = candidate.resolve()
    else:
        resolved = (root / candidate).resolve()
    if not resolved.is_relative_to(root):
        raise ValueError(f"Path traversal detected: '{path}' resolves outside project root")
    return str(resolved)


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        _config_logger.warning(
            "Invalid float value for %s: %r, using default %s", key, value, default
        )
        return default


def load_settings() -> Settings:
    """Load configuration and cache the result."""

    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=_project_root() / ".env")
    log_file_env = os.getenv(ENV_KEYS["log_file"])
    strings_path_env = os.getenv(ENV_KEYS["strings_path"])

    settings_data: dict[str, object] = {
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _resolve_path(log_file_env) if log_file_env else None,
        },
        "host": {
            "base_url": os.getenv(ENV_KEYS["host_base_url"], HostSettings().base_url),
            "timeout_seconds": _env_float(
                ENV_KEYS["host_timeout"], HostSettings().timeout_seconds
            ),
        },
        "bridge": {
            "host": os.getenv(ENV_KEYS["bridge_host"], BridgeSettings().host),
            "port": _env_int(ENV_KEYS["bridge_port"], BridgeSettings().port),
            "allowed_origins": tuple(
                _split_csv_preserve_case(os.getenv(ENV_KEYS["bridge_origins"]))
            ),
        },
        "workflow": {
            "max_results": _env_int(ENV_KEYS["max_results"], WorkflowSettings().max_results),
            "complete_delay_seconds": _env_float(
                ENV_KEYS["complete_delay"], WorkflowSettings().complete_delay_seconds
            ),
        },
        "storage": {
            "journal_enabled": _env_bool(
                ENV_KEYS["journal_enabled"], StorageSettings().journal_enabled
            ),
            "sqlite_path": _resolve_path(
                os.getenv(ENV_KEYS["sqlite_path"], StorageSettings().sqlite_path)
            ),
            "sqlite_wal": _env_bool(ENV_KEYS["sqlite_wal"], StorageSettings().sqlite_wal),
            "journal_ttl_seconds": _env_int(
                ENV_KEYS["journal_ttl"], StorageSettings().journal_ttl_seconds
            ),
        },
        "strings": {
            "path": _resolve_path(strings_path_env) if strings_path_env else None,
        },
    }

    try:
        settings = Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    if settings.storage.journal_enabled:
        Path(settings.storage.sqlite_path).parent.mkdir(parents=True, exist_ok=True)

    return settings
