"""Data models for journal records."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CallRecord:
    call_id: str
    operation: str
    request_hash: str
    status: str
    duration_ms: int | None
    error: str | None
    created_at: str
