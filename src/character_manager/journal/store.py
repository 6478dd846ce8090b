"""SQLite journal of outbound host calls."""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Mapping, Sequence

from character_manager.journal.models import CallRecord

_SqlValue = str | bytes | int | float | None
_SqlParams = Sequence[_SqlValue] | Mapping[str, _SqlValue]


class JournalStore:
    def __init__(self, path: str, wal: bool = True) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._closed = False
        if wal:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS remote_calls (
                call_id TEXT PRIMARY KEY,
                operation TEXT NOT NULL,
                request_hash TEXT NOT NULL,
                status TEXT NOT NULL,
                duration_ms INTEGER,
                error TEXT,
                created_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_remote_calls_created_at
                ON remote_calls(created_at);
            CREATE INDEX IF NOT EXISTS idx_remote_calls_operation
                ON remote_calls(operation, status);
            """
        )
        self._conn.commit()

    def execute(
        self,
        query: str,
        params: _SqlParams,
    ) -> None:
        with self._lock:
            self._conn.execute(query, params)
            self._conn.commit()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._conn.close()
            self._closed = True

    def record_call(self, record: CallRecord) -> None:
        self.execute(
            """
            INSERT INTO remote_calls (
                call_id, operation, request_hash, status, duration_ms, error, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.call_id,
                record.operation,
                record.request_hash,
                record.status,
                record.duration_ms,
                record.error,
                record.created_at,
            ),
        )

    def purge_older_than(self, ttl_seconds: int) -> int:
        """Delete calls older than ttl_seconds.

        Returns:
            Number of rows deleted.
        """
        # created_at is stored as UTC ISO text, so string comparison is chronological.
        cutoff = (datetime.now(timezone.utc) - timedelta(seconds=ttl_seconds)).isoformat()
        with self._lock:
            cursor = self._conn.execute(
                "DELETE FROM remote_calls WHERE created_at < ?",
                (cutoff,),
            )
            self._conn.commit()
            return cursor.rowcount
