"""Remote call gateway: the single point of contact with the host runtime."""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
import time
from collections.abc import Mapping
from typing import Any
from uuid import uuid4

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from character_manager.errors import RemoteCallError
from character_manager.journal.models import CallRecord
from character_manager.journal.store import JournalStore
from character_manager.utils.hashing import sha256_text
from character_manager.utils.masking import redact_sensitive_fields
from character_manager.utils.serialization import json_default
from character_manager.utils.time import utc_now_iso

logger = logging.getLogger(__name__)

TOKEN_FIELD = "token"


class HostResponse(BaseModel):
    """Uniform response envelope. Anything but ``success: true`` means nothing happened."""

    model_config = ConfigDict(extra="allow")

    success: bool = False

    @classmethod
    def failed(cls) -> HostResponse:
        return cls(success=False)

    def items(self, name: str) -> list[Any]:
        """Return a list-valued response field, or ``[]`` when absent or not a list."""
        value = (self.model_extra or {}).get(name)
        return value if isinstance(value, list) else []


class RemoteCallGateway:
    """Posts JSON operations to the host with the session credential attached.

    The gateway never retries. Callers decide what a failure means for their
    stage.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
        journal: JournalStore | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._client = client
        self._journal = journal
        self._token: str | None = None

    @property
    def has_token(self) -> bool:
        return self._token is not None

    def set_token(self, token: str | None) -> None:
        self._token = token or None

    async def call(
        self,
        operation: str,
        payload: Mapping[str, Any] | None = None,
    ) -> HostResponse:
        """Dispatch ``operation`` and return the host's response.

        Raises:
            RemoteCallError: on transport failure or an unusable response body.
        """
        body: dict[str, Any] = dict(payload or {})
        if self._token:
            body[TOKEN_FIELD] = self._token

        redacted = redact_sensitive_fields(body)
        logger.debug("-> %s %s", operation, json.dumps(redacted, default=json_default))

        started = time.monotonic()
        status = "failed"
        error: str | None = None
        try:
            data = await self._post(operation, body)
            if not isinstance(data, dict):
                raise RemoteCallError(operation, "response body is not a JSON object")
            try:
                response = HostResponse.model_validate(data)
            except ValidationError as exc:
                raise RemoteCallError(operation, "response envelope is malformed") from exc
            status = "success" if response.success else "rejected"
            return response
        except RemoteCallError as exc:
            error = str(exc)
            raise
        finally:
            duration_ms = int((time.monotonic() - started) * 1000)
            logger.debug("<- %s %s in %dms", operation, status, duration_ms)
            await self._record(operation, redacted, status, duration_ms, error)

    async def try_call(
        self,
        operation: str,
        payload: Mapping[str, Any] | None = None,
    ) -> HostResponse:
        """Like :meth:`call`, but transport failures come back as ``success=False``."""
        try:
            return await self.call(operation, payload)
        except RemoteCallError as exc:
            logger.warning("Host call failed: %s", exc)
            return HostResponse.failed()

    async def _post(self, operation: str, body: dict[str, Any]) -> object:
        url = f"{self._base_url}/{operation}"
        content = json.dumps(body, default=json_default)
        headers = {"Content-Type": "application/json; charset=UTF-8"}
        try:
            if self._client is not None:
                response = await self._client.post(
                    url, content=content, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, content=content, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as exc:
            raise RemoteCallError(operation, f"transport error: {exc}") from exc
        except ValueError as exc:
            raise RemoteCallError(operation, "response body is not valid JSON") from exc

    async def _record(
        self,
        operation: str,
        redacted: object,
        status: str,
        duration_ms: int,
        error: str | None,
    ) -> None:
        if self._journal is None:
            return
        record = CallRecord(
            call_id=uuid4().hex,
            operation=operation,
            request_hash=sha256_text(json.dumps(redacted, sort_keys=True, default=json_default)),
            status=status,
            duration_ms=duration_ms,
            error=error,
            created_at=utc_now_iso(),
        )
        try:
            await asyncio.to_thread(self._journal.record_call, record)
        except sqlite3.Error as exc:
            logger.warning("Failed to journal %s call: %s", operation, exc)
