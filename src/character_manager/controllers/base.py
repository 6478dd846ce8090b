"""Shared plumbing for stage controllers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from character_manager.gateway.client import HostResponse, RemoteCallGateway
from character_manager.workflow.state import WorkflowState

logger = logging.getLogger(__name__)


class StageController:
    def __init__(self, gateway: RemoteCallGateway) -> None:
        self._gateway = gateway

    async def _request(
        self,
        state: WorkflowState,
        operation: str,
        payload: Mapping[str, Any],
    ) -> HostResponse | None:
        """Issue one host call on behalf of the visible stage.

        Returns None when, by the time the host answers, the session was reset
        or a different player was selected; the caller must then leave the
        state alone.
        """
        ticket = state.ticket()
        state.loading = True
        try:
            response = await self._gateway.try_call(operation, payload)
        finally:
            if state.is_current(ticket):
                state.loading = False
        if not state.is_current(ticket):
            logger.debug("Discarding stale %s response", operation)
            return None
        return response
