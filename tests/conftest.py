from __future__ import annotations

import asyncio
import contextlib
import json
import os
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from character_manager.domain.models import SessionConfig
from character_manager.gateway.client import RemoteCallGateway
from character_manager.workflow.machine import Workflow

HOST_BASE_URL = "http://host.test/character-manager"

Reply = dict[str, Any] | Exception | httpx.Response | Callable[[dict[str, Any]], Any]


def pytest_sessionstart(session: pytest.Session) -> None:
    # Unit tests never write the call journal to the project tree.
    os.environ.setdefault("JOURNAL_ENABLED", "false")


@pytest.fixture(autouse=True)
def _close_default_event_loop() -> None:
    yield
    policy = asyncio.get_event_loop_policy()
    local = getattr(policy, "_local", None)
    loop = getattr(local, "_loop", None) if local is not None else None
    if loop is not None and not loop.is_running() and not loop.is_closed():
        with contextlib.suppress(Exception):
            loop.close()
    if loop is not None:
        with contextlib.suppress(Exception):
            policy.set_event_loop(None)


class HostStub:
    """Answers host operations from canned replies and records every request."""

    def __init__(self) -> None:
        self.replies: dict[str, Reply] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        operation = request.url.path.rsplit("/", 1)[-1]
        body = json.loads(request.content or b"{}")
        self.calls.append((operation, body))
        reply = self.replies.get(operation, {"success": True})
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(body)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    @property
    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]

    def body(self, operation: str) -> dict[str, Any]:
        for name, body in reversed(self.calls):
            if name == operation:
                return body
        raise AssertionError(f"{operation} was never called")


def player(citizenid: str, firstname: str = "John", lastname: str = "Doe", **extra: Any) -> dict:
    return {
        "citizenid": citizenid,
        "charinfo": json.dumps({"firstname": firstname, "lastname": lastname, "phone": "555-0101"}),
        **extra,
    }


@pytest.fixture
def host() -> HostStub:
    return HostStub()


@pytest.fixture
def gateway(host: HostStub) -> RemoteCallGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(host.handler))
    gateway = RemoteCallGateway(HOST_BASE_URL, client=client)
    gateway.set_token("session-token")
    return gateway


@pytest.fixture
def workflow(gateway: RemoteCallGateway) -> Workflow:
    flow = Workflow(gateway, complete_delay_seconds=0)
    flow.open(SessionConfig(token="session-token", vehTransfert=True, safeWipeMode=True))
    return flow
