from __future__ import annotations

import logging
import sqlite3

import httpx
import pytest

from character_manager.errors import RemoteCallError
from character_manager.gateway.client import HostResponse, RemoteCallGateway
from character_manager.journal.store import JournalStore


def test_host_response_items_tolerates_missing_or_wrong_types() -> None:
    response = HostResponse.model_validate({"success": True, "players": [{"citizenid": "C1"}], "logs": "x"})

    assert response.items("players") == [{"citizenid": "C1"}]
    assert response.items("logs") == []
    assert response.items("vehicles") == []
    assert HostResponse.failed().success is False


@pytest.mark.asyncio
async def test_call_posts_json_with_token(gateway: RemoteCallGateway, host) -> None:
    host.replies["searchPlayer"] = {"success": True, "players": []}

    response = await gateway.call("searchPlayer", {"firstname": "John"})

    assert response.success is True
    assert host.calls == [("searchPlayer", {"firstname": "John", "token": "session-token"})]


@pytest.mark.asyncio
async def test_call_does_not_mutate_payload(gateway: RemoteCallGateway, host) -> None:
    payload = {"hashes": ["429"]}

    await gateway.call("resolveVehicleHashes", payload)

    assert payload == {"hashes": ["429"]}


@pytest.mark.asyncio
async def test_call_without_token_sends_no_credential(host) -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(host.handler))
    gateway = RemoteCallGateway("http://host.test/character-manager/", client=client)

    await gateway.call("closeMenu")

    assert gateway.has_token is False
    assert host.calls == [("closeMenu", {})]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [
        httpx.ConnectError("connection refused"),
        httpx.Response(500, json={"success": True}),
        httpx.Response(200, content=b"<html>"),
        httpx.Response(200, json=[1, 2]),
        httpx.Response(200, json={"success": {"nested": True}}),
    ],
)
async def test_call_raises_remote_call_error(gateway: RemoteCallGateway, host, reply) -> None:
    host.replies["wipePlayer"] = reply

    with pytest.raises(RemoteCallError) as excinfo:
        await gateway.call("wipePlayer", {})

    assert excinfo.value.operation == "wipePlayer"


@pytest.mark.asyncio
async def test_try_call_turns_transport_failure_into_unsuccessful_response(
    gateway: RemoteCallGateway, host, caplog
) -> None:
    host.replies["getPlayerVehicles"] = httpx.ConnectError("down")

    with caplog.at_level(logging.WARNING, logger="character_manager.gateway.client"):
        response = await gateway.try_call("getPlayerVehicles", {"playerData": {}})

    assert response.success is False
    assert "getPlayerVehicles" in caplog.text


@pytest.mark.asyncio
async def test_debug_log_redacts_token(gateway: RemoteCallGateway, caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="character_manager.gateway.client"):
        await gateway.call("searchPlayer", {"firstname": "John"})

    assert "session-token" not in caplog.text
    assert '"token": "***"' in caplog.text


@pytest.mark.asyncio
async def test_calls_are_journaled_without_raw_payload(host, tmp_path) -> None:
    path = tmp_path / "journal.sqlite"
    journal = JournalStore(str(path))
    client = httpx.AsyncClient(transport=httpx.MockTransport(host.handler))
    gateway = RemoteCallGateway("http://host.test/character-manager", client=client, journal=journal)
    gateway.set_token("secret-session")
    host.replies["restorePlayer"] = {"success": False}
    host.replies["wipePlayer"] = httpx.ConnectError("down")

    try:
        await gateway.call("restorePlayer", {"playerData": {"citizenid": "C1"}})
        with pytest.raises(RemoteCallError):
            await gateway.call("wipePlayer", {})
    finally:
        journal.close()

    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    try:
        records = {
            row["operation"]: row for row in conn.execute("SELECT * FROM remote_calls").fetchall()
        }
        leaked = conn.execute(
            "SELECT 1 FROM remote_calls WHERE request_hash LIKE ?", ("%secret%",)
        ).fetchone()
    finally:
        conn.close()

    assert records["restorePlayer"]["status"] == "rejected"
    assert records["restorePlayer"]["error"] is None
    assert len(records["restorePlayer"]["request_hash"]) == 64
    assert records["wipePlayer"]["status"] == "failed"
    assert "transport error" in records["wipePlayer"]["error"]
    assert leaked is None
