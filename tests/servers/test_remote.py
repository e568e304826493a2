import logging

import httpx
import pytest
import pytest_asyncio
from mcp.types import JSONRPCMessage

from hubspot_mcp.core.transport import TransportClosedError
from hubspot_mcp.servers.remote import SESSION_HEADER, McpHttpSession, create_starlette_app
from hubspot_mcp.servers.server import create_server

INITIALIZE = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "initialize",
    "params": {
        "protocolVersion": "2025-03-26",
        "capabilities": {},
        "clientInfo": {"name": "test-client", "version": "0.1"},
    },
}
INITIALIZED = {"jsonrpc": "2.0", "method": "notifications/initialized"}


def make_app(registry, max_sessions=10):
    return create_starlette_app(
        create_server(registry),
        {"max_sessions": max_sessions, "session_idle_timeout": 600},
    )


@pytest_asyncio.fixture
async def app(registry):
    app = make_app(registry)
    yield app
    await app.state.sessions.close_all()


@pytest_asyncio.fixture
async def http(app):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        yield client


async def open_session(http):
    response = await http.post("/mcp", json=INITIALIZE)
    assert response.status_code == 200
    session_id = response.headers[SESSION_HEADER]
    ack = await http.post("/mcp", json=INITIALIZED, headers={SESSION_HEADER: session_id})
    assert ack.status_code == 202
    return session_id, response.json()


async def test_initialize_opens_a_session(http, app):
    session_id, reply = await open_session(http)

    assert reply["id"] == 1
    assert reply["result"]["serverInfo"]["name"] == "hubspot-mcp-server"
    assert len(app.state.sessions) == 1
    assert app.state.sessions.get(session_id) is not None


async def test_tools_list_and_call_over_http(http, registry):
    session_id, _ = await open_session(http)
    headers = {SESSION_HEADER: session_id}

    listed = await http.post(
        "/mcp", json={"jsonrpc": "2.0", "id": 2, "method": "tools/list"}, headers=headers
    )
    called = await http.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 3,
            "method": "tools/call",
            "params": {"name": "recent_contacts", "arguments": {}},
        },
        headers=headers,
    )

    assert listed.status_code == 200
    assert listed.headers[SESSION_HEADER] == session_id
    assert len(listed.json()["result"]["tools"]) == len(registry.all_tools())
    assert called.json()["id"] == 3
    assert '"AUTH_ERROR"' in called.json()["result"]["content"][0]["text"]


async def test_delete_closes_the_session(http, app):
    session_id, _ = await open_session(http)

    deleted = await http.delete("/mcp", headers={SESSION_HEADER: session_id})
    again = await http.delete("/mcp", headers={SESSION_HEADER: session_id})
    after = await http.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
        headers={SESSION_HEADER: session_id},
    )

    assert deleted.status_code == 204
    assert again.status_code == 404
    assert after.status_code == 404
    assert len(app.state.sessions) == 0


async def test_request_without_session_must_initialize(http):
    response = await http.post("/mcp", json={"jsonrpc": "2.0", "id": 2, "method": "tools/list"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == -32000


async def test_unknown_session_is_not_found(http):
    response = await http.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
        headers={SESSION_HEADER: "nope"},
    )
    assert response.status_code == 404


async def test_malformed_bodies_are_rejected(http):
    parse_error = await http.post(
        "/mcp", content=b"{not json", headers={"content-type": "application/json"}
    )
    invalid = await http.post("/mcp", json={"hello": "world"})

    assert parse_error.status_code == 400
    assert parse_error.json()["error"]["code"] == -32700
    assert invalid.status_code == 400
    assert invalid.json()["error"]["code"] == -32600


async def test_session_limit(registry):
    app = make_app(registry, max_sessions=0)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as http:
        response = await http.post("/mcp", json=INITIALIZE)

    assert response.status_code == 503
    assert SESSION_HEADER not in response.headers


async def test_health_check_reports_tools(http, registry):
    response = await http.get("/health_check")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "server": "hubspot-mcp-server",
        "tools": len(registry.all_tools()),
        "sessions": 0,
    }


def crashing_server(registry):
    server = create_server(registry)

    async def run(*args, **kwargs):
        raise RuntimeError("server crashed")

    server.run = run
    return server


async def test_crashed_server_run_closes_the_session(registry, caplog):
    session = McpHttpSession("crashed", crashing_server(registry))
    await session.start()

    with caplog.at_level(logging.ERROR, logger="hubspot-mcp-http"):
        with pytest.raises(TransportClosedError):
            await session.request(JSONRPCMessage.model_validate(INITIALIZE), timeout=5)

    assert session.transport.is_closed
    assert any("server crashed" in record.getMessage() for record in caplog.records)


async def test_crashed_session_answers_instead_of_timing_out(registry):
    app = create_starlette_app(
        crashing_server(registry), {"max_sessions": 10, "session_idle_timeout": 600}
    )
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.post("/mcp", json=INITIALIZE)
        health = await client.get("/health_check")
        await client.post("/mcp", json={"jsonrpc": "2.0", "id": 9, "method": "ping"})

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Session closed"
    assert health.json()["sessions"] == 1
    assert len(app.state.sessions) == 0


async def test_browser_clients_can_read_the_session_header(http):
    origin = {"Origin": "http://localhost:5173"}

    preflight = await http.options(
        "/mcp",
        headers={
            **origin,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type, mcp-session-id",
        },
    )
    response = await http.post("/mcp", json=INITIALIZE, headers=origin)

    assert preflight.status_code == 200
    assert "POST" in preflight.headers["access-control-allow-methods"]
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert SESSION_HEADER in response.headers["access-control-expose-headers"].lower()
    assert response.headers[SESSION_HEADER]
