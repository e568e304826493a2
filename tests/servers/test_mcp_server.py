import json

from mcp.shared.memory import create_connected_server_and_client_session

from hubspot_mcp.analytics.service import get_analytics_service
from hubspot_mcp.servers.server import create_server


async def test_list_tools_exposes_every_registered_tool(registry):
    server = create_server(registry)

    async with create_connected_server_and_client_session(server) as client:
        listed = await client.list_tools()

    names = {tool.name for tool in listed.tools}
    assert len(names) == len(registry.all_tools())
    assert {"create_contact", "get_association_type_reference", "schedule_blog_post"} <= names
    create_contact = next(tool for tool in listed.tools if tool.name == "create_contact")
    assert create_contact.inputSchema["required"] == ["email"]


async def test_call_tool_returns_json_error_envelope(registry):
    server = create_server(registry)

    async with create_connected_server_and_client_session(server) as client:
        result = await client.call_tool("recent_contacts", {})

    payload = json.loads(result.content[0].text)
    assert payload["code"] == "AUTH_ERROR"
    assert payload["status"] == 401
    assert payload["message"] == "Failed to recent contacts"


async def test_call_tool_returns_enhanced_result(registry, hubspot):
    hubspot.add(
        "GET",
        "/crm/v3/objects/contacts/101",
        {"id": "101", "properties": {"email": "ada@example.com"}},
    )
    server = create_server(registry)

    async with create_connected_server_and_client_session(server) as client:
        result = await client.call_tool("get_contact", {"contact_id": "101"})

    payload = json.loads(result.content[0].text)
    assert payload["contact"]["id"] == "101"
    assert payload["suggestions"]


async def test_unknown_tool_is_not_found(registry):
    server = create_server(registry)

    async with create_connected_server_and_client_session(server) as client:
        result = await client.call_tool("does_not_exist", {})

    payload = json.loads(result.content[0].text)
    assert payload["code"] == "NOT_FOUND"


async def test_tool_calls_are_recorded_when_analytics_enabled(registry, monkeypatch):
    monkeypatch.setenv("ANALYTICS_ENABLED", "true")
    server = create_server(registry)

    async with create_connected_server_and_client_session(server) as client:
        await client.call_tool("recent_deals", {"limit": 3})

    analytics = get_analytics_service()
    [usage] = analytics.get_tool_usage(1)
    assert usage["domain"] == "Deals"
    assert usage["operation"] == "recent"
    assert usage["errors"] == 1
    [error] = analytics.get_error_stats(1)
    assert error["errorType"] == "AUTH_ERROR"


async def test_invalid_arguments_get_the_validation_envelope(registry):
    server = create_server(registry)

    async with create_connected_server_and_client_session(server) as client:
        await client.list_tools()
        result = await client.call_tool("get_contact", {})

    payload = json.loads(result.content[0].text)
    assert payload["code"] == "VALIDATION_ERROR"
    assert payload["status"] == 400
    assert "contact_id" in payload["error"]


async def test_domain_tool_calls_are_recorded_under_their_operation(registry, monkeypatch):
    monkeypatch.setenv("ANALYTICS_ENABLED", "true")
    server = create_server(registry)

    async with create_connected_server_and_client_session(server) as client:
        listed = await client.list_tools()
        result = await client.call_tool("hubspotDeals", {"operation": "recent", "limit": 3})

    assert "hubspotDeals" in {tool.name for tool in listed.tools}
    assert json.loads(result.content[0].text)["code"] == "AUTH_ERROR"
    [usage] = get_analytics_service().get_tool_usage(1)
    assert usage["domain"] == "Deals"
    assert usage["operation"] == "recent"
