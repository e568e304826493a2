import httpx
import pytest

from hubspot_mcp.core.client import HubspotClient
from hubspot_mcp.core.errors import BcpError, ErrorCode
from hubspot_mcp.core.service import HubspotService, create_service, prepare_properties


def recording_client(handler):
    requests = []

    def record(request):
        requests.append(request)
        return handler(request)

    client = HubspotClient("token", transport=httpx.MockTransport(record))
    return client, requests


def test_missing_token_is_config_error():
    with pytest.raises(BcpError) as info:
        HubspotService(None)
    assert info.value.code == ErrorCode.CONFIG_ERROR
    assert info.value.http_status == 400


@pytest.mark.parametrize("token", ["placeholder", "   "])
async def test_placeholder_token_never_touches_the_network(token):
    client, requests = recording_client(lambda request: httpx.Response(200, json={}))
    service = HubspotService(token, client=client)

    await service.init()

    assert not service.initialized
    with pytest.raises(BcpError) as info:
        await service.get("/crm/v3/objects/deals/1")
    assert info.value.code == ErrorCode.AUTH_ERROR
    assert info.value.http_status == 401
    assert requests == []
    await service.aclose()


async def test_init_probes_once_then_allows_calls():
    client, requests = recording_client(
        lambda request: httpx.Response(200, json={"id": "1", "results": []})
    )
    service = HubspotService("real-token", client=client)

    await service.init()
    deal = await service.get("/crm/v3/objects/deals/1")

    assert service.initialized
    assert deal["id"] == "1"
    assert [r.url.path for r in requests] == [
        "/crm/v3/objects/contacts",
        "/crm/v3/objects/deals/1",
    ]
    assert requests[0].url.params["limit"] == "1"
    assert requests[0].headers["authorization"] == "Bearer token"
    await service.aclose()


async def test_failed_probe_is_init_error():
    client, _ = recording_client(
        lambda request: httpx.Response(401, json={"message": "Authentication credentials not found"})
    )
    service = HubspotService("expired", client=client)

    with pytest.raises(BcpError) as info:
        await service.init()

    assert info.value.code == ErrorCode.INIT_ERROR
    assert "Authentication credentials not found" in info.value.message
    await service.aclose()


async def test_create_service_without_token_fails_with_auth_error():
    class Probe:
        def __init__(self, hubspot):
            self.hubspot = hubspot

    async with create_service(Probe) as service:
        with pytest.raises(BcpError) as info:
            await service.hubspot.get("/crm/v3/owners")
    assert info.value.code == ErrorCode.AUTH_ERROR


@pytest.mark.parametrize(
    "status, code",
    [
        (400, ErrorCode.VALIDATION_ERROR),
        (401, ErrorCode.AUTH_ERROR),
        (404, ErrorCode.NOT_FOUND),
        (429, ErrorCode.RATE_LIMIT),
        (500, ErrorCode.API_ERROR),
    ],
)
async def test_client_maps_status_codes(status, code):
    client, _ = recording_client(
        lambda request: httpx.Response(status, json={"message": "upstream says no"})
    )
    with pytest.raises(BcpError) as info:
        await client.get("/crm/v3/objects/contacts/1")
    assert info.value.code == code
    assert info.value.http_status == status
    assert "upstream says no" in info.value.message
    await client.aclose()


async def test_client_network_failure_is_api_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = recording_client(refuse)
    with pytest.raises(BcpError) as info:
        await client.get("/crm/v3/objects/contacts/1")
    assert info.value.code == ErrorCode.API_ERROR
    assert info.value.http_status == 503
    await client.aclose()


async def test_client_handles_empty_and_text_bodies():
    def respond(request):
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, text="ok")

    client, requests = recording_client(respond)
    assert await client.delete("/crm/v3/objects/contacts/1") == {}
    assert await client.get("/crm/v3/objects/contacts", params={"after": None}) == {"result": "ok"}
    assert "after" not in requests[-1].url.params
    await client.aclose()


def test_prepare_properties_maps_names_and_merges_extras():
    properties = prepare_properties(
        {
            "first_name": "Ada",
            "phone": "",
            "amount": 1200,
            "properties": {"lifecyclestage": "lead", "empty": None},
        },
        {"first_name": "firstname", "phone": "phone", "amount": "amount"},
        convert_to_str=True,
    )
    assert properties == {"firstname": "Ada", "amount": "1200", "lifecyclestage": "lead"}
