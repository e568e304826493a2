import pytest

from hubspot_mcp.bcps import ALL_BCPS
from hubspot_mcp.core.errors import BcpError, ErrorCode
from hubspot_mcp.core.registry import ToolRegistry, domain_tool_name
from hubspot_mcp.core.response_enhancer import ResponseEnhancer, SuggestionConfig
from hubspot_mcp.core.types import (
    BCP,
    ToolDefinition,
    ToolFailure,
    ToolSuccess,
    object_schema,
    tool,
)

CALLS = []


@tool(
    "echo",
    "Echo the message back",
    object_schema({"message": {"type": "string"}, "deal_id": {"type": "string"}}, required=["message"]),
    operation="echoOp",
)
async def echo(params):
    CALLS.append(params)
    return {"echo": params["message"]}


@tool("explode", "Always fails", object_schema({}))
async def explode(params):
    raise RuntimeError("kaboom")


@tool("missing", "Fails with a classified error", object_schema({}))
async def missing(params):
    raise BcpError("Deal not found", ErrorCode.NOT_FOUND, 404)


@tool("listing", "Returns a list", object_schema({}), operation="list")
async def listing(params):
    return [1, 2, 3]


TEST_BCP = BCP("Testing", "Test tools", (echo, explode, missing, listing))


@pytest.fixture
def test_registry():
    CALLS.clear()
    enhancer = ResponseEnhancer(
        SuggestionConfig.from_tables(
            parameter={"deal_id": ["find the deal"]},
            domain={"Testing": ["domain hint"]},
        )
    )
    registry = ToolRegistry(enhancer)
    registry.register(TEST_BCP)
    return registry


def test_register_rejects_name_collisions(test_registry):
    clash = BCP("Other", "Clashes", (echo,))
    with pytest.raises(ValueError):
        test_registry.register(clash)
    assert "Other" not in test_registry.domains()
    assert len(test_registry) == 4


def test_register_rejects_duplicate_domain(test_registry):
    with pytest.raises(ValueError):
        test_registry.register(BCP("Testing", "Again", ()))


def test_bcp_rejects_duplicate_tool_names():
    with pytest.raises(ValueError):
        BCP("Dupes", "Duplicate tools", (echo, echo))


def test_tool_schema_is_frozen():
    with pytest.raises(TypeError):
        echo.input_schema["type"] = "array"
    assert echo.schema_dict()["required"] == ["message"]


def test_tool_schema_is_frozen_all_the_way_down():
    source = object_schema({"tags": {"type": "array", "items": {"type": "string"}}}, required=["tags"])
    definition = ToolDefinition("tagged", "Tagged", source, explode.handler)

    source["properties"]["tags"]["items"]["type"] = "integer"
    source["required"].append("other")
    with pytest.raises(TypeError):
        definition.input_schema["properties"]["tags"]["type"] = "string"

    schema = definition.schema_dict()
    assert schema["properties"]["tags"]["items"] == {"type": "string"}
    assert schema["required"] == ["tags"]
    schema["properties"]["tags"]["items"]["type"] = "number"
    schema["required"].append("more")
    assert definition.schema_dict()["properties"]["tags"]["items"] == {"type": "string"}
    assert definition.schema_dict()["required"] == ["tags"]


async def test_dispatch_unknown_tool(test_registry):
    result = await test_registry.dispatch("nope", {})
    assert isinstance(result, ToolFailure)
    assert result.error.code == ErrorCode.NOT_FOUND
    assert result.error.http_status == 404


async def test_dispatch_missing_required_field_skips_handler(test_registry):
    result = await test_registry.dispatch("echo", {})
    assert not result.ok
    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert "message" in result.error.message
    assert CALLS == []


async def test_dispatch_wrong_type_is_validation_error(test_registry):
    result = await test_registry.dispatch("echo", {"message": 42})
    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert "message" in result.error.message
    assert CALLS == []


async def test_dispatch_success_is_enhanced(test_registry):
    result = await test_registry.dispatch("echo", {"message": "hi", "deal_id": "9"})
    assert isinstance(result, ToolSuccess)
    assert result.data == {"echo": "hi", "suggestions": ["find the deal", "domain hint"]}
    assert CALLS == [{"message": "hi", "deal_id": "9"}]


async def test_dispatch_non_mapping_result_is_not_enhanced(test_registry):
    result = await test_registry.dispatch("listing", {})
    assert result.data == [1, 2, 3]


async def test_handler_exception_becomes_api_error(test_registry):
    result = await test_registry.dispatch("explode", {})
    assert not result.ok
    assert result.error.code == ErrorCode.API_ERROR
    assert result.error.http_status == 500
    assert "kaboom" in result.error.message


async def test_classified_error_is_kept(test_registry):
    result = await test_registry.dispatch("missing", {})
    envelope = ToolRegistry.to_envelope(result)
    assert envelope == {
        "message": "Failed to missing",
        "error": "Deal not found",
        "code": "NOT_FOUND",
        "status": 404,
    }


def test_all_bcps_register_with_unique_names():
    registry = ToolRegistry()
    for bcp in ALL_BCPS:
        registry.register(bcp)

    names = [tool.name for bcp in ALL_BCPS for tool in bcp.tools]
    assert len(names) == len(set(names)) == len(registry)
    assert set(registry.domains()) == {bcp.domain for bcp in ALL_BCPS}


@pytest.mark.parametrize("bcp", ALL_BCPS, ids=lambda bcp: bcp.domain)
def test_shipped_schemas_are_well_formed(bcp):
    for definition in bcp.tools:
        schema = definition.schema_dict()
        assert schema["type"] == "object"
        assert set(schema["required"]) <= set(schema["properties"]), definition.name
        assert definition.description
        assert definition.operation


def test_domain_tool_lists_every_operation(test_registry):
    domain_tool = test_registry.get("hubspotTesting")
    schema = domain_tool.schema_dict()

    assert domain_tool_name("Testing") == "hubspotTesting"
    assert "hubspotTesting" in test_registry
    assert test_registry.domain_of("hubspotTesting") == "Testing"
    assert schema["required"] == ["operation"]
    assert schema["properties"]["operation"]["enum"] == ["echoOp", "explode", "missing", "list"]
    assert schema["properties"]["message"] == {"type": "string"}
    assert [tool.name for tool in test_registry.all_tools()][-1] == "hubspotTesting"
    assert len(test_registry) == 4


async def test_domain_tool_delegates_to_operation(test_registry):
    result = await test_registry.dispatch(
        "hubspotTesting", {"operation": "echoOp", "message": "hi", "deal_id": "9"}
    )

    assert result.data == {"echo": "hi", "suggestions": ["find the deal", "domain hint"]}
    assert CALLS == [{"message": "hi", "deal_id": "9"}]
    assert test_registry.operation_of("hubspotTesting", {"operation": "echoOp"}) == "echoOp"
    assert test_registry.operation_of("echo") == "echoOp"


@pytest.mark.parametrize("params", [{}, {"operation": "nope"}, {"operation": 7}])
async def test_domain_tool_rejects_unknown_operation(test_registry, params):
    result = await test_registry.dispatch("hubspotTesting", params)

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.error.http_status == 400
    assert "operation" in result.error.message
    assert CALLS == []


async def test_domain_tool_validates_delegated_arguments(test_registry):
    result = await test_registry.dispatch("hubspotTesting", {"operation": "echoOp"})

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert "message" in result.error.message
    assert CALLS == []


def test_register_rejects_duplicate_operations():
    echo_again = ToolDefinition("echo_again", "Echo again", object_schema({}), explode.handler, "echoOp")
    registry = ToolRegistry()

    with pytest.raises(ValueError):
        registry.register(BCP("Twice", "Shared operation", (echo, echo_again)))
    assert registry.domains() == []
    assert len(registry.all_tools()) == 0


async def test_shipped_domain_tool_reaches_hubspot(registry, hubspot):
    hubspot.add(
        "GET",
        "/crm/v3/objects/contacts/101",
        {"id": "101", "properties": {"email": "ada@example.com"}},
    )

    result = await registry.dispatch("hubspotContacts", {"operation": "get", "contact_id": "101"})

    assert result.ok
    assert result.data["contact"]["id"] == "101"
    assert hubspot.requests[0].url.path == "/crm/v3/objects/contacts/101"
    assert {"hubspotContacts", "hubspotDeals"} <= {tool.name for tool in registry.all_tools()}
