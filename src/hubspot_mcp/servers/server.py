import json
import logging
import time
import traceback
from typing import Optional

from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.types import TextContent, Tool
from prometheus_client import Counter, Histogram

from hubspot_mcp.analytics.service import get_analytics_service
from hubspot_mcp.bcps import build_registry
from hubspot_mcp.core.errors import ErrorCode
from hubspot_mcp.core.registry import ToolRegistry

SERVER_NAME = "hubspot-mcp-server"
SERVER_VERSION = "1.0.0"

logger = logging.getLogger("hubspot-mcp-server")

tool_calls_total = Counter(
    "hubspot_mcp_tool_calls_total", "Total number of tool calls", ["tool", "outcome"]
)
tool_latency_seconds = Histogram(
    "hubspot_mcp_tool_latency_seconds", "Tool call latency in seconds", ["tool"]
)


def _record_analytics(registry: ToolRegistry, name, arguments, result, elapsed_ms, text):
    analytics = get_analytics_service()
    if analytics is None:
        return

    domain = registry.domain_of(name) or "unknown"
    operation = registry.operation_of(name, arguments)
    analytics.log_tool_call(
        domain,
        operation,
        result.ok,
        elapsed_ms,
        parameters=arguments,
        response_size=len(text),
        tool_name=name,
    )
    if not result.ok:
        analytics.log_error(
            domain,
            operation,
            result.error.code.value,
            result.error.message,
            stack_trace="".join(traceback.format_exception(result.error))
            if result.error.__traceback__
            else None,
            parameters=arguments,
        )


def create_server(registry: Optional[ToolRegistry] = None):
    """Create an MCP server exposing every registered HubSpot tool"""
    registry = registry or build_registry()
    server = Server(SERVER_NAME)
    server.registry = registry

    @server.list_tools()
    async def handle_list_tools() -> list[Tool]:
        tools = registry.all_tools()
        logger.info(f"Listing {len(tools)} tools")
        return [
            Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.schema_dict(),
            )
            for tool in tools
        ]

    @server.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: dict | None) -> list[TextContent]:
        logger.info(f"Calling tool: {name}")
        arguments = arguments or {}

        started = time.perf_counter()
        result = await registry.dispatch(name, arguments)
        elapsed = time.perf_counter() - started

        text = json.dumps(registry.to_envelope(result), indent=2, default=str)

        outcome = "success" if result.ok else result.error.code.value.lower()
        tool_calls_total.labels(tool=name, outcome=outcome).inc()
        tool_latency_seconds.labels(tool=name).observe(elapsed)

        if not result.ok:
            level = logging.INFO if result.error.code == ErrorCode.VALIDATION_ERROR else logging.ERROR
            logger.log(level, f"Tool {name} failed: [{result.error.code.value}] {result.error.message}")

        try:
            _record_analytics(registry, name, arguments, result, int(elapsed * 1000), text)
        except Exception as e:
            logger.error(f"Analytics recording failed for {name}: {e}")

        return [TextContent(type="text", text=text)]

    return server


def get_initialization_options(server_instance: Server) -> InitializationOptions:
    """Get the initialization options for the server"""
    return InitializationOptions(
        server_name=SERVER_NAME,
        server_version=SERVER_VERSION,
        capabilities=server_instance.get_capabilities(
            notification_options=NotificationOptions(),
            experimental_capabilities={},
        ),
    )
