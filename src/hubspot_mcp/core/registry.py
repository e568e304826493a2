"""
Tool registry: aggregates BCPs and dispatches calls by tool name.

Besides the per-operation tools, every registered BCP gets one domain tool
(``hubspotContacts``, ``hubspotDeals``, ...) taking an ``operation`` argument
that is routed to the BCP tool declaring that operation.
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

import jsonschema

from hubspot_mcp.core.errors import BcpError, ErrorCode, wrap_error
from hubspot_mcp.core.response_enhancer import ResponseEnhancer
from hubspot_mcp.core.types import (
    BCP,
    ToolDefinition,
    ToolFailure,
    ToolResult,
    ToolSuccess,
    object_schema,
)

logger = logging.getLogger("hubspot-mcp-registry")

DOMAIN_TOOL_PREFIX = "hubspot"


def domain_tool_name(domain: str) -> str:
    return f"{DOMAIN_TOOL_PREFIX}{domain}"


def _validation_message(error: jsonschema.ValidationError) -> str:
    location = "/".join(str(part) for part in error.absolute_path)
    if location:
        return f"Invalid parameter '{location}': {error.message}"
    return f"Invalid parameters: {error.message}"


class ToolRegistry:
    def __init__(self, enhancer: Optional[ResponseEnhancer] = None):
        self.enhancer = enhancer
        self._bcps: Dict[str, BCP] = {}
        self._tools: Dict[str, ToolDefinition] = {}
        self._tool_domains: Dict[str, str] = {}
        self._domain_tools: Dict[str, ToolDefinition] = {}
        self._routes: Dict[str, Dict[str, str]] = {}

    def register(self, bcp: BCP):
        """Add every tool of a BCP; nothing is added if any name collides"""
        if bcp.domain in self._bcps:
            raise ValueError(f"Domain already registered: {bcp.domain}")

        collisions = [
            name for name in bcp.tool_names if name in self._tools or name in self._domain_tools
        ]
        if collisions:
            raise ValueError(
                f"Tool name collision while registering {bcp.domain}: {', '.join(collisions)}"
            )

        routes = {}
        for tool in bcp.tools:
            if tool.operation in routes:
                raise ValueError(
                    f"Operation {tool.operation} is declared twice in {bcp.domain}: "
                    f"{routes[tool.operation]}, {tool.name}"
                )
            routes[tool.operation] = tool.name
        domain_tool = self._build_domain_tool(bcp, routes)
        if domain_tool.name in self._tools or domain_tool.name in bcp.tool_names:
            raise ValueError(
                f"Tool name collision while registering {bcp.domain}: {domain_tool.name}"
            )

        self._bcps[bcp.domain] = bcp
        for tool in bcp.tools:
            self._tools[tool.name] = tool
            self._tool_domains[tool.name] = bcp.domain
        self._domain_tools[domain_tool.name] = domain_tool
        self._routes[domain_tool.name] = routes
        self._tool_domains[domain_tool.name] = bcp.domain
        logger.info(f"Registered BCP {bcp.domain} with {len(bcp.tools)} tools")

    def _build_domain_tool(self, bcp: BCP, routes: Dict[str, str]) -> ToolDefinition:
        name = domain_tool_name(bcp.domain)
        properties = {
            "operation": {
                "type": "string",
                "enum": list(routes),
                "description": "Operation to perform",
            }
        }
        for tool in bcp.tools:
            for key, value in tool.schema_dict().get("properties", {}).items():
                properties.setdefault(key, value)

        async def handler(params):
            return await self._delegate(name, params)

        return ToolDefinition(
            name=name,
            description=f"{bcp.description}. Operations: {', '.join(routes)}",
            input_schema=object_schema(properties, required=["operation"]),
            handler=handler,
            operation=name,
        )

    def list_tools(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def domain_tools(self) -> List[ToolDefinition]:
        return list(self._domain_tools.values())

    def all_tools(self) -> List[ToolDefinition]:
        """Per-operation tools followed by one domain tool per BCP"""
        return self.list_tools() + self.domain_tools()

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name) or self._domain_tools.get(name)

    def operation_of(self, name: str, params: Optional[Dict[str, Any]] = None) -> str:
        if name in self._routes:
            return (params or {}).get("operation") or name
        tool = self._tools.get(name)
        return tool.operation if tool else name

    def domains(self) -> List[str]:
        return list(self._bcps)

    def domain_of(self, name: str) -> Optional[str]:
        return self._tool_domains.get(name)

    def __len__(self):
        return len(self._tools)

    def __contains__(self, name):
        return name in self._tools or name in self._domain_tools

    async def dispatch(self, name: str, params: Optional[Dict[str, Any]] = None) -> ToolResult:
        """
        Validate params against the tool's schema and run its handler.

        Never raises for tool failures: unknown names, invalid params and
        handler errors all come back as ToolFailure.
        """
        params = dict(params or {})
        if name in self._domain_tools:
            return await self._delegate(name, params)

        tool = self._tools.get(name)
        if tool is None:
            return ToolFailure(
                f"Unknown tool: {name}",
                BcpError(f"Tool not found: {name}", ErrorCode.NOT_FOUND, 404),
            )

        try:
            jsonschema.validate(params, tool.schema_dict())
        except jsonschema.ValidationError as e:
            logger.info(f"Rejected call to {name}: {e.message}")
            return ToolFailure(
                f"Invalid parameters for {name}",
                BcpError(_validation_message(e), ErrorCode.VALIDATION_ERROR, 400),
            )

        try:
            result = await tool.handler(params)
        except Exception as e:
            error = wrap_error(e, f"Tool {name} failed")
            logger.error(f"Error in tool {name}: {error.message}")
            return ToolFailure(f"Failed to run {name}", error)

        if not isinstance(result, (ToolSuccess, ToolFailure)):
            result = ToolSuccess(result)

        if result.ok and self.enhancer is not None and isinstance(result.data, Mapping):
            result = ToolSuccess(
                self.enhancer.enhance(
                    result.data, tool.operation, params, self._tool_domains[name]
                )
            )
        return result

    async def _delegate(self, name: str, params: Dict[str, Any]) -> ToolResult:
        """Route a domain tool call to the BCP tool declaring its operation"""
        params = dict(params)
        operation = params.pop("operation", None)
        routes = self._routes[name]
        if not isinstance(operation, str) or operation not in routes:
            logger.info(f"Rejected call to {name}: unknown operation {operation!r}")
            return ToolFailure(
                f"Invalid parameters for {name}",
                BcpError(
                    f"Invalid parameter 'operation': expected one of {', '.join(routes)}",
                    ErrorCode.VALIDATION_ERROR,
                    400,
                ),
            )
        logger.info(f"Delegating {name}.{operation} to {routes[operation]}")
        return await self.dispatch(routes[operation], params)

    @staticmethod
    def to_envelope(result: ToolResult) -> Any:
        if result.ok:
            return result.data
        return result.to_envelope()
