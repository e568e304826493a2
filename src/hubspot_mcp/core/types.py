"""
Records shared by the registry and the BCP modules.

A ToolDefinition is the atomic unit of functionality, a BCP groups the tools
of one domain, and every handler returns a ToolResult: either ToolSuccess
carrying the reshaped payload or ToolFailure carrying a BcpError.
"""

import functools
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Mapping, Tuple, Union

from hubspot_mcp.core.errors import BcpError, wrap_error

logger = logging.getLogger("hubspot-mcp-types")


@dataclass(frozen=True)
class ToolSuccess:
    data: Any

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ToolFailure:
    message: str
    error: BcpError

    @property
    def ok(self) -> bool:
        return False

    def to_envelope(self) -> Dict[str, Any]:
        return {"message": self.message, **self.error.to_dict()}


ToolResult = Union[ToolSuccess, ToolFailure]
ToolHandler = Callable[[Dict[str, Any]], Awaitable[ToolResult]]


def _freeze(value: Any) -> Any:
    """Read-only deep copy: mappings become MappingProxyType, lists become tuples"""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_schema: Mapping[str, Any]
    handler: ToolHandler
    operation: str = ""

    def __post_init__(self):
        if not self.name:
            raise ValueError("Tool name is required")
        object.__setattr__(self, "input_schema", _freeze(self.input_schema))
        if not self.operation:
            object.__setattr__(self, "operation", self.name)

    def schema_dict(self) -> Dict[str, Any]:
        """Mutable deep copy of the input schema for the MCP listing and validation"""
        return _thaw(self.input_schema)


@dataclass(frozen=True)
class BCP:
    domain: str
    description: str
    tools: Tuple[ToolDefinition, ...] = field(default_factory=tuple)

    def __post_init__(self):
        tools = tuple(self.tools)
        names = [tool.name for tool in tools]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(
                f"Duplicate tool names in BCP {self.domain}: {', '.join(duplicates)}"
            )
        object.__setattr__(self, "tools", tools)

    @property
    def tool_names(self):
        return [tool.name for tool in self.tools]


def tool_handler(failure_message: str):
    """
    Decorate an async handler body so it always returns a ToolResult.

    The wrapped function returns the success payload or raises; exceptions
    become ToolFailure through wrap_error.
    """

    def decorator(func: Callable[[Dict[str, Any]], Awaitable[Any]]) -> ToolHandler:
        @functools.wraps(func)
        async def wrapper(params: Dict[str, Any]) -> ToolResult:
            try:
                data = await func(params)
            except Exception as e:
                error = wrap_error(e)
                logger.error(f"{failure_message}: [{error.code.value}] {error.message}")
                return ToolFailure(failure_message, error)
            if isinstance(data, (ToolSuccess, ToolFailure)):
                return data
            return ToolSuccess(data)

        return wrapper

    return decorator


def tool(
    name: str,
    description: str,
    input_schema: Mapping[str, Any],
    operation: str = "",
    failure_message: str = "",
):
    """Build a ToolDefinition from a decorated async function"""

    def decorator(func) -> ToolDefinition:
        handler = tool_handler(failure_message or f"Failed to {name.replace('_', ' ')}")(
            func
        )
        return ToolDefinition(
            name=name,
            description=description,
            input_schema=input_schema,
            handler=handler,
            operation=operation,
        )

    return decorator


def object_schema(properties: Dict[str, Any], required=None) -> Dict[str, Any]:
    """JSON schema for a tool's arguments"""
    return {
        "type": "object",
        "properties": properties,
        "required": list(required or []),
    }
