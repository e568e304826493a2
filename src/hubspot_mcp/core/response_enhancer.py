"""
Adds "suggested next tool" hints to successful tool results.

The tables are held by an immutable SuggestionConfig that is built once and
passed to the ResponseEnhancer, so tests can use their own tables.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from hubspot_mcp.core import suggestions

MAX_SUGGESTIONS = 5


def _freeze_table(table: Mapping[str, Iterable[str]]) -> Mapping[str, Tuple[str, ...]]:
    return MappingProxyType({key: tuple(values) for key, values in table.items()})


@dataclass(frozen=True)
class SuggestionConfig:
    parameter: Mapping[str, Tuple[str, ...]]
    operation: Mapping[str, Tuple[str, ...]]
    domain: Mapping[str, Tuple[str, ...]]

    @classmethod
    def from_tables(cls, parameter=None, operation=None, domain=None):
        return cls(
            parameter=_freeze_table(parameter or {}),
            operation=_freeze_table(operation or {}),
            domain=_freeze_table(domain or {}),
        )

    @classmethod
    def default(cls):
        return cls.from_tables(
            suggestions.PARAMETER_SUGGESTIONS,
            suggestions.OPERATION_SUGGESTIONS,
            suggestions.DOMAIN_SUGGESTIONS,
        )


class ResponseEnhancer:
    def __init__(self, config: SuggestionConfig, limit: int = MAX_SUGGESTIONS):
        self.config = config
        self.limit = limit

    def suggestions_for(
        self,
        operation: str,
        params: Optional[Mapping[str, Any]],
        domain: Optional[str] = None,
    ) -> List[str]:
        """Parameter hints first, then operation, then domain; unique and capped"""
        collected = []
        for param in params or {}:
            collected.extend(self.config.parameter.get(param, ()))
        collected.extend(self.config.operation.get(operation, ()))
        if domain:
            collected.extend(self.config.domain.get(domain, ()))

        return list(dict.fromkeys(collected))[: self.limit]

    def enhance(
        self,
        result: Any,
        operation: str,
        params: Optional[Mapping[str, Any]],
        domain: Optional[str] = None,
    ) -> Any:
        """
        Return result with a ``suggestions`` list added.

        With no applicable suggestions, or a result that is not a mapping,
        the very same object is returned.
        """
        if not isinstance(result, Mapping):
            return result

        found = self.suggestions_for(operation, params, domain)
        if not found:
            return result

        enhanced: Dict[str, Any] = dict(result)
        enhanced["suggestions"] = found
        return enhanced


_default_enhancer = None


def default_enhancer() -> ResponseEnhancer:
    global _default_enhancer
    if _default_enhancer is None:
        _default_enhancer = ResponseEnhancer(SuggestionConfig.default())
    return _default_enhancer


def enhance_response(result, operation, params, domain=None):
    return default_enhancer().enhance(result, operation, params, domain)
