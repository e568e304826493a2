from hubspot_mcp.bcps import (
    associations,
    blog_posts,
    companies,
    contacts,
    deals,
    emails,
    notes,
    owners,
    products,
    properties,
    quotes,
    social_media,
)
from hubspot_mcp.core.registry import ToolRegistry
from hubspot_mcp.core.response_enhancer import default_enhancer

ALL_BCPS = (
    contacts.bcp,
    companies.bcp,
    deals.bcp,
    notes.bcp,
    associations.bcp,
    quotes.bcp,
    products.bcp,
    properties.bcp,
    owners.bcp,
    emails.bcp,
    blog_posts.bcp,
    social_media.bcp,
)


def build_registry(bcps=ALL_BCPS, enhancer=None) -> ToolRegistry:
    """Registry holding the given BCPs, enhanced with the default suggestions"""
    registry = ToolRegistry(enhancer or default_enhancer())
    for bcp in bcps:
        registry.register(bcp)
    return registry
