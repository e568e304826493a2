"""
Base HubSpot service shared by every BCP.

HubspotService validates the access token, probes the API once on init() and
gates every request behind check_initialized(). Domain services do not
inherit from it; they hold one and call through it.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, Optional

from hubspot_mcp.config import PLACEHOLDER_TOKEN, get_settings
from hubspot_mcp.core.client import HubspotClient
from hubspot_mcp.core.errors import BcpError, ErrorCode

logger = logging.getLogger("hubspot-service")


def is_placeholder_token(token: Optional[str]) -> bool:
    return not token or not token.strip() or token.strip() == PLACEHOLDER_TOKEN


class HubspotService:
    """Credential check, connectivity probe and auth gate around a HubspotClient"""

    def __init__(self, access_token: Optional[str], client: Optional[HubspotClient] = None):
        if not access_token:
            raise BcpError(
                "HubSpot access token is required", ErrorCode.CONFIG_ERROR, 400
            )
        self.access_token = access_token
        self.client = client or HubspotClient(access_token)
        self.initialized = False

    async def init(self):
        """Confirm the token works with a cheap read before any domain call"""
        if is_placeholder_token(self.access_token):
            logger.warning(
                "HubSpot access token is a placeholder, service left uninitialized"
            )
            return

        try:
            await self.client.get("/crm/v3/objects/contacts", params={"limit": 1})
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            raise BcpError(
                f"Failed to initialize HubSpot client: {message}",
                ErrorCode.INIT_ERROR,
                500,
            ) from e

        self.initialized = True
        logger.debug("HubSpot service initialized")

    def check_initialized(self):
        if not self.initialized:
            raise BcpError(
                "HubSpot client not initialized. Set a valid HUBSPOT_ACCESS_TOKEN.",
                ErrorCode.AUTH_ERROR,
                401,
            )

    @staticmethod
    def validate_required(params: Dict[str, Any], keys: Iterable[str]):
        missing = [key for key in keys if params.get(key) in (None, "")]
        if missing:
            raise BcpError(
                f"Missing required parameters: {', '.join(missing)}",
                ErrorCode.VALIDATION_ERROR,
                400,
            )

    async def request(self, method: str, path: str, params=None, body=None) -> Any:
        self.check_initialized()
        return await self.client.request(method, path, params=params, json_body=body)

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, body: Any = None, params=None) -> Any:
        return await self.request("POST", path, params=params, body=body)

    async def patch(self, path: str, body: Any = None) -> Any:
        return await self.request("PATCH", path, body=body)

    async def put(self, path: str, body: Any = None) -> Any:
        return await self.request("PUT", path, body=body)

    async def delete(self, path: str, body: Any = None) -> Any:
        return await self.request("DELETE", path, body=body)

    async def aclose(self):
        await self.client.aclose()


class DomainService:
    """Base for the thin per-BCP services; holds the shared HubspotService"""

    def __init__(self, hubspot: HubspotService):
        self.hubspot = hubspot


@asynccontextmanager
async def create_service(service_cls, access_token: Optional[str] = None):
    """
    Build and initialize a domain service for one tool call.

    The token comes from HUBSPOT_ACCESS_TOKEN unless one is passed in; an
    unset variable counts as the placeholder so calls fail with AUTH_ERROR.
    The underlying HTTP client is closed when the block exits.
    """
    if access_token is None:
        access_token = get_settings()["hubspot_access_token"] or PLACEHOLDER_TOKEN

    hubspot = HubspotService(access_token)
    try:
        await hubspot.init()
        yield service_cls(hubspot)
    finally:
        await hubspot.aclose()


def prepare_properties(
    params: Dict[str, Any], standard_props: Dict[str, str], convert_to_str=False
) -> Dict[str, Any]:
    """
    Map tool parameters onto HubSpot property names.

    standard_props maps parameter name to HubSpot property name. Values of
    the free-form ``properties`` parameter are merged last.
    """
    properties = {}

    for param, prop in standard_props.items():
        value = params.get(param)
        if value is not None and value != "":
            properties[prop] = str(value) if convert_to_str else value

    extra = params.get("properties")
    if isinstance(extra, dict):
        for key, value in extra.items():
            if value is not None and value != "":
                properties[key] = str(value) if convert_to_str else value

    return properties
