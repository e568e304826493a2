import logging

from hubspot_mcp.bcps.common import paging_after, results_of
from hubspot_mcp.core.errors import BcpError, ErrorCode
from hubspot_mcp.core.service import DomainService, create_service
from hubspot_mcp.core.types import BCP, object_schema, tool

DOMAIN = "Owners"

logger = logging.getLogger("hubspot-owners")


def format_owner(owner):
    first, last = owner.get("firstName"), owner.get("lastName")
    return {
        "id": owner.get("id"),
        "email": owner.get("email"),
        "firstName": first,
        "lastName": last,
        "fullName": " ".join(part for part in (first, last) if part) or None,
        "userId": owner.get("userId"),
        "createdAt": owner.get("createdAt"),
        "updatedAt": owner.get("updatedAt"),
        "archived": owner.get("archived", False),
    }


def _permission_error(error: BcpError):
    if error.code == ErrorCode.PERMISSION_ERROR:
        return BcpError(
            "Missing permission to read owners. The token needs the crm.objects.owners.read scope.",
            ErrorCode.PERMISSION_ERROR,
            403,
        )
    return error


class OwnersService(DomainService):
    async def list_owners(self, limit=100, after=None):
        if limit < 1 or limit > 100:
            raise BcpError("Limit must be between 1 and 100", ErrorCode.VALIDATION_ERROR, 400)
        try:
            return await self.hubspot.get("/crm/v3/owners", params={"limit": limit, "after": after})
        except BcpError as e:
            raise _permission_error(e) from e

    async def get_owner(self, owner_id):
        try:
            return await self.hubspot.get(f"/crm/v3/owners/{owner_id}")
        except BcpError as e:
            if e.code == ErrorCode.NOT_FOUND:
                raise BcpError(
                    f"Owner with ID '{owner_id}' not found", ErrorCode.NOT_FOUND, 404
                ) from e
            raise _permission_error(e) from e

    async def current_user(self):
        """Details of the user the access token belongs to"""
        endpoints = [
            "/oauth/v1/access-tokens/me",
            "/integrations/v1/me",
        ]
        last_error = None
        for endpoint in endpoints:
            try:
                return await self.hubspot.get(endpoint)
            except BcpError as e:
                logger.info(f"Current user lookup via {endpoint.split('/')[1]} failed: {e.message}")
                last_error = e
        raise last_error

    async def search_by_email(self, email):
        response = await self.list_owners(100)
        needle = email.lower()
        return [
            owner
            for owner in results_of(response)
            if needle in (owner.get("email") or "").lower()
        ]


@tool(
    "list_owners",
    "List the HubSpot owners (users that can own records)",
    object_schema(
        {
            "limit": {"type": "integer", "description": "Owners per page (1-100)", "default": 100},
            "after": {"type": "string", "description": "Pagination cursor"},
        }
    ),
    operation="list",
)
async def list_owners(params):
    async with create_service(OwnersService) as service:
        response = await service.list_owners(params.get("limit", 100), params.get("after"))
    owners = [format_owner(owner) for owner in results_of(response)]
    return {"owners": owners, "count": len(owners), "after": paging_after(response)}


@tool(
    "get_owner",
    "Get an owner by ID",
    object_schema(
        {"owner_id": {"type": "string", "description": "HubSpot owner ID"}},
        required=["owner_id"],
    ),
    operation="get",
)
async def get_owner(params):
    async with create_service(OwnersService) as service:
        owner = await service.get_owner(params["owner_id"])
    return {"owner": format_owner(owner)}


@tool(
    "get_current_owner",
    "Get the user the configured access token belongs to",
    object_schema({}),
    operation="getCurrentUser",
)
async def get_current_owner(params):
    async with create_service(OwnersService) as service:
        user = await service.current_user()
    return {
        "user": {
            "id": user.get("user_id") or user.get("id") or user.get("userId"),
            "email": user.get("user") or user.get("email"),
            "hubId": user.get("hub_id") or user.get("portalId"),
            "hubDomain": user.get("hub_domain"),
            "scopes": user.get("scopes", []),
        }
    }


@tool(
    "search_owners",
    "Find owners whose email contains the given text",
    object_schema(
        {"email": {"type": "string", "description": "Email address or part of one"}},
        required=["email"],
    ),
    operation="search",
)
async def search_owners(params):
    if not params["email"].strip():
        raise BcpError("Email is required for search", ErrorCode.VALIDATION_ERROR, 400)
    async with create_service(OwnersService) as service:
        owners = await service.search_by_email(params["email"].strip())
    return {
        "message": f"Found {len(owners)} owners",
        "owners": [format_owner(owner) for owner in owners],
        "count": len(owners),
    }


bcp = BCP(
    domain=DOMAIN,
    description="HubSpot owner lookup tools",
    tools=(list_owners, get_owner, get_current_owner, search_owners),
)
