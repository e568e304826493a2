from hubspot_mcp.bcps.common import results_of
from hubspot_mcp.core.errors import BcpError, ErrorCode
from hubspot_mcp.core.service import DomainService, create_service
from hubspot_mcp.core.types import BCP, object_schema, tool

DOMAIN = "SocialMedia"

BROADCAST_STATUSES = ["SCHEDULED", "PUBLISHED", "FAILED", "DRAFT"]
GUID_SCHEMA = {"type": "string", "description": "Broadcast message GUID"}


def _items(response):
    # broadcast v1 returns bare arrays; keep accepting a results wrapper too
    if isinstance(response, list):
        return response
    return results_of(response)


class SocialMediaService(DomainService):
    async def list_broadcasts(self, status=None, since=None, until=None, limit=20, offset=None):
        return _items(
            await self.hubspot.get(
                "/broadcast/v1/broadcasts",
                params={
                    "status": status,
                    "since": since,
                    "until": until,
                    "count": limit,
                    "offset": offset,
                },
            )
        )

    async def get_broadcast(self, guid):
        return await self.hubspot.get(f"/broadcast/v1/broadcasts/{guid}")

    async def create_broadcast(self, body):
        if not (body.get("content") or {}).get("body"):
            raise BcpError("Message content is required", ErrorCode.VALIDATION_ERROR, 400)
        return await self.hubspot.post("/broadcast/v1/broadcasts", body)

    async def update_broadcast(self, guid, body):
        return await self.hubspot.patch(f"/broadcast/v1/broadcasts/{guid}", body)

    async def delete_broadcast(self, guid):
        await self.hubspot.delete(f"/broadcast/v1/broadcasts/{guid}")

    async def list_channels(self, limit=None, offset=None):
        return _items(
            await self.hubspot.get(
                "/broadcast/v1/channels", params={"count": limit, "offset": offset}
            )
        )


def _message_body(params):
    body = {}
    if params.get("content"):
        body["content"] = {"body": params["content"]}
    for param, field in (
        ("channel_keys", "channelKeys"),
        ("group_guid", "groupGuid"),
        ("status", "status"),
        ("publish_now", "publishNow"),
        ("publish_at", "triggerAt"),
    ):
        if params.get(param) is not None:
            body[field] = params[param]
    return body


MESSAGE_SCHEMAS = {
    "content": {"type": "string", "description": "Text of the social media post"},
    "channel_keys": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Channel GUIDs to post to",
    },
    "group_guid": {"type": "string", "description": "Broadcast group GUID"},
    "status": {"type": "string", "enum": ["DRAFT", "SCHEDULED"]},
    "publish_now": {"type": "boolean", "description": "Publish immediately"},
    "publish_at": {
        "type": "integer",
        "description": "Publish time as epoch milliseconds",
    },
}


@tool(
    "list_social_channels",
    "List the connected social media channels",
    object_schema(
        {
            "limit": {"type": "integer", "minimum": 1, "maximum": 100},
            "offset": {"type": "integer", "minimum": 0},
        }
    ),
    operation="getChannels",
)
async def list_social_channels(params):
    async with create_service(SocialMediaService) as service:
        channels = await service.list_channels(params.get("limit"), params.get("offset"))
    return {
        "message": f"Retrieved {len(channels)} social media channels",
        "channels": channels,
        "count": len(channels),
    }


@tool(
    "list_broadcast_messages",
    "List social media broadcast messages",
    object_schema(
        {
            "status": {"type": "string", "enum": BROADCAST_STATUSES},
            "since": {"type": "integer", "description": "Created since (epoch ms)"},
            "until": {"type": "integer", "description": "Created until (epoch ms)"},
            "limit": {"type": "integer", "minimum": 1, "maximum": 100, "default": 20},
            "offset": {"type": "integer", "minimum": 0},
        }
    ),
    operation="getBroadcastMessages",
)
async def list_broadcast_messages(params):
    async with create_service(SocialMediaService) as service:
        messages = await service.list_broadcasts(
            params.get("status"),
            params.get("since"),
            params.get("until"),
            params.get("limit", 20),
            params.get("offset"),
        )
    return {
        "message": f"Retrieved {len(messages)} broadcast messages",
        "broadcasts": messages,
        "count": len(messages),
    }


@tool(
    "get_broadcast_message",
    "Get a broadcast message by GUID",
    object_schema({"broadcast_guid": GUID_SCHEMA}, required=["broadcast_guid"]),
    operation="getBroadcastMessage",
)
async def get_broadcast_message(params):
    async with create_service(SocialMediaService) as service:
        message = await service.get_broadcast(params["broadcast_guid"])
    return {
        "message": f"Retrieved broadcast message {params['broadcast_guid']}",
        "broadcast": message,
    }


@tool(
    "create_broadcast_message",
    "Create a social media broadcast message, as a draft unless scheduled",
    object_schema(MESSAGE_SCHEMAS, required=["content", "channel_keys"]),
    operation="createBroadcastMessage",
)
async def create_broadcast_message(params):
    body = _message_body(params)
    body.setdefault("status", "DRAFT")
    async with create_service(SocialMediaService) as service:
        message = await service.create_broadcast(body)
    return {"message": "Broadcast message created successfully", "broadcast": message}


@tool(
    "update_broadcast_message",
    "Update a broadcast message",
    object_schema({"broadcast_guid": GUID_SCHEMA, **MESSAGE_SCHEMAS}, required=["broadcast_guid"]),
    operation="updateBroadcastMessage",
)
async def update_broadcast_message(params):
    body = _message_body(params)
    if not body:
        raise BcpError("No fields provided to update", ErrorCode.VALIDATION_ERROR, 400)
    async with create_service(SocialMediaService) as service:
        message = await service.update_broadcast(params["broadcast_guid"], body)
    return {
        "message": f"Broadcast message {params['broadcast_guid']} updated successfully",
        "broadcast": message,
    }


@tool(
    "delete_broadcast_message",
    "Delete a broadcast message",
    object_schema({"broadcast_guid": GUID_SCHEMA}, required=["broadcast_guid"]),
    operation="deleteBroadcastMessage",
)
async def delete_broadcast_message(params):
    async with create_service(SocialMediaService) as service:
        await service.delete_broadcast(params["broadcast_guid"])
    return {"message": f"Broadcast message {params['broadcast_guid']} deleted successfully"}


bcp = BCP(
    domain=DOMAIN,
    description="HubSpot social media broadcast and channel tools",
    tools=(
        list_social_channels,
        list_broadcast_messages,
        get_broadcast_message,
        create_broadcast_message,
        update_broadcast_message,
        delete_broadcast_message,
    ),
)
