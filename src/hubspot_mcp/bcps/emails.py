"""
Marketing emails (Marketing Email API v3). Sending is not supported.

The v3 API takes email fields at the root of the request body rather than
under a ``properties`` wrapper.
"""

from hubspot_mcp.bcps.common import LIMIT_SCHEMA, paging_after, results_of
from hubspot_mcp.core.errors import BcpError, ErrorCode
from hubspot_mcp.core.service import DomainService, create_service
from hubspot_mcp.core.types import BCP, object_schema, tool

DOMAIN = "Emails"

EMAIL_STATES = ["DRAFT", "PUBLISHED", "SCHEDULED", "ARCHIVED"]
EMAIL_TYPES = ["REGULAR", "AUTOMATED", "AB_TEST", "FOLLOW_UP"]

# tool parameter -> v3 request body field
EMAIL_BODY_FIELDS = {
    "name": "name",
    "subject": "subject",
    "from_name": "fromName",
    "from_email": "fromEmail",
    "reply_to": "replyTo",
    "preview_text": "previewText",
    "folder_id": "folderId",
    "template_id": "templateId",
    "campaign_id": "campaignId",
    "type": "type",
}

FIELD_SCHEMAS = {
    "name": {"type": "string", "description": "Internal email name"},
    "subject": {"type": "string", "description": "Subject line"},
    "from_name": {"type": "string", "description": "Sender name"},
    "from_email": {"type": "string", "description": "Sender email address"},
    "reply_to": {"type": "string", "description": "Reply-to address"},
    "preview_text": {"type": "string", "description": "Preview text for email clients"},
    "folder_id": {"type": "string", "description": "Folder ID"},
    "template_id": {"type": "string", "description": "Template the email is based on"},
    "campaign_id": {"type": "string", "description": "Campaign to associate the email with"},
    "type": {"type": "string", "enum": EMAIL_TYPES, "description": "Email type"},
}

EMAIL_ID_SCHEMA = {"type": "string", "description": "Marketing email ID"}


def _body(params):
    return {
        field: params[param]
        for param, field in EMAIL_BODY_FIELDS.items()
        if params.get(param) not in (None, "")
    }


def format_email(email):
    from_info = email.get("from") or {}
    content = email.get("content") or {}
    return {
        "id": email.get("id"),
        "name": email.get("name"),
        "subject": email.get("subject"),
        "state": email.get("state"),
        "type": email.get("type"),
        "templateId": email.get("templateId") or content.get("templatePath"),
        "from": {
            "name": email.get("fromName") or from_info.get("fromName"),
            "email": email.get("fromEmail") or from_info.get("replyTo"),
        },
        "replyTo": email.get("replyTo") or from_info.get("replyTo"),
        "previewText": email.get("previewText"),
        "metadata": {
            "createdAt": email.get("createdAt"),
            "updatedAt": email.get("updatedAt"),
            "publishedAt": email.get("publishDate"),
            "archived": email.get("archived", False),
            "folderId": email.get("folderId"),
            "campaignId": email.get("campaign") or email.get("campaignId"),
        },
    }


class EmailsService(DomainService):
    base_path = "/marketing/v3/emails"

    async def create(self, body):
        body = {"businessUnitId": "0", **body}
        return await self.hubspot.post(f"{self.base_path}/", body)

    async def get(self, email_id):
        return await self.hubspot.get(f"{self.base_path}/{email_id}")

    async def update(self, email_id, body):
        return await self.hubspot.patch(f"{self.base_path}/{email_id}", body)

    async def delete(self, email_id):
        await self.hubspot.delete(f"{self.base_path}/{email_id}")

    async def list(self, **filters):
        return await self.hubspot.get(f"{self.base_path}/", params=filters)


@tool(
    "create_email",
    "Create a marketing email draft",
    object_schema(FIELD_SCHEMAS, required=["name", "template_id"]),
    operation="create",
)
async def create_email(params):
    async with create_service(EmailsService) as service:
        email = await service.create(_body(params))
    return {"message": "Marketing email created successfully", "email": format_email(email)}


@tool(
    "get_email",
    "Get a marketing email by ID",
    object_schema({"email_id": EMAIL_ID_SCHEMA}, required=["email_id"]),
    operation="get",
)
async def get_email(params):
    async with create_service(EmailsService) as service:
        email = await service.get(params["email_id"])
    return {"email": format_email(email)}


@tool(
    "update_email",
    "Update a marketing email",
    object_schema(
        {
            "email_id": EMAIL_ID_SCHEMA,
            **FIELD_SCHEMAS,
            "state": {"type": "string", "enum": EMAIL_STATES},
            "metadata": {
                "type": "object",
                "description": "Additional root-level email fields",
            },
        },
        required=["email_id"],
    ),
    operation="update",
)
async def update_email(params):
    body = _body(params)
    if params.get("state"):
        body["state"] = params["state"]
    for key, value in (params.get("metadata") or {}).items():
        if value is not None:
            body[key] = str(value)
    if not body:
        raise BcpError("No fields provided to update", ErrorCode.VALIDATION_ERROR, 400)

    async with create_service(EmailsService) as service:
        email = await service.update(params["email_id"], body)
    return {"message": "Marketing email updated successfully", "email": format_email(email)}


@tool(
    "delete_email",
    "Archive a marketing email",
    object_schema({"email_id": EMAIL_ID_SCHEMA}, required=["email_id"]),
    operation="delete",
)
async def delete_email(params):
    async with create_service(EmailsService) as service:
        await service.delete(params["email_id"])
    return {"message": "Marketing email deleted successfully", "id": params["email_id"]}


@tool(
    "list_emails",
    "List marketing emails with optional filters",
    object_schema(
        {
            "state": {"type": "string", "enum": EMAIL_STATES},
            "type": {"type": "string", "enum": EMAIL_TYPES},
            "folder_id": {"type": "string"},
            "campaign_id": {"type": "string"},
            "created_after": {"type": "string", "description": "ISO date"},
            "created_before": {"type": "string", "description": "ISO date"},
            "query": {"type": "string", "description": "Name search"},
            "limit": LIMIT_SCHEMA,
            "after": {"type": "string", "description": "Pagination cursor"},
        }
    ),
    operation="list",
)
async def list_emails(params):
    async with create_service(EmailsService) as service:
        response = await service.list(
            state=params.get("state"),
            type=params.get("type"),
            folderId=params.get("folder_id"),
            campaignId=params.get("campaign_id"),
            createdAfter=params.get("created_after"),
            createdBefore=params.get("created_before"),
            query=params.get("query"),
            limit=params.get("limit", 10),
            after=params.get("after"),
        )
    emails = [format_email(email) for email in results_of(response)]
    return {
        "emails": emails,
        "count": len(emails),
        "total": response.get("total", len(emails)),
        "after": paging_after(response),
    }


@tool(
    "recent_emails",
    "Get the most recently updated marketing emails",
    object_schema({"limit": LIMIT_SCHEMA}),
    operation="recent",
)
async def recent_emails(params):
    async with create_service(EmailsService) as service:
        response = await service.list(limit=params.get("limit", 10), sort="-updatedAt")
    emails = [format_email(email) for email in results_of(response)]
    return {"emails": emails, "count": len(emails)}


bcp = BCP(
    domain=DOMAIN,
    description="HubSpot marketing email tools (Marketing Email API v3)",
    tools=(create_email, get_email, update_email, delete_email, list_emails, recent_emails),
)
