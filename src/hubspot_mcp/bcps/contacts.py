from hubspot_mcp.bcps.common import (
    ID_SCHEMA,
    LIMIT_SCHEMA,
    PROPERTIES_SCHEMA,
    CrmObjectService,
    format_record,
    results_of,
    single_filter,
)
from hubspot_mcp.core.errors import BcpError, ErrorCode
from hubspot_mcp.core.service import create_service, prepare_properties
from hubspot_mcp.core.types import BCP, object_schema, tool

DOMAIN = "Contacts"

CONTACT_FIELDS = {
    "email": "email",
    "first_name": "firstname",
    "last_name": "lastname",
    "phone": "phone",
    "company": "company",
    "job_title": "jobtitle",
    "website": "website",
}

FIELD_SCHEMAS = {
    "email": {"type": "string", "description": "Contact email address"},
    "first_name": {"type": "string", "description": "Contact first name"},
    "last_name": {"type": "string", "description": "Contact last name"},
    "phone": {"type": "string", "description": "Contact phone number"},
    "company": {"type": "string", "description": "Contact company name"},
    "job_title": {"type": "string", "description": "Contact job title"},
    "website": {"type": "string", "description": "Contact website URL"},
    "properties": PROPERTIES_SCHEMA,
}


class ContactsService(CrmObjectService):
    object_type = "contacts"
    default_properties = ["email", "firstname", "lastname", "phone", "company"]

    async def search_by_email(self, email: str, limit: int = 10):
        self.hubspot.validate_required({"email": email}, ["email"])
        return await self.search([single_filter("email", "EQ", email)], limit)

    async def search_by_name(self, name: str, limit: int = 10):
        parts = name.split()
        if not parts:
            raise BcpError("Search name is empty", ErrorCode.VALIDATION_ERROR, 400)
        filter_groups = [single_filter("firstname", "CONTAINS_TOKEN", parts[0])]
        if len(parts) > 1:
            filter_groups.append(
                single_filter("lastname", "CONTAINS_TOKEN", " ".join(parts[1:]))
            )
        return await self.search(filter_groups, limit)


def _summary(contact):
    properties = contact.get("properties", {})
    return {
        "id": contact.get("id"),
        "email": properties.get("email"),
        "firstName": properties.get("firstname"),
        "lastName": properties.get("lastname"),
        "company": properties.get("company"),
        "phone": properties.get("phone"),
        "createdAt": contact.get("createdAt"),
    }


@tool(
    "create_contact",
    "Create a new contact in HubSpot",
    object_schema(FIELD_SCHEMAS, required=["email"]),
    operation="create",
)
async def create_contact(params):
    async with create_service(ContactsService) as service:
        contact = await service.create(prepare_properties(params, CONTACT_FIELDS))
    return {"message": "Contact created successfully", "contact": _summary(contact)}


@tool(
    "get_contact",
    "Get a contact by ID from HubSpot",
    object_schema({"contact_id": ID_SCHEMA}, required=["contact_id"]),
    operation="get",
)
async def get_contact(params):
    async with create_service(ContactsService) as service:
        contact = await service.get(params["contact_id"])
    return {"contact": format_record(contact)}


@tool(
    "update_contact",
    "Update an existing contact's properties",
    object_schema({"contact_id": ID_SCHEMA, **FIELD_SCHEMAS}, required=["contact_id"]),
    operation="update",
)
async def update_contact(params):
    properties = prepare_properties(params, CONTACT_FIELDS)
    if not properties:
        raise BcpError(
            "No properties provided to update", ErrorCode.VALIDATION_ERROR, 400
        )
    async with create_service(ContactsService) as service:
        contact = await service.update(params["contact_id"], properties)
    return {"message": "Contact updated successfully", "contact": format_record(contact)}


@tool(
    "delete_contact",
    "Archive a contact in HubSpot",
    object_schema({"contact_id": ID_SCHEMA}, required=["contact_id"]),
    operation="delete",
)
async def delete_contact(params):
    async with create_service(ContactsService) as service:
        await service.archive(params["contact_id"])
    return {"message": "Contact deleted successfully", "id": params["contact_id"]}


@tool(
    "search_contacts",
    "Search contacts by email address or by name",
    object_schema(
        {
            "search_type": {
                "type": "string",
                "enum": ["email", "name"],
                "description": "Type of search to perform",
            },
            "search_term": {"type": "string", "description": "Email or name to search for"},
            "limit": LIMIT_SCHEMA,
        },
        required=["search_type", "search_term"],
    ),
    operation="search",
)
async def search_contacts(params):
    limit = params.get("limit", 10)
    async with create_service(ContactsService) as service:
        if params["search_type"] == "email":
            response = await service.search_by_email(params["search_term"], limit)
        else:
            response = await service.search_by_name(params["search_term"], limit)

    contacts = [_summary(contact) for contact in results_of(response)]
    return {
        "message": f"Found {len(contacts)} contacts",
        "contacts": contacts,
        "count": len(contacts),
    }


@tool(
    "recent_contacts",
    "Get recently created or updated contacts",
    object_schema({"limit": LIMIT_SCHEMA}),
    operation="recent",
)
async def recent_contacts(params):
    async with create_service(ContactsService) as service:
        response = await service.list_page(limit=params.get("limit", 10))

    contacts = [_summary(contact) for contact in results_of(response)]
    return {
        "message": f"Retrieved {len(contacts)} recent contacts",
        "contacts": contacts,
        "count": len(contacts),
    }


bcp = BCP(
    domain=DOMAIN,
    description="HubSpot contact management tools",
    tools=(
        create_contact,
        get_contact,
        update_contact,
        delete_contact,
        search_contacts,
        recent_contacts,
    ),
)
