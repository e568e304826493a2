"""
Notes: engagement notes attached to contacts, companies and deals.

Notes are stored as the ``notes`` CRM object. The content lives in
hs_note_body, the note time in hs_timestamp (epoch milliseconds) and the
owner in hubspot_owner_id; any other property goes through ``metadata``.
"""

import time
from datetime import datetime, timezone

from hubspot_mcp.bcps.associations import association_type_id
from hubspot_mcp.bcps.common import (
    LIMIT_SCHEMA,
    CrmObjectService,
    paging_after,
    results_of,
)
from hubspot_mcp.core.errors import BcpError, ErrorCode
from hubspot_mcp.core.service import create_service
from hubspot_mcp.core.types import BCP, object_schema, tool

DOMAIN = "Notes"

NOTE_OBJECT_TYPE = "notes"
STANDARD_PROPERTIES = ("hs_note_body", "hs_timestamp", "hubspot_owner_id")
NOTE_PROPERTIES = [
    "hs_note_body",
    "hs_timestamp",
    "hubspot_owner_id",
    "hs_lastmodifieddate",
    "hs_createdate",
]
ASSOCIATED_TYPES = ["contacts", "companies", "deals", "tickets"]

# Search API filters on associations use the singular object name
SEARCH_ASSOCIATION_NAMES = {
    "contacts": "contact",
    "companies": "company",
    "deals": "deal",
    "tickets": "ticket",
}


def format_timestamp(value=None) -> str:
    """Epoch milliseconds as a string; the current time when value is missing or invalid"""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value))
    if isinstance(value, str) and value:
        if value.isdigit():
            return value
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
        else:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return str(int(parsed.timestamp() * 1000))
    return str(int(time.time() * 1000))


def _iso(millis):
    try:
        return datetime.fromtimestamp(int(millis) / 1000, tz=timezone.utc).isoformat()
    except (TypeError, ValueError):
        return millis


def _metadata_properties(metadata):
    return {
        key: value
        for key, value in (metadata or {}).items()
        if key not in STANDARD_PROPERTIES
    }


def format_note(record):
    properties = record.get("properties", {}) or {}
    associations = []
    for object_type, linked in (record.get("associations") or {}).items():
        for item in linked.get("results", []):
            associations.append(
                {
                    "objectId": item.get("id") or item.get("toObjectId"),
                    "objectType": object_type,
                    "associationType": item.get("type"),
                }
            )

    metadata = {
        "createdAt": properties.get("hs_createdate") or record.get("createdAt"),
        "updatedAt": properties.get("hs_lastmodifieddate") or record.get("updatedAt"),
        "archived": record.get("archived", False),
    }
    metadata.update(
        {
            key: value
            for key, value in properties.items()
            if key not in STANDARD_PROPERTIES + ("hs_createdate", "hs_lastmodifieddate")
        }
    )

    timestamp = properties.get("hs_timestamp")
    if isinstance(timestamp, str) and timestamp.isdigit():
        timestamp = _iso(timestamp)

    note = {
        "id": record.get("id") or properties.get("hs_object_id"),
        "content": properties.get("hs_note_body") or "",
        "timestamp": timestamp or record.get("createdAt"),
        "ownerId": properties.get("hubspot_owner_id"),
        "metadata": metadata,
    }
    if associations:
        note["associations"] = associations
    return note


def _association_type_for(object_type, association_type=None):
    type_id = association_type_id(NOTE_OBJECT_TYPE, object_type, association_type or "default")
    if type_id is None:
        raise BcpError(
            f"Notes cannot be associated with object type {object_type}",
            ErrorCode.VALIDATION_ERROR,
            400,
        )
    return type_id


class NotesService(CrmObjectService):
    object_type = NOTE_OBJECT_TYPE
    default_properties = NOTE_PROPERTIES

    async def create_note(self, content, timestamp=None, owner_id=None, metadata=None, associations=None):
        properties = {"hs_note_body": content, "hs_timestamp": format_timestamp(timestamp)}
        if owner_id:
            properties["hubspot_owner_id"] = owner_id
        properties.update(_metadata_properties(metadata))

        association_inputs = [
            {
                "to": {"id": item["object_id"]},
                "types": [
                    {
                        "associationCategory": "HUBSPOT_DEFINED",
                        "associationTypeId": _association_type_for(
                            item["object_type"], item.get("association_type")
                        ),
                    }
                ],
            }
            for item in associations or []
        ]
        return await self.create(properties, association_inputs)

    async def get_note(self, note_id):
        return await self.get(note_id, associations=ASSOCIATED_TYPES)

    async def update_note(self, note_id, content=None, timestamp=None, owner_id=None, metadata=None):
        properties = {}
        if content is not None:
            properties["hs_note_body"] = content
        if timestamp is not None:
            properties["hs_timestamp"] = format_timestamp(timestamp)
        if owner_id is not None:
            properties["hubspot_owner_id"] = owner_id
        properties.update(_metadata_properties(metadata))
        if not properties:
            raise BcpError(
                "Update input cannot be empty. Provide content, timestamp, owner_id or metadata.",
                ErrorCode.VALIDATION_ERROR,
                400,
            )
        return await self.update(note_id, properties)

    async def list_notes(
        self,
        limit=10,
        after=None,
        owner_id=None,
        start_date=None,
        end_date=None,
        query=None,
        associated_object_type=None,
        associated_object_id=None,
    ):
        filters = []
        if owner_id:
            filters.append({"propertyName": "hubspot_owner_id", "operator": "EQ", "value": owner_id})
        if start_date:
            filters.append(
                {"propertyName": "hs_timestamp", "operator": "GTE", "value": format_timestamp(start_date)}
            )
        if end_date:
            filters.append(
                {"propertyName": "hs_timestamp", "operator": "LTE", "value": format_timestamp(end_date)}
            )
        if associated_object_type and associated_object_id:
            filters.append(
                {
                    "propertyName": f"associations.{SEARCH_ASSOCIATION_NAMES[associated_object_type]}",
                    "operator": "EQ",
                    "value": associated_object_id,
                }
            )

        body = {
            "filterGroups": [{"filters": filters}] if filters else [],
            "sorts": [{"propertyName": "hs_timestamp", "direction": "DESCENDING"}],
            "properties": NOTE_PROPERTIES,
            "limit": limit,
        }
        if after:
            body["after"] = after
        if query:
            body["query"] = query
        return await self.hubspot.post(f"{self.base_path}/search", body)

    async def add_association(self, note_id, object_type, object_id, association_type=None):
        type_id = _association_type_for(object_type, association_type)
        return await self.hubspot.put(
            f"/crm/v4/objects/{NOTE_OBJECT_TYPE}/{note_id}/associations/{object_type}/{object_id}",
            [{"associationCategory": "HUBSPOT_DEFINED", "associationTypeId": type_id}],
        )

    async def remove_association(self, note_id, object_type, object_id):
        await self.hubspot.delete(
            f"/crm/v4/objects/{NOTE_OBJECT_TYPE}/{note_id}/associations/{object_type}/{object_id}"
        )

    async def list_associations(self, note_id, to_object_type, limit=500, after=None):
        return await self.hubspot.get(
            f"/crm/v4/objects/{NOTE_OBJECT_TYPE}/{note_id}/associations/{to_object_type}",
            params={"limit": limit, "after": after},
        )


def _page(response):
    notes = [format_note(record) for record in results_of(response)]
    return {
        "notes": notes,
        "count": len(notes),
        "total": response.get("total", len(notes)) if isinstance(response, dict) else len(notes),
        "after": paging_after(response),
    }


CONTENT_SCHEMA = {"type": "string", "description": "Note text (hs_note_body)"}
TIMESTAMP_SCHEMA = {
    "type": ["string", "integer"],
    "description": "Note time as ISO 8601 or epoch milliseconds, defaults to now",
}
OWNER_SCHEMA = {"type": "string", "description": "HubSpot owner ID"}
METADATA_SCHEMA = {
    "type": "object",
    "description": "Additional note properties (custom properties must exist in HubSpot)",
}
NOTE_ID_SCHEMA = {"type": "string", "description": "HubSpot note ID"}
OBJECT_TYPE_SCHEMA = {"type": "string", "enum": ASSOCIATED_TYPES}
LIST_FILTER_SCHEMAS = {
    "limit": LIMIT_SCHEMA,
    "after": {"type": "string", "description": "Pagination cursor"},
    "start_date": {"type": "string", "description": "Only notes at or after this ISO date"},
    "end_date": {"type": "string", "description": "Only notes at or before this ISO date"},
}


@tool(
    "create_note",
    "Create a note, optionally associated with contacts, companies, deals or tickets",
    object_schema(
        {
            "content": CONTENT_SCHEMA,
            "timestamp": TIMESTAMP_SCHEMA,
            "owner_id": OWNER_SCHEMA,
            "metadata": METADATA_SCHEMA,
            "associations": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "object_type": OBJECT_TYPE_SCHEMA,
                        "object_id": {"type": "string"},
                        "association_type": {"type": "string"},
                    },
                    "required": ["object_type", "object_id"],
                },
            },
        },
        required=["content"],
    ),
    operation="create",
)
async def create_note(params):
    async with create_service(NotesService) as service:
        note = await service.create_note(
            params["content"],
            params.get("timestamp"),
            params.get("owner_id"),
            params.get("metadata"),
            params.get("associations"),
        )
    return {"message": "Note created successfully", "note": format_note(note)}


@tool(
    "get_note",
    "Get a note by ID, with its associations",
    object_schema({"note_id": NOTE_ID_SCHEMA}, required=["note_id"]),
    operation="get",
)
async def get_note(params):
    async with create_service(NotesService) as service:
        note = await service.get_note(params["note_id"])
    return {"note": format_note(note)}


@tool(
    "update_note",
    "Update a note's content, timestamp, owner or metadata",
    object_schema(
        {
            "note_id": NOTE_ID_SCHEMA,
            "content": CONTENT_SCHEMA,
            "timestamp": TIMESTAMP_SCHEMA,
            "owner_id": OWNER_SCHEMA,
            "metadata": METADATA_SCHEMA,
        },
        required=["note_id"],
    ),
    operation="update",
)
async def update_note(params):
    async with create_service(NotesService) as service:
        note = await service.update_note(
            params["note_id"],
            params.get("content"),
            params.get("timestamp"),
            params.get("owner_id"),
            params.get("metadata"),
        )
    return {"message": "Note updated successfully", "note": format_note(note)}


@tool(
    "delete_note",
    "Archive a note",
    object_schema({"note_id": NOTE_ID_SCHEMA}, required=["note_id"]),
    operation="delete",
)
async def delete_note(params):
    async with create_service(NotesService) as service:
        await service.archive(params["note_id"])
    return {"message": "Note deleted successfully", "id": params["note_id"]}


@tool(
    "list_notes",
    "List notes, newest first, with optional owner, date and text filters",
    object_schema(
        {
            **LIST_FILTER_SCHEMAS,
            "owner_id": OWNER_SCHEMA,
            "query": {"type": "string", "description": "Free-text search"},
        }
    ),
    operation="list",
)
async def list_notes(params):
    async with create_service(NotesService) as service:
        response = await service.list_notes(
            limit=params.get("limit", 10),
            after=params.get("after"),
            owner_id=params.get("owner_id"),
            start_date=params.get("start_date"),
            end_date=params.get("end_date"),
            query=params.get("query"),
        )
    return _page(response)


@tool(
    "recent_notes",
    "Get the most recent notes",
    object_schema({"limit": LIMIT_SCHEMA}),
    operation="recent",
)
async def recent_notes(params):
    async with create_service(NotesService) as service:
        response = await service.list_notes(limit=params.get("limit", 10))
    return _page(response)


def _create_for(object_type, id_param, operation, label):
    @tool(
        f"create_{label}_note",
        f"Create a note associated with a {label}",
        object_schema(
            {
                id_param: {"type": "string", "description": f"HubSpot {label} ID"},
                "content": CONTENT_SCHEMA,
                "timestamp": TIMESTAMP_SCHEMA,
                "owner_id": OWNER_SCHEMA,
                "metadata": METADATA_SCHEMA,
            },
            required=[id_param, "content"],
        ),
        operation=operation,
    )
    async def handler(params):
        async with create_service(NotesService) as service:
            note = await service.create_note(
                params["content"],
                params.get("timestamp"),
                params.get("owner_id"),
                params.get("metadata"),
                [{"object_type": object_type, "object_id": params[id_param]}],
            )
        return {
            "message": f"Note created for {label} {params[id_param]}",
            "note": format_note(note),
        }

    return handler


def _list_for(object_type, id_param, operation, label):
    @tool(
        f"list_{label}_notes",
        f"List the notes associated with a {label}",
        object_schema(
            {id_param: {"type": "string", "description": f"HubSpot {label} ID"}, **LIST_FILTER_SCHEMAS},
            required=[id_param],
        ),
        operation=operation,
    )
    async def handler(params):
        async with create_service(NotesService) as service:
            response = await service.list_notes(
                limit=params.get("limit", 10),
                after=params.get("after"),
                start_date=params.get("start_date"),
                end_date=params.get("end_date"),
                associated_object_type=object_type,
                associated_object_id=params[id_param],
            )
        return {**_page(response), "message": f"Retrieved notes for {label} {params[id_param]}"}

    return handler


create_contact_note = _create_for("contacts", "contact_id", "createContactNote", "contact")
create_company_note = _create_for("companies", "company_id", "createCompanyNote", "company")
create_deal_note = _create_for("deals", "deal_id", "createDealNote", "deal")
list_contact_notes = _list_for("contacts", "contact_id", "listContactNotes", "contact")
list_company_notes = _list_for("companies", "company_id", "listCompanyNotes", "company")
list_deal_notes = _list_for("deals", "deal_id", "listDealNotes", "deal")

ASSOCIATION_SCHEMAS = {
    "note_id": NOTE_ID_SCHEMA,
    "object_type": OBJECT_TYPE_SCHEMA,
    "object_id": {"type": "string", "description": "ID of the associated record"},
}


@tool(
    "add_note_association",
    "Associate an existing note with a contact, company, deal or ticket",
    object_schema(
        {**ASSOCIATION_SCHEMAS, "association_type": {"type": "string"}},
        required=["note_id", "object_type", "object_id"],
    ),
    operation="addAssociation",
)
async def add_note_association(params):
    async with create_service(NotesService) as service:
        await service.add_association(
            params["note_id"],
            params["object_type"],
            params["object_id"],
            params.get("association_type"),
        )
        note = await service.get_note(params["note_id"])
    return {"message": "Association added to note", "note": format_note(note)}


@tool(
    "remove_note_association",
    "Remove the association between a note and a record",
    object_schema(ASSOCIATION_SCHEMAS, required=["note_id", "object_type", "object_id"]),
    operation="removeAssociation",
)
async def remove_note_association(params):
    async with create_service(NotesService) as service:
        await service.remove_association(
            params["note_id"], params["object_type"], params["object_id"]
        )
    return {
        "message": f"Removed association between note {params['note_id']} and "
        f"{params['object_type']} {params['object_id']}",
    }


@tool(
    "list_note_associations",
    "List the records of one type associated with a note",
    object_schema(
        {
            "note_id": NOTE_ID_SCHEMA,
            "to_object_type": OBJECT_TYPE_SCHEMA,
            "limit": {"type": "integer", "minimum": 1, "maximum": 500, "default": 500},
            "after": {"type": "string"},
        },
        required=["note_id", "to_object_type"],
    ),
    operation="listAssociations",
)
async def list_note_associations(params):
    async with create_service(NotesService) as service:
        response = await service.list_associations(
            params["note_id"],
            params["to_object_type"],
            params.get("limit", 500),
            params.get("after"),
        )
    associations = [
        {
            "objectId": item.get("toObjectId"),
            "objectType": params["to_object_type"],
            "types": item.get("associationTypes", []),
        }
        for item in results_of(response)
    ]
    return {
        "noteId": params["note_id"],
        "associations": associations,
        "count": len(associations),
        "after": paging_after(response),
    }


bcp = BCP(
    domain=DOMAIN,
    description="HubSpot note tools for contacts, companies and deals",
    tools=(
        create_note,
        get_note,
        update_note,
        delete_note,
        list_notes,
        recent_notes,
        create_contact_note,
        create_company_note,
        create_deal_note,
        list_contact_notes,
        list_company_notes,
        list_deal_notes,
        add_note_association,
        remove_note_association,
        list_note_associations,
    ),
)
