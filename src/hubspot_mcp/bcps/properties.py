"""
Property and property group management for any HubSpot object type.
"""

from hubspot_mcp.bcps.common import results_of
from hubspot_mcp.core.errors import BcpError, ErrorCode
from hubspot_mcp.core.service import DomainService, create_service
from hubspot_mcp.core.types import BCP, object_schema, tool

DOMAIN = "Properties"

OBJECT_TYPE_SCHEMA = {
    "type": "string",
    "description": "HubSpot object type (contacts, companies, deals, tickets, notes, products, ...)",
}

PROPERTY_TYPES = ["string", "number", "date", "datetime", "enumeration", "bool"]
FIELD_TYPES = [
    "text",
    "textarea",
    "select",
    "radio",
    "checkbox",
    "booleancheckbox",
    "date",
    "file",
    "number",
]

OPTION_SCHEMA = {
    "type": "object",
    "properties": {
        "label": {"type": "string"},
        "value": {"type": "string"},
        "displayOrder": {"type": "integer"},
        "hidden": {"type": "boolean"},
    },
    "required": ["label", "value"],
}

PROPERTY_SCHEMAS = {
    "label": {"type": "string", "description": "Display label"},
    "description": {"type": "string", "description": "Property description"},
    "group_name": {
        "type": "string",
        "description": "Property group, see list_property_groups",
    },
    "type": {"type": "string", "enum": PROPERTY_TYPES, "description": "Data type"},
    "field_type": {"type": "string", "enum": FIELD_TYPES, "description": "Form field type"},
    "options": {
        "type": "array",
        "items": OPTION_SCHEMA,
        "description": "Options for enumeration properties",
    },
    "form_field": {"type": "boolean", "description": "Show the property in forms"},
    "display_order": {"type": "integer", "description": "Display order"},
    "hidden": {"type": "boolean", "description": "Hide the property"},
    "has_unique_value": {"type": "boolean", "description": "Values must be unique"},
    "calculation_formula": {
        "type": "string",
        "description": "Formula for calculated properties",
    },
}

# tool parameter -> HubSpot request field
PROPERTY_BODY_FIELDS = {
    "label": "label",
    "description": "description",
    "group_name": "groupName",
    "type": "type",
    "field_type": "fieldType",
    "options": "options",
    "form_field": "formField",
    "display_order": "displayOrder",
    "hidden": "hidden",
    "has_unique_value": "hasUniqueValue",
    "calculation_formula": "calculationFormula",
}


def _body(params, fields):
    return {field: params[param] for param, field in fields.items() if param in params}


def _property_summary(prop):
    return {
        "name": prop.get("name"),
        "label": prop.get("label"),
        "type": prop.get("type"),
        "fieldType": prop.get("fieldType"),
        "groupName": prop.get("groupName"),
        "description": prop.get("description"),
        "options": prop.get("options", []),
        "hidden": prop.get("hidden", False),
        "calculated": prop.get("calculated", False),
        "hubspotDefined": prop.get("hubspotDefined", False),
    }


def _group_summary(group):
    return {
        "name": group.get("name"),
        "label": group.get("label") or group.get("displayName"),
        "displayOrder": group.get("displayOrder"),
        "archived": group.get("archived", False),
    }


class PropertiesService(DomainService):
    def _path(self, object_type, *parts):
        return "/".join([f"/crm/v3/properties/{object_type}", *parts])

    async def list_properties(self, object_type):
        return results_of(await self.hubspot.get(self._path(object_type)))

    async def get_property(self, object_type, name):
        return await self.hubspot.get(self._path(object_type, name))

    async def create_property(self, object_type, body):
        return await self.hubspot.post(self._path(object_type), body)

    async def update_property(self, object_type, name, body):
        return await self.hubspot.patch(self._path(object_type, name), body)

    async def delete_property(self, object_type, name):
        await self.hubspot.delete(self._path(object_type, name))

    async def list_groups(self, object_type):
        return results_of(await self.hubspot.get(self._path(object_type, "groups")))

    async def get_group(self, object_type, name):
        return await self.hubspot.get(self._path(object_type, "groups", name))

    async def create_group(self, object_type, body):
        return await self.hubspot.post(self._path(object_type, "groups"), body)

    async def update_group(self, object_type, name, body):
        return await self.hubspot.patch(self._path(object_type, "groups", name), body)

    async def delete_group(self, object_type, name):
        await self.hubspot.delete(self._path(object_type, "groups", name))


@tool(
    "list_properties",
    "List the property definitions of an object type",
    object_schema({"object_type": OBJECT_TYPE_SCHEMA}, required=["object_type"]),
    operation="list",
)
async def list_properties(params):
    async with create_service(PropertiesService) as service:
        properties = await service.list_properties(params["object_type"])
    return {
        "objectType": params["object_type"],
        "properties": [_property_summary(prop) for prop in properties],
        "count": len(properties),
    }


@tool(
    "get_property",
    "Get one property definition",
    object_schema(
        {
            "object_type": OBJECT_TYPE_SCHEMA,
            "property_name": {"type": "string", "description": "Internal property name"},
        },
        required=["object_type", "property_name"],
    ),
    operation="get",
)
async def get_property(params):
    async with create_service(PropertiesService) as service:
        prop = await service.get_property(params["object_type"], params["property_name"])
    return {"property": _property_summary(prop)}


@tool(
    "create_property",
    "Create a custom property for an object type",
    object_schema(
        {
            "object_type": OBJECT_TYPE_SCHEMA,
            "name": {
                "type": "string",
                "description": "Internal name (unique, lowercase, no spaces)",
            },
            **PROPERTY_SCHEMAS,
        },
        required=["object_type", "name", "label", "group_name", "type", "field_type"],
    ),
    operation="create",
)
async def create_property(params):
    if params["name"] != params["name"].lower() or " " in params["name"]:
        raise BcpError(
            "Property names must be lowercase and contain no spaces",
            ErrorCode.VALIDATION_ERROR,
            400,
        )

    body = {
        "name": params["name"],
        "description": "",
        "formField": True,
        "displayOrder": -1,
        "hidden": False,
        "hasUniqueValue": False,
    }
    body.update(_body(params, PROPERTY_BODY_FIELDS))

    async with create_service(PropertiesService) as service:
        prop = await service.create_property(params["object_type"], body)
    return {
        "message": f"Created property {prop.get('name')} for {params['object_type']}",
        "property": _property_summary(prop),
    }


@tool(
    "update_property",
    "Update a property definition",
    object_schema(
        {
            "object_type": OBJECT_TYPE_SCHEMA,
            "property_name": {"type": "string", "description": "Internal property name"},
            **PROPERTY_SCHEMAS,
        },
        required=["object_type", "property_name"],
    ),
    operation="update",
)
async def update_property(params):
    body = _body(params, PROPERTY_BODY_FIELDS)
    if not body:
        raise BcpError("No fields provided to update", ErrorCode.VALIDATION_ERROR, 400)

    async with create_service(PropertiesService) as service:
        prop = await service.update_property(
            params["object_type"], params["property_name"], body
        )
    return {
        "message": f"Updated property {params['property_name']}",
        "property": _property_summary(prop),
    }


@tool(
    "delete_property",
    "Archive a custom property",
    object_schema(
        {
            "object_type": OBJECT_TYPE_SCHEMA,
            "property_name": {"type": "string", "description": "Internal property name"},
        },
        required=["object_type", "property_name"],
    ),
    operation="delete",
)
async def delete_property(params):
    async with create_service(PropertiesService) as service:
        await service.delete_property(params["object_type"], params["property_name"])
    return {
        "message": f"Deleted property {params['property_name']} from {params['object_type']}",
    }


@tool(
    "list_property_groups",
    "List the property groups of an object type",
    object_schema({"object_type": OBJECT_TYPE_SCHEMA}, required=["object_type"]),
    operation="listGroups",
)
async def list_property_groups(params):
    async with create_service(PropertiesService) as service:
        groups = await service.list_groups(params["object_type"])
    return {
        "objectType": params["object_type"],
        "groups": [_group_summary(group) for group in groups],
        "count": len(groups),
    }


@tool(
    "get_property_group",
    "Get one property group",
    object_schema(
        {
            "object_type": OBJECT_TYPE_SCHEMA,
            "group_name": {"type": "string", "description": "Property group name"},
        },
        required=["object_type", "group_name"],
    ),
    operation="getGroup",
)
async def get_property_group(params):
    async with create_service(PropertiesService) as service:
        group = await service.get_group(params["object_type"], params["group_name"])
    return {"group": _group_summary(group)}


@tool(
    "create_property_group",
    "Create a property group",
    object_schema(
        {
            "object_type": OBJECT_TYPE_SCHEMA,
            "name": {"type": "string", "description": "Internal group name"},
            "display_name": {"type": "string", "description": "Display label"},
            "display_order": {"type": "integer", "description": "Display order"},
        },
        required=["object_type", "name", "display_name"],
    ),
    operation="createGroup",
)
async def create_property_group(params):
    body = {
        "name": params["name"],
        "label": params["display_name"],
        "displayOrder": params.get("display_order", -1),
    }
    async with create_service(PropertiesService) as service:
        group = await service.create_group(params["object_type"], body)
    return {
        "message": f"Created property group {params['name']}",
        "group": _group_summary(group),
    }


@tool(
    "update_property_group",
    "Update a property group",
    object_schema(
        {
            "object_type": OBJECT_TYPE_SCHEMA,
            "group_name": {"type": "string", "description": "Property group name"},
            "display_name": {"type": "string", "description": "New display label"},
            "display_order": {"type": "integer", "description": "New display order"},
        },
        required=["object_type", "group_name"],
    ),
    operation="updateGroup",
)
async def update_property_group(params):
    body = _body(params, {"display_name": "label", "display_order": "displayOrder"})
    if not body:
        raise BcpError("No fields provided to update", ErrorCode.VALIDATION_ERROR, 400)

    async with create_service(PropertiesService) as service:
        group = await service.update_group(params["object_type"], params["group_name"], body)
    return {
        "message": f"Updated property group {params['group_name']}",
        "group": _group_summary(group),
    }


@tool(
    "delete_property_group",
    "Archive a property group",
    object_schema(
        {
            "object_type": OBJECT_TYPE_SCHEMA,
            "group_name": {"type": "string", "description": "Property group name"},
        },
        required=["object_type", "group_name"],
    ),
    operation="deleteGroup",
)
async def delete_property_group(params):
    async with create_service(PropertiesService) as service:
        await service.delete_group(params["object_type"], params["group_name"])
    return {"message": f"Deleted property group {params['group_name']}"}


bcp = BCP(
    domain=DOMAIN,
    description="HubSpot property and property group management tools",
    tools=(
        list_properties,
        get_property,
        create_property,
        update_property,
        delete_property,
        list_property_groups,
        get_property_group,
        create_property_group,
        update_property_group,
        delete_property_group,
    ),
)
