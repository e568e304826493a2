"""
Associations between HubSpot records (CRM v4 associations API).

HUBSPOT_DEFINED association type IDs for the common object pairs are kept in
ASSOCIATION_TYPES so callers can create associations without knowing them.
"""

import logging
from types import MappingProxyType

from hubspot_mcp.bcps.common import paging_after, results_of
from hubspot_mcp.core.errors import BcpError, ErrorCode
from hubspot_mcp.core.service import DomainService, create_service
from hubspot_mcp.core.types import BCP, object_schema, tool

DOMAIN = "Associations"

logger = logging.getLogger("hubspot-associations")

ASSOCIATION_TYPES = MappingProxyType(
    {
        "notes": {
            "contacts": {"default": 202},
            "companies": {"default": 214},
            "deals": {"default": 216},
            "tickets": {"default": 218},
        },
        "quotes": {
            "line_items": {"quote_to_line_item": 35},
            "deals": {"default": 64},
        },
        "line_items": {
            "quotes": {"line_item_to_quote": 36},
            "deals": {"line_item_to_deal": 19},
        },
        "contacts": {
            "companies": {"primary": 1, "non-primary": 2},
            "deals": {"default": 3},
            "tickets": {"default": 16},
        },
        "companies": {
            "contacts": {"primary": 1, "non-primary": 2},
            "deals": {"default": 5},
        },
        "deals": {
            "contacts": {"default": 3},
            "companies": {"default": 5},
            "tickets": {"default": 25},
        },
        "tickets": {
            "contacts": {"default": 16},
            "companies": {"default": 26},
            "deals": {"default": 25},
        },
    }
)


def normalize_object_type(object_type: str) -> str:
    object_type = object_type.strip().lower()
    return object_type if object_type.endswith("s") else f"{object_type}s"


def association_types_between(from_type: str, to_type: str):
    return dict(
        ASSOCIATION_TYPES.get(normalize_object_type(from_type), {}).get(
            normalize_object_type(to_type), {}
        )
    )


def association_type_id(from_type: str, to_type: str, label: str = "default"):
    """
    Look up a HUBSPOT_DEFINED association type ID.

    Falls back to the pair's default, then to its only entry, and returns
    None when the pair is unknown.
    """
    types = association_types_between(from_type, to_type)
    if not types:
        return None
    label = (label or "default").lower()
    if label in types:
        return types[label]
    if "default" in types:
        logger.warning(
            f"Association type '{label}' not found for {from_type} -> {to_type}, using default"
        )
        return types["default"]
    if "primary" in types:
        return types["primary"]
    return next(iter(types.values()))


def default_types(from_type: str, to_type: str):
    type_id = association_type_id(from_type, to_type)
    if type_id is None:
        raise BcpError(
            f"At least one association type is required and auto-discovery failed "
            f"for {from_type} -> {to_type}",
            ErrorCode.VALIDATION_ERROR,
            400,
        )
    logger.info(f"Auto-discovered association type {type_id} for {from_type} -> {to_type}")
    return [{"associationCategory": "HUBSPOT_DEFINED", "associationTypeId": type_id}]


class AssociationsService(DomainService):
    async def create(self, from_type, from_id, to_type, to_id, types=None):
        types = types or default_types(from_type, to_type)
        return await self.hubspot.put(
            f"/crm/v4/objects/{from_type}/{from_id}/associations/{to_type}/{to_id}",
            types,
        )

    async def create_default(self, from_type, from_id, to_type, to_id):
        return await self.hubspot.put(
            f"/crm/v4/objects/{from_type}/{from_id}/associations/default/{to_type}/{to_id}"
        )

    async def delete(self, from_type, from_id, to_type, to_id):
        await self.hubspot.delete(
            f"/crm/v4/objects/{from_type}/{from_id}/associations/{to_type}/{to_id}"
        )

    async def list(self, object_type, object_id, to_type, limit=500, after=None):
        if limit <= 0 or limit > 500:
            limit = 500
        return await self.hubspot.get(
            f"/crm/v4/objects/{object_type}/{object_id}/associations/{to_type}",
            params={"limit": limit, "after": after},
        )

    async def labels(self, from_type, to_type):
        return results_of(
            await self.hubspot.get(f"/crm/v4/associations/{from_type}/{to_type}/labels")
        )

    async def batch(self, from_type, to_type, action, inputs):
        if not inputs:
            raise BcpError(
                "At least one association input is required",
                ErrorCode.VALIDATION_ERROR,
                400,
            )
        return await self.hubspot.post(
            f"/crm/v4/associations/{from_type}/{to_type}/batch/{action}",
            {"inputs": inputs},
        )


PAIR_SCHEMA = {
    "from_object_type": {"type": "string", "description": "Source object type, e.g. contacts"},
    "to_object_type": {"type": "string", "description": "Target object type, e.g. companies"},
}

SINGLE_SCHEMA = {
    **PAIR_SCHEMA,
    "from_object_id": {"type": "string", "description": "Source record ID"},
    "to_object_id": {"type": "string", "description": "Target record ID"},
}

SINGLE_REQUIRED = ["from_object_type", "from_object_id", "to_object_type", "to_object_id"]

TYPE_SCHEMA = {
    "type": "object",
    "properties": {
        "associationCategory": {
            "type": "string",
            "enum": ["HUBSPOT_DEFINED", "USER_DEFINED", "INTEGRATOR_DEFINED"],
        },
        "associationTypeId": {"type": "integer"},
    },
    "required": ["associationCategory", "associationTypeId"],
}


@tool(
    "create_association",
    "Associate two records; the association type is discovered when none is given",
    object_schema(
        {
            **SINGLE_SCHEMA,
            "types": {
                "type": "array",
                "items": TYPE_SCHEMA,
                "description": "Association types (optional)",
            },
        },
        required=SINGLE_REQUIRED,
    ),
    operation="create",
)
async def create_association(params):
    async with create_service(AssociationsService) as service:
        result = await service.create(
            params["from_object_type"],
            params["from_object_id"],
            params["to_object_type"],
            params["to_object_id"],
            params.get("types"),
        )
    return {
        "message": "Association created successfully",
        "association": result,
    }


@tool(
    "create_default_association",
    "Associate two records with HubSpot's default association type",
    object_schema(SINGLE_SCHEMA, required=SINGLE_REQUIRED),
    operation="createDefault",
)
async def create_default_association(params):
    async with create_service(AssociationsService) as service:
        result = await service.create_default(
            params["from_object_type"],
            params["from_object_id"],
            params["to_object_type"],
            params["to_object_id"],
        )
    return {"message": "Default association created successfully", "association": result}


@tool(
    "delete_association",
    "Remove every association between two records",
    object_schema(SINGLE_SCHEMA, required=SINGLE_REQUIRED),
    operation="delete",
)
async def delete_association(params):
    async with create_service(AssociationsService) as service:
        await service.delete(
            params["from_object_type"],
            params["from_object_id"],
            params["to_object_type"],
            params["to_object_id"],
        )
    return {"message": "Association deleted successfully"}


@tool(
    "list_associations",
    "List the records of one type associated with a record",
    object_schema(
        {
            "object_type": {"type": "string", "description": "Object type of the record"},
            "object_id": {"type": "string", "description": "Record ID"},
            "to_object_type": {"type": "string", "description": "Associated object type"},
            "limit": {"type": "integer", "minimum": 1, "maximum": 500, "default": 500},
            "after": {"type": "string", "description": "Pagination cursor"},
        },
        required=["object_type", "object_id", "to_object_type"],
    ),
    operation="list",
)
async def list_associations(params):
    async with create_service(AssociationsService) as service:
        response = await service.list(
            params["object_type"],
            params["object_id"],
            params["to_object_type"],
            params.get("limit", 500),
            params.get("after"),
        )
    results = results_of(response)
    return {"associations": results, "count": len(results), "after": paging_after(response)}


BATCH_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "from": {"type": "object", "properties": {"id": {"type": "string"}}, "required": ["id"]},
        "to": {"type": "object", "properties": {"id": {"type": "string"}}, "required": ["id"]},
        "types": {"type": "array", "items": TYPE_SCHEMA},
    },
    "required": ["from", "to"],
}


@tool(
    "batch_create_associations",
    "Create many associations between two object types",
    object_schema(
        {**PAIR_SCHEMA, "inputs": {"type": "array", "items": BATCH_INPUT_SCHEMA}},
        required=["from_object_type", "to_object_type", "inputs"],
    ),
    operation="batchCreate",
)
async def batch_create_associations(params):
    from_type, to_type = params["from_object_type"], params["to_object_type"]
    inputs = [
        {**item, "types": item.get("types") or default_types(from_type, to_type)}
        for item in params["inputs"]
    ]
    async with create_service(AssociationsService) as service:
        response = await service.batch(from_type, to_type, "create", inputs)
    return {"message": "Associations created", "results": results_of(response), "status": response.get("status")}


@tool(
    "batch_create_default_associations",
    "Create many default associations between two object types",
    object_schema(
        {**PAIR_SCHEMA, "inputs": {"type": "array", "items": BATCH_INPUT_SCHEMA}},
        required=["from_object_type", "to_object_type", "inputs"],
    ),
    operation="batchCreateDefault",
)
async def batch_create_default_associations(params):
    inputs = [{"from": item["from"], "to": item["to"]} for item in params["inputs"]]
    async with create_service(AssociationsService) as service:
        response = await service.batch(
            params["from_object_type"], params["to_object_type"], "associate/default", inputs
        )
    return {"message": "Default associations created", "results": results_of(response)}


@tool(
    "batch_delete_associations",
    "Remove many associations between two object types",
    object_schema(
        {
            **PAIR_SCHEMA,
            "inputs": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "from": {"type": "object", "properties": {"id": {"type": "string"}}},
                        "to": {
                            "type": "array",
                            "items": {"type": "object", "properties": {"id": {"type": "string"}}},
                        },
                    },
                    "required": ["from", "to"],
                },
            },
        },
        required=["from_object_type", "to_object_type", "inputs"],
    ),
    operation="batchDelete",
)
async def batch_delete_associations(params):
    async with create_service(AssociationsService) as service:
        await service.batch(
            params["from_object_type"], params["to_object_type"], "archive", params["inputs"]
        )
    return {"message": f"Deleted associations for {len(params['inputs'])} records"}


@tool(
    "batch_read_associations",
    "Read the associations of many records at once",
    object_schema(
        {
            **PAIR_SCHEMA,
            "inputs": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {"id": {"type": "string"}, "after": {"type": "string"}},
                    "required": ["id"],
                },
            },
        },
        required=["from_object_type", "to_object_type", "inputs"],
    ),
    operation="batchRead",
)
async def batch_read_associations(params):
    async with create_service(AssociationsService) as service:
        response = await service.batch(
            params["from_object_type"], params["to_object_type"], "read", params["inputs"]
        )
    results = results_of(response)
    return {"results": results, "count": len(results)}


@tool(
    "delete_association_labels",
    "Remove specific association labels between records, keeping the association",
    object_schema(
        {**PAIR_SCHEMA, "inputs": {"type": "array", "items": BATCH_INPUT_SCHEMA}},
        required=["from_object_type", "to_object_type", "inputs"],
    ),
    operation="deleteLabels",
)
async def delete_association_labels(params):
    async with create_service(AssociationsService) as service:
        await service.batch(
            params["from_object_type"], params["to_object_type"], "labels/archive", params["inputs"]
        )
    return {"message": f"Deleted association labels for {len(params['inputs'])} records"}


@tool(
    "get_association_types",
    "Get the association types HubSpot defines between two object types",
    object_schema(PAIR_SCHEMA, required=["from_object_type", "to_object_type"]),
    operation="getAssociationTypes",
)
async def get_association_types(params):
    async with create_service(AssociationsService) as service:
        labels = await service.labels(params["from_object_type"], params["to_object_type"])
    return {
        "fromObjectType": params["from_object_type"],
        "toObjectType": params["to_object_type"],
        "associationTypes": labels,
        "count": len(labels),
    }


@tool(
    "get_association_type_reference",
    "Reference table of common association type IDs between HubSpot objects",
    object_schema(PAIR_SCHEMA),
    operation="getAssociationTypeReference",
)
async def get_association_type_reference(params):
    from_type = params.get("from_object_type")
    to_type = params.get("to_object_type")

    if from_type and to_type:
        types = association_types_between(from_type, to_type)
        if not types:
            return {
                "message": f"No association types found between {from_type} and {to_type}",
                "associationTypes": {},
            }
        return {"fromObjectType": from_type, "toObjectType": to_type, "associationTypes": types}

    table = {
        source: {target: dict(types) for target, types in targets.items()}
        for source, targets in ASSOCIATION_TYPES.items()
    }
    if from_type:
        table = {normalize_object_type(from_type): table.get(normalize_object_type(from_type), {})}
    if to_type:
        target = normalize_object_type(to_type)
        table = {
            source: {target: targets[target]}
            for source, targets in table.items()
            if target in targets
        }
    return {"associationTypes": table}


bcp = BCP(
    domain=DOMAIN,
    description="HubSpot association management tools",
    tools=(
        create_association,
        create_default_association,
        delete_association,
        list_associations,
        batch_create_associations,
        batch_create_default_associations,
        batch_delete_associations,
        batch_read_associations,
        delete_association_labels,
        get_association_types,
        get_association_type_reference,
    ),
)
