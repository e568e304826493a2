from datetime import datetime

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

DOMAIN = "Deals"

DEAL_FIELDS = {
    "deal_name": "dealname",
    "pipeline": "pipeline",
    "deal_stage": "dealstage",
    "amount": "amount",
    "close_date": "closedate",
    "description": "description",
    "owner_id": "hubspot_owner_id",
}

FIELD_SCHEMAS = {
    "deal_name": {"type": "string", "description": "Deal name"},
    "pipeline": {"type": "string", "description": "Pipeline ID the deal belongs to"},
    "deal_stage": {"type": "string", "description": "Deal stage ID within the pipeline"},
    "amount": {"type": "string", "description": "Deal amount"},
    "close_date": {
        "type": "string",
        "description": "Expected close date (ISO 8601, YYYY-MM-DD)",
    },
    "description": {"type": "string", "description": "Deal description"},
    "owner_id": {"type": "string", "description": "HubSpot owner ID for the deal"},
    "properties": PROPERTIES_SCHEMA,
}

# Raw HubSpot deal properties, as used by the batch tools
DEAL_PROPERTY_SCHEMA = {
    "type": "object",
    "properties": {
        "dealname": {"type": "string"},
        "pipeline": {"type": "string"},
        "dealstage": {"type": "string"},
        "amount": {"type": "string"},
        "closedate": {"type": "string"},
        "description": {"type": "string"},
        "hubspot_owner_id": {"type": "string"},
    },
}

# HUBSPOT_DEFINED association type IDs from deals
DEAL_TO_CONTACT = 3
DEAL_TO_COMPANY = 5


class DealsService(CrmObjectService):
    object_type = "deals"
    default_properties = [
        "dealname",
        "amount",
        "closedate",
        "dealstage",
        "pipeline",
        "description",
    ]

    async def search_by_name(self, name: str, limit: int = 10):
        return await self.search([single_filter("dealname", "CONTAINS_TOKEN", name)], limit)

    async def search_by_modified_date(self, since: datetime, limit: int = 100):
        millis = int(since.timestamp() * 1000)
        return await self.search(
            [single_filter("hs_lastmodifieddate", "GTE", str(millis))], limit
        )

    async def list_pipelines(self):
        response = await self.hubspot.get("/crm/v3/pipelines/deals")
        return [
            {
                "id": pipeline.get("id"),
                "label": pipeline.get("label"),
                "stages": [
                    {
                        "id": stage.get("id"),
                        "label": stage.get("label"),
                        "displayOrder": stage.get("displayOrder"),
                        "probability": float(
                            (stage.get("metadata") or {}).get("probability") or 0
                        ),
                        "closed": str(
                            (stage.get("metadata") or {}).get("isClosed", "false")
                        ).lower()
                        == "true",
                    }
                    for stage in pipeline.get("stages", [])
                ],
            }
            for pipeline in results_of(response)
        ]


def _association_inputs(params):
    associations = []
    if params.get("contact_id"):
        associations.append(
            {
                "to": {"id": params["contact_id"]},
                "types": [
                    {
                        "associationCategory": "HUBSPOT_DEFINED",
                        "associationTypeId": DEAL_TO_CONTACT,
                    }
                ],
            }
        )
    if params.get("company_id"):
        associations.append(
            {
                "to": {"id": params["company_id"]},
                "types": [
                    {
                        "associationCategory": "HUBSPOT_DEFINED",
                        "associationTypeId": DEAL_TO_COMPANY,
                    }
                ],
            }
        )
    return associations


def _parse_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise BcpError(
            "Invalid date format. Use ISO 8601.", ErrorCode.VALIDATION_ERROR, 400
        )


def _summary(deal):
    properties = deal.get("properties", {})
    return {
        "id": deal.get("id"),
        "name": properties.get("dealname"),
        "amount": properties.get("amount"),
        "stage": properties.get("dealstage"),
        "pipeline": properties.get("pipeline"),
        "closeDate": properties.get("closedate"),
        "updatedAt": deal.get("updatedAt"),
    }


@tool(
    "create_deal",
    "Create a new deal, optionally associated with a contact and a company",
    object_schema(
        {
            **FIELD_SCHEMAS,
            "contact_id": {"type": "string", "description": "Contact to associate"},
            "company_id": {"type": "string", "description": "Company to associate"},
        },
        required=["deal_name"],
    ),
    operation="create",
)
async def create_deal(params):
    async with create_service(DealsService) as service:
        deal = await service.create(
            prepare_properties(params, DEAL_FIELDS), _association_inputs(params)
        )
    return {"message": "Deal created successfully", "deal": _summary(deal)}


@tool(
    "get_deal",
    "Get a deal by ID from HubSpot",
    object_schema({"deal_id": ID_SCHEMA}, required=["deal_id"]),
    operation="get",
)
async def get_deal(params):
    async with create_service(DealsService) as service:
        deal = await service.get(params["deal_id"])
    return {"deal": format_record(deal)}


@tool(
    "update_deal",
    "Update an existing deal's properties",
    object_schema({"deal_id": ID_SCHEMA, **FIELD_SCHEMAS}, required=["deal_id"]),
    operation="update",
)
async def update_deal(params):
    properties = prepare_properties(params, DEAL_FIELDS)
    if not properties:
        raise BcpError(
            "No properties provided to update", ErrorCode.VALIDATION_ERROR, 400
        )
    async with create_service(DealsService) as service:
        deal = await service.update(params["deal_id"], properties)
    return {"message": "Deal updated successfully", "deal": _summary(deal)}


@tool(
    "delete_deal",
    "Archive a deal in HubSpot",
    object_schema({"deal_id": ID_SCHEMA}, required=["deal_id"]),
    operation="delete",
)
async def delete_deal(params):
    async with create_service(DealsService) as service:
        await service.archive(params["deal_id"])
    return {"message": "Deal deleted successfully", "id": params["deal_id"]}


@tool(
    "search_deals",
    "Search deals by name, by last modified date or with custom filter groups",
    object_schema(
        {
            "search_type": {
                "type": "string",
                "enum": ["name", "modifiedDate", "custom"],
                "description": "Type of search to perform",
            },
            "query": {
                "type": "string",
                "description": "Deal name, or ISO date for a modifiedDate search",
            },
            "filter_groups": {
                "type": "array",
                "items": {"type": "object"},
                "description": "HubSpot filterGroups for a custom search",
            },
            "sorts": {
                "type": "array",
                "items": {"type": "object"},
                "description": "HubSpot sorts for a custom search",
            },
            "limit": LIMIT_SCHEMA,
        },
        required=["search_type"],
    ),
    operation="search",
)
async def search_deals(params):
    search_type = params["search_type"]
    limit = params.get("limit", 10)

    if search_type in ("name", "modifiedDate") and not params.get("query"):
        raise BcpError(
            f"query is required for a {search_type} search",
            ErrorCode.VALIDATION_ERROR,
            400,
        )
    if search_type == "custom" and not params.get("filter_groups"):
        raise BcpError(
            "filter_groups is required for a custom search",
            ErrorCode.VALIDATION_ERROR,
            400,
        )

    async with create_service(DealsService) as service:
        if search_type == "name":
            response = await service.search_by_name(params["query"], limit)
        elif search_type == "modifiedDate":
            response = await service.search_by_modified_date(
                _parse_date(params["query"]), limit
            )
        else:
            response = await service.search(
                params["filter_groups"], limit, sorts=params.get("sorts")
            )

    deals = [_summary(deal) for deal in results_of(response)]
    return {"message": "Deals search completed", "count": len(deals), "deals": deals}


@tool(
    "recent_deals",
    "Get recently created or updated deals",
    object_schema({"limit": LIMIT_SCHEMA}),
    operation="recent",
)
async def recent_deals(params):
    async with create_service(DealsService) as service:
        response = await service.list_page(limit=params.get("limit", 10))

    deals = [_summary(deal) for deal in results_of(response)]
    return {
        "message": f"Retrieved {len(deals)} recent deals",
        "count": len(deals),
        "deals": deals,
    }


@tool(
    "batch_create_deals",
    "Create multiple deals at once",
    object_schema(
        {
            "deals": {
                "type": "array",
                "minItems": 1,
                "maxItems": 100,
                "items": {**DEAL_PROPERTY_SCHEMA, "required": ["dealname"]},
                "description": "Deal properties for each deal to create",
            }
        },
        required=["deals"],
    ),
    operation="batchCreate",
)
async def batch_create_deals(params):
    inputs = [{"properties": deal, "associations": []} for deal in params["deals"]]
    async with create_service(DealsService) as service:
        response = await service.batch_create(inputs)

    deals = [_summary(deal) for deal in results_of(response)]
    return {"message": "Deals created successfully", "count": len(deals), "deals": deals}


@tool(
    "batch_update_deals",
    "Update multiple deals at once",
    object_schema(
        {
            "updates": {
                "type": "array",
                "minItems": 1,
                "maxItems": 100,
                "items": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "string", "description": "Deal ID to update"},
                        "properties": DEAL_PROPERTY_SCHEMA,
                    },
                    "required": ["id", "properties"],
                },
                "description": "Deal updates",
            }
        },
        required=["updates"],
    ),
    operation="batchUpdate",
)
async def batch_update_deals(params):
    inputs = [
        {"id": update["id"], "properties": update["properties"]}
        for update in params["updates"]
    ]
    async with create_service(DealsService) as service:
        response = await service.batch_update(inputs)

    deals = [_summary(deal) for deal in results_of(response)]
    return {"message": "Deals updated successfully", "count": len(deals), "deals": deals}


@tool(
    "list_deal_pipelines",
    "List deal pipelines with their stages",
    object_schema({}),
    operation="listPipelines",
)
async def list_deal_pipelines(params):
    async with create_service(DealsService) as service:
        pipelines = await service.list_pipelines()
    return {"pipelines": pipelines, "count": len(pipelines)}


bcp = BCP(
    domain=DOMAIN,
    description="HubSpot deal management tools",
    tools=(
        create_deal,
        get_deal,
        update_deal,
        delete_deal,
        search_deals,
        recent_deals,
        batch_create_deals,
        batch_update_deals,
        list_deal_pipelines,
    ),
)
