import logging

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

DOMAIN = "Quotes"

logger = logging.getLogger("hubspot-quotes")

QUOTE_STATUSES = ["DRAFT", "APPROVAL_NOT_NEEDED", "PENDING_APPROVAL", "APPROVED", "REJECTED"]

QUOTE_FIELDS = {
    "title": "hs_title",
    "expiration_date": "hs_expiration_date",
    "status": "hs_status",
    "currency": "hs_currency",
    "language": "hs_language",
    "sender_company_name": "hs_sender_company_name",
    "sender_email": "hs_sender_email",
}

FIELD_SCHEMAS = {
    "title": {"type": "string", "description": "Quote title"},
    "expiration_date": {
        "type": "string",
        "description": "Expiration date (ISO 8601, YYYY-MM-DD)",
    },
    "status": {"type": "string", "enum": QUOTE_STATUSES, "description": "Quote status"},
    "currency": {"type": "string", "description": "Currency code, e.g. USD"},
    "language": {"type": "string", "description": "Quote language, defaults to en"},
    "sender_company_name": {"type": "string", "description": "Sender company name"},
    "sender_email": {"type": "string", "description": "Sender email address"},
    "properties": PROPERTIES_SCHEMA,
}

LINE_ITEM_FIELDS = {
    "name": "name",
    "quantity": "quantity",
    "price": "price",
    "product_id": "hs_product_id",
    "discount": "discount",
    "discount_percentage": "hs_discount_percentage",
    "term_in_months": "hs_term_in_months",
    "recurring_billing_period": "hs_recurring_billing_period",
    "description": "description",
}

LINE_ITEM_SCHEMAS = {
    "name": {"type": "string", "description": "Line item name"},
    "quantity": {"type": "number", "description": "Quantity, defaults to 1"},
    "price": {"type": "number", "description": "Unit price, defaults to 0"},
    "product_id": {"type": "string", "description": "Product the line item is based on"},
    "discount": {"type": "number", "description": "Discount amount"},
    "discount_percentage": {"type": "number", "description": "Discount percentage"},
    "term_in_months": {"type": "integer", "description": "Term in months"},
    "recurring_billing_period": {
        "type": "string",
        "description": "Recurring billing period, e.g. P12M",
    },
    "description": {"type": "string", "description": "Line item description"},
}

LINE_ITEM_PROPERTIES = [
    "name",
    "quantity",
    "price",
    "amount",
    "discount",
    "description",
    "hs_product_id",
]


class LineItemsService(CrmObjectService):
    object_type = "line_items"
    default_properties = LINE_ITEM_PROPERTIES

    async def batch_read(self, ids):
        return await self.hubspot.post(
            f"{self.base_path}/batch/read",
            {
                "inputs": [{"id": item_id} for item_id in ids],
                "properties": LINE_ITEM_PROPERTIES,
                "propertiesWithHistory": [],
            },
        )


class QuotesService(CrmObjectService):
    object_type = "quotes"
    default_properties = ["hs_title", "hs_status", "hs_expiration_date", "hs_currency"]

    def __init__(self, hubspot):
        super().__init__(hubspot)
        self.line_items = LineItemsService(hubspot)

    async def search_by_title(self, title: str, limit: int = 10):
        return await self.search([single_filter("hs_title", "CONTAINS_TOKEN", title)], limit)

    async def search_by_status(self, status: str, limit: int = 10):
        return await self.search([single_filter("hs_status", "EQ", status)], limit)

    async def add_line_item(self, quote_id: str, properties):
        """Create a line item and attach it to the quote; the item is archived if attaching fails"""
        self.hubspot.validate_required(properties, ["name"])
        properties.setdefault("quantity", "1")
        properties.setdefault("price", "0")

        line_item = await self.line_items.create(properties)
        try:
            result = await self.hubspot.post(
                "/crm/v4/associations/quotes/line_items/batch/associate/default",
                {"inputs": [{"from": {"id": quote_id}, "to": {"id": line_item["id"]}}]},
            )
            if result.get("numErrors"):
                errors = result.get("errors") or [{}]
                raise BcpError(
                    f"Association API returned errors: {errors[0].get('message', errors)}",
                    ErrorCode.API_ERROR,
                    500,
                )
        except Exception:
            try:
                await self.line_items.archive(line_item["id"])
            except Exception as cleanup_error:
                logger.warning(
                    f"Failed to clean up line item {line_item['id']}: {cleanup_error}"
                )
            raise
        return line_item

    async def list_line_items(self, quote_id: str):
        quote = await self.get(quote_id, associations=["line_items"])
        associations = quote.get("associations") or {}
        linked = associations.get("line_items") or associations.get("line items") or {}
        ids = [item.get("id") for item in linked.get("results", [])]
        if not ids:
            return []
        return results_of(await self.line_items.batch_read(ids))

    async def remove_line_item(self, quote_id: str, line_item_id: str):
        current = await self.list_line_items(quote_id)
        if not any(item.get("id") == line_item_id for item in current):
            raise BcpError(
                f"Line item {line_item_id} is not associated with quote {quote_id}",
                ErrorCode.NOT_FOUND,
                404,
            )
        await self.hubspot.post(
            "/crm/v4/associations/quotes/line_items/batch/archive",
            {"inputs": [{"from": {"id": quote_id}, "to": [{"id": line_item_id}]}]},
        )
        await self.line_items.archive(line_item_id)


def _summary(quote):
    properties = quote.get("properties", {})
    return {
        "id": quote.get("id"),
        "title": properties.get("hs_title"),
        "status": properties.get("hs_status"),
        "expirationDate": properties.get("hs_expiration_date"),
        "currency": properties.get("hs_currency"),
        "createdAt": quote.get("createdAt"),
        "updatedAt": quote.get("updatedAt"),
    }


@tool(
    "create_quote",
    "Create a new quote in HubSpot",
    object_schema(FIELD_SCHEMAS, required=["title"]),
    operation="create",
)
async def create_quote(params):
    properties = prepare_properties(params, QUOTE_FIELDS, convert_to_str=True)
    properties.setdefault("hs_language", "en")
    async with create_service(QuotesService) as service:
        quote = await service.create(properties)
    return {"message": "Quote created successfully", "quote": _summary(quote)}


@tool(
    "get_quote",
    "Get a quote by ID from HubSpot",
    object_schema({"quote_id": ID_SCHEMA}, required=["quote_id"]),
    operation="get",
)
async def get_quote(params):
    async with create_service(QuotesService) as service:
        quote = await service.get(params["quote_id"])
    return {"quote": format_record(quote)}


@tool(
    "update_quote",
    "Update an existing quote's properties",
    object_schema({"quote_id": ID_SCHEMA, **FIELD_SCHEMAS}, required=["quote_id"]),
    operation="update",
)
async def update_quote(params):
    properties = prepare_properties(params, QUOTE_FIELDS, convert_to_str=True)
    if not properties:
        raise BcpError(
            "No properties provided to update", ErrorCode.VALIDATION_ERROR, 400
        )
    async with create_service(QuotesService) as service:
        quote = await service.update(params["quote_id"], properties)
    return {"message": "Quote updated successfully", "quote": _summary(quote)}


@tool(
    "delete_quote",
    "Archive a quote in HubSpot",
    object_schema({"quote_id": ID_SCHEMA}, required=["quote_id"]),
    operation="delete",
)
async def delete_quote(params):
    async with create_service(QuotesService) as service:
        await service.archive(params["quote_id"])
    return {"message": "Quote deleted successfully", "id": params["quote_id"]}


@tool(
    "search_quotes",
    "Search quotes by title or by status",
    object_schema(
        {
            "search_type": {
                "type": "string",
                "enum": ["title", "status"],
                "description": "Type of search to perform",
            },
            "search_term": {"type": "string", "description": "Title text or status value"},
            "limit": LIMIT_SCHEMA,
        },
        required=["search_type", "search_term"],
    ),
    operation="search",
)
async def search_quotes(params):
    limit = params.get("limit", 10)
    async with create_service(QuotesService) as service:
        if params["search_type"] == "status":
            response = await service.search_by_status(params["search_term"], limit)
        else:
            response = await service.search_by_title(params["search_term"], limit)

    quotes = [_summary(quote) for quote in results_of(response)]
    return {"message": f"Found {len(quotes)} quotes", "quotes": quotes, "count": len(quotes)}


@tool(
    "recent_quotes",
    "Get recently created or updated quotes",
    object_schema({"limit": LIMIT_SCHEMA}),
    operation="recent",
)
async def recent_quotes(params):
    async with create_service(QuotesService) as service:
        response = await service.list_page(limit=params.get("limit", 10))

    quotes = [_summary(quote) for quote in results_of(response)]
    return {
        "message": f"Retrieved {len(quotes)} recent quotes",
        "quotes": quotes,
        "count": len(quotes),
    }


@tool(
    "add_quote_line_item",
    "Create a line item and add it to a quote",
    object_schema({"quote_id": ID_SCHEMA, **LINE_ITEM_SCHEMAS}, required=["quote_id", "name"]),
    operation="addLineItem",
)
async def add_quote_line_item(params):
    properties = prepare_properties(params, LINE_ITEM_FIELDS, convert_to_str=True)
    async with create_service(QuotesService) as service:
        line_item = await service.add_line_item(params["quote_id"], properties)
    return {
        "message": "Line item added to quote successfully",
        "quoteId": params["quote_id"],
        "lineItem": format_record(line_item),
    }


@tool(
    "list_quote_line_items",
    "List the line items of a quote",
    object_schema({"quote_id": ID_SCHEMA}, required=["quote_id"]),
    operation="listLineItems",
)
async def list_quote_line_items(params):
    async with create_service(QuotesService) as service:
        items = await service.list_line_items(params["quote_id"])
    return {
        "quoteId": params["quote_id"],
        "lineItems": [format_record(item) for item in items],
        "count": len(items),
    }


@tool(
    "update_quote_line_item",
    "Update a line item on a quote",
    object_schema(
        {"line_item_id": ID_SCHEMA, **LINE_ITEM_SCHEMAS}, required=["line_item_id"]
    ),
    operation="updateLineItem",
)
async def update_quote_line_item(params):
    properties = prepare_properties(params, LINE_ITEM_FIELDS, convert_to_str=True)
    if not properties:
        raise BcpError(
            "No properties provided to update", ErrorCode.VALIDATION_ERROR, 400
        )
    async with create_service(QuotesService) as service:
        line_item = await service.line_items.update(params["line_item_id"], properties)
    return {"message": "Line item updated successfully", "lineItem": format_record(line_item)}


@tool(
    "remove_quote_line_item",
    "Remove a line item from a quote and delete it",
    object_schema(
        {"quote_id": ID_SCHEMA, "line_item_id": ID_SCHEMA},
        required=["quote_id", "line_item_id"],
    ),
    operation="removeLineItem",
)
async def remove_quote_line_item(params):
    async with create_service(QuotesService) as service:
        await service.remove_line_item(params["quote_id"], params["line_item_id"])
    return {
        "message": "Line item removed from quote successfully",
        "quoteId": params["quote_id"],
        "lineItemId": params["line_item_id"],
    }


bcp = BCP(
    domain=DOMAIN,
    description="HubSpot quote and quote line item tools",
    tools=(
        create_quote,
        get_quote,
        update_quote,
        delete_quote,
        search_quotes,
        recent_quotes,
        add_quote_line_item,
        list_quote_line_items,
        update_quote_line_item,
        remove_quote_line_item,
    ),
)
