from hubspot_mcp.bcps.common import (
    ID_SCHEMA,
    LIMIT_SCHEMA,
    CrmObjectService,
    format_record,
    paging_after,
    results_of,
    single_filter,
)
from hubspot_mcp.core.service import create_service
from hubspot_mcp.core.types import BCP, object_schema, tool

DOMAIN = "Products"


class ProductsService(CrmObjectService):
    object_type = "products"
    default_properties = ["name", "price", "description", "hs_sku"]

    async def search_by_name(self, name: str, limit: int = 10):
        return await self.search([single_filter("name", "CONTAINS_TOKEN", name)], limit)


def _summary(product):
    properties = product.get("properties", {})
    return {
        "id": product.get("id"),
        "name": properties.get("name"),
        "price": properties.get("price"),
        "sku": properties.get("hs_sku"),
        "description": properties.get("description"),
        "updatedAt": product.get("updatedAt"),
    }


@tool(
    "list_products",
    "List products from the HubSpot product library",
    object_schema(
        {
            "limit": LIMIT_SCHEMA,
            "after": {"type": "string", "description": "Pagination cursor"},
        }
    ),
    operation="list",
)
async def list_products(params):
    async with create_service(ProductsService) as service:
        response = await service.list_page(
            limit=params.get("limit", 10), after=params.get("after")
        )

    products = [_summary(product) for product in results_of(response)]
    return {"products": products, "count": len(products), "after": paging_after(response)}


@tool(
    "search_products",
    "Search products by name",
    object_schema(
        {
            "name": {"type": "string", "description": "Product name to search for"},
            "limit": LIMIT_SCHEMA,
        },
        required=["name"],
    ),
    operation="search",
)
async def search_products(params):
    async with create_service(ProductsService) as service:
        response = await service.search_by_name(params["name"], params.get("limit", 10))

    products = [_summary(product) for product in results_of(response)]
    return {
        "message": f"Found {len(products)} products",
        "products": products,
        "count": len(products),
    }


@tool(
    "get_product",
    "Get a product by ID",
    object_schema({"product_id": ID_SCHEMA}, required=["product_id"]),
    operation="get",
)
async def get_product(params):
    async with create_service(ProductsService) as service:
        product = await service.get(params["product_id"])
    return {"product": format_record(product)}


bcp = BCP(
    domain=DOMAIN,
    description="HubSpot product library tools",
    tools=(list_products, search_products, get_product),
)
