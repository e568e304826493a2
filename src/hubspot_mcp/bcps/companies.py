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

DOMAIN = "Companies"

# Values accepted by HubSpot's default "industry" property
VALID_INDUSTRIES = [
    "ACCOUNTING",
    "ADVERTISING",
    "AEROSPACE",
    "AGRICULTURE",
    "APPAREL",
    "BANKING",
    "BIOTECHNOLOGY",
    "CHEMICALS",
    "COMMUNICATIONS",
    "COMPUTER_HARDWARE",
    "COMPUTER_SOFTWARE",
    "CONSTRUCTION",
    "CONSULTING",
    "CONSUMER_GOODS",
    "CONSUMER_SERVICES",
    "EDUCATION",
    "ELECTRONICS",
    "ENERGY",
    "ENGINEERING",
    "ENTERTAINMENT",
    "ENVIRONMENTAL",
    "FINANCE",
    "FOOD_BEVERAGE",
    "GOVERNMENT",
    "HEALTHCARE",
    "HOSPITALITY",
    "INSURANCE",
    "IT_SERVICES",
    "LEGAL",
    "MANUFACTURING",
    "MEDIA",
    "MILITARY",
    "MINING",
    "NON_PROFIT",
    "PHARMACEUTICALS",
    "REAL_ESTATE",
    "RECREATION",
    "RELIGIOUS",
    "RESEARCH",
    "RETAIL",
    "SHIPPING",
    "SPORTS",
    "TECHNOLOGY",
    "TELECOMMUNICATIONS",
    "TRANSPORTATION",
    "UTILITIES",
    "OTHER",
]

COMPANY_FIELDS = {
    "name": "name",
    "domain": "domain",
    "industry": "industry",
    "description": "description",
    "phone": "phone",
    "city": "city",
    "country": "country",
}

FIELD_SCHEMAS = {
    "name": {"type": "string", "description": "Company name"},
    "domain": {"type": "string", "description": "Company website domain"},
    "industry": {
        "type": "string",
        "enum": VALID_INDUSTRIES,
        "description": "Company industry (a HubSpot industry value)",
    },
    "description": {"type": "string", "description": "Company description"},
    "phone": {"type": "string", "description": "Company phone number"},
    "city": {"type": "string", "description": "City"},
    "country": {"type": "string", "description": "Country"},
    "properties": PROPERTIES_SCHEMA,
}


class CompaniesService(CrmObjectService):
    object_type = "companies"
    default_properties = ["name", "domain", "website", "industry", "description"]

    async def search_by_domain(self, domain: str, limit: int = 10):
        return await self.search([single_filter("domain", "EQ", domain)], limit)

    async def search_by_name(self, name: str, limit: int = 10):
        return await self.search([single_filter("name", "CONTAINS_TOKEN", name)], limit)


def _summary(company):
    properties = company.get("properties", {})
    return {
        "id": company.get("id"),
        "name": properties.get("name"),
        "domain": properties.get("domain"),
        "industry": properties.get("industry"),
        "createdAt": company.get("createdAt"),
    }


@tool(
    "create_company",
    "Create a new company in HubSpot",
    object_schema(FIELD_SCHEMAS, required=["name"]),
    operation="create",
)
async def create_company(params):
    async with create_service(CompaniesService) as service:
        company = await service.create(prepare_properties(params, COMPANY_FIELDS))
    return {"message": "Company created successfully", "company": _summary(company)}


@tool(
    "get_company",
    "Get a company by ID from HubSpot",
    object_schema({"company_id": ID_SCHEMA}, required=["company_id"]),
    operation="get",
)
async def get_company(params):
    async with create_service(CompaniesService) as service:
        company = await service.get(params["company_id"])
    return {"company": format_record(company)}


@tool(
    "update_company",
    "Update an existing company's properties",
    object_schema({"company_id": ID_SCHEMA, **FIELD_SCHEMAS}, required=["company_id"]),
    operation="update",
)
async def update_company(params):
    properties = prepare_properties(params, COMPANY_FIELDS)
    if not properties:
        raise BcpError(
            "No properties provided to update", ErrorCode.VALIDATION_ERROR, 400
        )
    async with create_service(CompaniesService) as service:
        company = await service.update(params["company_id"], properties)
    return {"message": "Company updated successfully", "company": format_record(company)}


@tool(
    "delete_company",
    "Archive a company in HubSpot",
    object_schema({"company_id": ID_SCHEMA}, required=["company_id"]),
    operation="delete",
)
async def delete_company(params):
    async with create_service(CompaniesService) as service:
        await service.archive(params["company_id"])
    return {"message": "Company deleted successfully", "id": params["company_id"]}


@tool(
    "search_companies",
    "Search companies by name or by website domain",
    object_schema(
        {
            "search_type": {
                "type": "string",
                "enum": ["name", "domain"],
                "description": "Type of search to perform",
            },
            "search_term": {
                "type": "string",
                "description": "Company name or domain to search for",
            },
            "limit": LIMIT_SCHEMA,
        },
        required=["search_type", "search_term"],
    ),
    operation="search",
)
async def search_companies(params):
    limit = params.get("limit", 10)
    async with create_service(CompaniesService) as service:
        if params["search_type"] == "domain":
            response = await service.search_by_domain(params["search_term"], limit)
        else:
            response = await service.search_by_name(params["search_term"], limit)

    companies = [_summary(company) for company in results_of(response)]
    return {
        "message": f"Found {len(companies)} companies",
        "companies": companies,
        "count": len(companies),
    }


@tool(
    "recent_companies",
    "Get recently created or updated companies",
    object_schema({"limit": LIMIT_SCHEMA}),
    operation="recent",
)
async def recent_companies(params):
    async with create_service(CompaniesService) as service:
        response = await service.list_page(limit=params.get("limit", 10))

    companies = [_summary(company) for company in results_of(response)]
    return {
        "message": f"Retrieved {len(companies)} recent companies",
        "companies": companies,
        "count": len(companies),
    }


bcp = BCP(
    domain=DOMAIN,
    description="HubSpot company management tools",
    tools=(
        create_company,
        get_company,
        update_company,
        delete_company,
        search_companies,
        recent_companies,
    ),
)
