"""
Pieces shared by the CRM object BCPs (contacts, companies, deals, ...).
"""

from typing import Any, Dict, Iterable, List, Optional

from hubspot_mcp.core.service import DomainService

LIMIT_SCHEMA = {
    "type": "integer",
    "description": "Maximum number of results to return",
    "minimum": 1,
    "maximum": 100,
    "default": 10,
}

ID_SCHEMA = {"type": "string", "description": "HubSpot record ID"}

PROPERTIES_SCHEMA = {
    "type": "object",
    "description": "Additional HubSpot properties to set (key-value pairs)",
}

PROPERTY_NAMES_SCHEMA = {
    "type": "array",
    "items": {"type": "string"},
    "description": "Specific properties to return (optional)",
}


def format_record(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": record.get("id"),
        "properties": record.get("properties", {}),
        "createdAt": record.get("createdAt"),
        "updatedAt": record.get("updatedAt"),
    }


def results_of(response: Any) -> List[Dict[str, Any]]:
    if isinstance(response, dict):
        return response.get("results", []) or []
    return []


def paging_after(response: Any) -> Optional[str]:
    if isinstance(response, dict):
        return response.get("paging", {}).get("next", {}).get("after")
    return None


class CrmObjectService(DomainService):
    """Generic CRUD and search over one /crm/v3/objects/{type} collection"""

    object_type = ""
    default_properties: List[str] = []

    @property
    def base_path(self) -> str:
        return f"/crm/v3/objects/{self.object_type}"

    def _property_param(self, properties: Optional[Iterable[str]]) -> Optional[str]:
        names = list(properties or self.default_properties)
        return ",".join(names) if names else None

    async def create(self, properties: Dict[str, Any], associations=None) -> Dict[str, Any]:
        body = {"properties": properties}
        if associations:
            body["associations"] = associations
        return await self.hubspot.post(self.base_path, body)

    async def get(self, object_id: str, properties=None, associations=None) -> Dict[str, Any]:
        params = {"properties": self._property_param(properties)}
        if associations:
            params["associations"] = ",".join(associations)
        return await self.hubspot.get(f"{self.base_path}/{object_id}", params=params)

    async def update(self, object_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        return await self.hubspot.patch(
            f"{self.base_path}/{object_id}", {"properties": properties}
        )

    async def archive(self, object_id: str):
        await self.hubspot.delete(f"{self.base_path}/{object_id}")

    async def search(
        self,
        filter_groups: List[Dict[str, Any]],
        limit: int = 10,
        properties=None,
        sorts=None,
        after: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {
            "filterGroups": filter_groups,
            "sorts": sorts or [],
            "limit": limit,
            "properties": list(properties or self.default_properties),
        }
        if after:
            body["after"] = after
        return await self.hubspot.post(f"{self.base_path}/search", body)

    async def list_page(self, limit: int = 10, after: Optional[str] = None, properties=None):
        return await self.hubspot.get(
            self.base_path,
            params={
                "limit": limit,
                "after": after,
                "properties": self._property_param(properties),
                "archived": "false",
            },
        )

    async def batch_create(self, inputs: List[Dict[str, Any]]) -> Dict[str, Any]:
        return await self.hubspot.post(f"{self.base_path}/batch/create", {"inputs": inputs})

    async def batch_update(self, inputs: List[Dict[str, Any]]) -> Dict[str, Any]:
        return await self.hubspot.post(f"{self.base_path}/batch/update", {"inputs": inputs})


def single_filter(property_name: str, operator: str, value: Any) -> Dict[str, Any]:
    return {"filters": [{"propertyName": property_name, "operator": operator, "value": value}]}
