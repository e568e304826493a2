"""
Thin async wrapper around the HubSpot REST API.

One HubspotClient owns one httpx.AsyncClient. Responses with an error status
are turned into BcpError using the status code, never the message text.
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from hubspot_mcp.config import get_settings
from hubspot_mcp.core.errors import BcpError, ErrorCode, code_for_status

logger = logging.getLogger("hubspot-client")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        return response.text or response.reason_phrase

    if isinstance(body, dict):
        return body.get("message") or body.get("error") or json.dumps(body)
    return json.dumps(body)


class HubspotClient:
    """Async HubSpot REST client bound to one access token"""

    def __init__(
        self,
        access_token: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings["hubspot_api_base_url"]).rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            },
            timeout=timeout or settings["hubspot_timeout"],
            transport=transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
    ) -> Any:
        """Perform one API call and return the decoded JSON body"""
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        logger.debug(f"{method} {path} params={params}")
        try:
            response = await self._http.request(
                method, path, params=params or None, json=json_body
            )
        except httpx.RequestError as e:
            raise BcpError(
                f"Network error calling HubSpot {method} {path}: {e}",
                ErrorCode.API_ERROR,
                503,
            ) from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error(
                f"HubSpot API error {response.status_code} on {method} {path}: {message}"
            )
            raise BcpError(
                f"HubSpot API error ({response.status_code}): {message}",
                code_for_status(response.status_code),
                response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return {}

        try:
            return response.json()
        except (json.JSONDecodeError, ValueError):
            return {"result": response.text}

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, body: Any = None, params=None) -> Any:
        return await self.request("POST", path, params=params, json_body=body)

    async def patch(self, path: str, body: Any = None) -> Any:
        return await self.request("PATCH", path, json_body=body)

    async def put(self, path: str, body: Any = None) -> Any:
        return await self.request("PUT", path, json_body=body)

    async def delete(self, path: str, body: Any = None) -> Any:
        return await self.request("DELETE", path, json_body=body)

    async def aclose(self):
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
