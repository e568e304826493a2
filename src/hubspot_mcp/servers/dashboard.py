"""
Analytics dashboard: a backend serving login and aggregated tool-call stats,
and a thin proxy that forwards the dashboard's API calls to that backend.
"""

import argparse
import logging
from typing import Optional

import httpx
import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from hubspot_mcp.analytics.auth import DashboardAuth
from hubspot_mcp.analytics.database import AnalyticsDatabase
from hubspot_mcp.analytics.service import AnalyticsService
from hubspot_mcp.config import configure_logging, get_settings

logger = logging.getLogger("hubspot-dashboard")

SESSION_COOKIE = "dashboard_session"
DEFAULT_DAYS = 7
MAX_DAYS = 90
PROXY_TIMEOUT = 10.0

ANALYTICS_FALLBACK = {
    "toolUsage": [],
    "errors": [],
    "summary": {"totalCalls": 0, "errorRate": 0, "avgResponseTime": 0},
    "error": "Analytics service unavailable",
}


def _parse_days(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return DEFAULT_DAYS
    try:
        days = int(value)
    except ValueError:
        return None
    return days if 1 <= days <= MAX_DAYS else None


def create_dashboard_app(db_path: Optional[str] = None, session_ttl: Optional[int] = None):
    """Backend app: cookie-session login plus the analytics query endpoint"""
    settings = get_settings()
    db = AnalyticsDatabase(db_path or settings["analytics_db_path"])
    analytics = AnalyticsService(db)
    auth = DashboardAuth(db, session_ttl or settings["dashboard_session_ttl"])

    async def login(request: Request):
        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict) or not body.get("username") or not body.get("password"):
            return JSONResponse(
                {"success": False, "message": "Username and password are required"},
                status_code=400,
            )

        if not auth.authenticate(body["username"], body["password"]):
            logger.info(f"Failed dashboard login for {body['username']}")
            return JSONResponse(
                {"success": False, "message": "Invalid credentials"}, status_code=401
            )

        sid = auth.create_session(body["username"])
        response = JSONResponse({"success": True, "message": "Login successful"})
        response.set_cookie(
            SESSION_COOKIE,
            sid,
            max_age=auth.session_ttl,
            httponly=True,
            samesite="lax",
        )
        logger.info(f"Dashboard login for {body['username']}")
        return response

    async def check(request: Request):
        username = auth.session_user(request.cookies.get(SESSION_COOKIE))
        if username is None:
            return JSONResponse({"authenticated": False}, status_code=401)
        return JSONResponse({"authenticated": True, "username": username})

    async def logout(request: Request):
        auth.destroy_session(request.cookies.get(SESSION_COOKIE))
        response = JSONResponse({"success": True, "message": "Logged out"})
        response.delete_cookie(SESSION_COOKIE)
        return response

    async def analytics_endpoint(request: Request):
        if auth.session_user(request.cookies.get(SESSION_COOKIE)) is None:
            return JSONResponse({"error": "Authentication required"}, status_code=401)

        days = _parse_days(request.query_params.get("days"))
        if days is None:
            return JSONResponse(
                {"error": f"days must be an integer between 1 and {MAX_DAYS}"},
                status_code=400,
            )
        try:
            return JSONResponse(analytics.dashboard_data(days))
        except Exception as e:
            logger.error(f"Failed to load analytics: {e}")
            return JSONResponse({"error": "Failed to load analytics"}, status_code=500)

    app = Starlette(
        routes=[
            Route("/api/auth", endpoint=login, methods=["POST"]),
            Route("/api/auth/check", endpoint=check, methods=["GET"]),
            Route("/api/auth/logout", endpoint=logout, methods=["POST"]),
            Route("/api/analytics", endpoint=analytics_endpoint, methods=["GET"]),
        ]
    )
    app.state.auth = auth
    app.state.analytics = analytics
    return app


def _cookie_headers(request: Request):
    cookie = request.headers.get("cookie")
    return {"cookie": cookie} if cookie else {}


def create_proxy_app(backend_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
    """Frontend-facing proxy that forwards cookies to the dashboard backend"""
    backend_url = (backend_url or get_settings()["backend_url"]).rstrip("/")

    def client():
        return httpx.AsyncClient(
            base_url=backend_url, timeout=PROXY_TIMEOUT, transport=transport
        )

    async def proxy_analytics(request: Request):
        days = request.query_params.get("days") or str(DEFAULT_DAYS)
        try:
            async with client() as http:
                backend = await http.get(
                    "/api/analytics", params={"days": days}, headers=_cookie_headers(request)
                )
            backend.raise_for_status()
            return JSONResponse(backend.json(), status_code=backend.status_code)
        except Exception as e:
            logger.error(f"Analytics proxy error: {e}")
            return JSONResponse(ANALYTICS_FALLBACK, status_code=503)

    async def proxy_auth_check(request: Request):
        try:
            async with client() as http:
                backend = await http.get("/api/auth/check", headers=_cookie_headers(request))
        except Exception as e:
            logger.error(f"Auth check proxy error: {e}")
            return Response(status_code=503)
        return Response(status_code=backend.status_code)

    async def proxy_login(request: Request):
        try:
            body = await request.json()
            async with client() as http:
                backend = await http.post(
                    "/api/auth", json=body, headers=_cookie_headers(request)
                )
            response = JSONResponse(backend.json(), status_code=backend.status_code)
        except Exception as e:
            logger.error(f"Auth proxy error: {e}")
            return JSONResponse(
                {"success": False, "message": "Authentication service unavailable"},
                status_code=503,
            )

        set_cookie = backend.headers.get("set-cookie")
        if set_cookie:
            response.headers["set-cookie"] = set_cookie
        return response

    return Starlette(
        routes=[
            Route("/api/analytics", endpoint=proxy_analytics, methods=["GET"]),
            Route("/api/auth/check", endpoint=proxy_auth_check, methods=["GET"]),
            Route("/api/auth", endpoint=proxy_login, methods=["POST"]),
        ]
    )


def main():
    """Run the dashboard backend or proxy"""
    parser = argparse.ArgumentParser(description="HubSpot MCP analytics dashboard")
    parser.add_argument("--mode", choices=["backend", "proxy"], default="backend")
    parser.add_argument("--host", default="0.0.0.0", help="Host for the dashboard server")
    parser.add_argument("--port", type=int, default=3002, help="Port for the dashboard server")
    args = parser.parse_args()

    configure_logging()
    app = create_dashboard_app() if args.mode == "backend" else create_proxy_app()
    logger.info(f"Starting dashboard {args.mode} on {args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
