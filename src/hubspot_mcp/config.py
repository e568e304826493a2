import os
import logging
from typing import Any, Dict

from dotenv import load_dotenv

load_dotenv()

DEFAULT_HUBSPOT_API_BASE_URL = "https://api.hubapi.com"
DEFAULT_BACKEND_URL = "http://localhost:3002"
DEFAULT_ANALYTICS_DB_PATH = "./analytics.db"
PLACEHOLDER_TOKEN = "placeholder"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _get_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger("hubspot-mcp-config").warning(
            f"Ignoring non-integer value for {name}: {value!r}"
        )
        return default


def get_settings() -> Dict[str, Any]:
    """Read the runtime configuration from the environment"""
    return {
        "hubspot_access_token": os.environ.get("HUBSPOT_ACCESS_TOKEN", ""),
        "hubspot_api_base_url": os.environ.get(
            "HUBSPOT_API_BASE_URL", DEFAULT_HUBSPOT_API_BASE_URL
        ).rstrip("/"),
        "hubspot_timeout": float(_get_int("HUBSPOT_TIMEOUT", 30)),
        "backend_url": os.environ.get("BACKEND_URL", DEFAULT_BACKEND_URL).rstrip("/"),
        "analytics_db_path": os.environ.get(
            "ANALYTICS_DB_PATH", DEFAULT_ANALYTICS_DB_PATH
        ),
        "analytics_enabled": _get_bool("ANALYTICS_ENABLED", True),
        "max_sessions": _get_int("MCP_MAX_SESSIONS", 100),
        "session_idle_timeout": _get_int("MCP_SESSION_IDLE_TIMEOUT", 30 * 60),
        "dashboard_session_ttl": _get_int("DASHBOARD_SESSION_TTL", 24 * 60 * 60),
        "log_level": os.environ.get("LOG_LEVEL", "INFO").upper(),
    }


def configure_logging(level: str = None):
    """Configure root logging for an entry point"""
    logging.basicConfig(
        level=getattr(logging, level or get_settings()["log_level"], logging.INFO),
        format=LOG_FORMAT,
    )
