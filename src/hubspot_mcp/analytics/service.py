"""
Records tool calls and errors, and answers the dashboard's aggregate queries.

Writes never raise: a broken analytics store must not break a tool call.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from hubspot_mcp.analytics.database import AnalyticsDatabase, days_ago, utc_timestamp
from hubspot_mcp.config import get_settings

logger = logging.getLogger("hubspot-analytics")

# parameter names whose values never reach the database
REDACTED_PARAMS = {"password", "access_token", "token", "api_key", "secret"}


def _serialize_params(parameters: Optional[Dict[str, Any]]) -> Optional[str]:
    if parameters is None:
        return None
    cleaned = {
        key: "[REDACTED]" if key.lower() in REDACTED_PARAMS else value
        for key, value in parameters.items()
    }
    return json.dumps(cleaned, default=str)


def _round(value, digits=2):
    return round(value, digits) if value is not None else 0


class AnalyticsService:
    def __init__(self, db: AnalyticsDatabase):
        self.db = db

    def log_tool_call(
        self,
        domain: str,
        operation: str,
        success: bool,
        response_time: int,
        parameters: Optional[Dict[str, Any]] = None,
        response_size: Optional[int] = None,
        tool_name: Optional[str] = None,
    ):
        try:
            self.db.run(
                """
                INSERT INTO tool_calls
                    (timestamp, domain, operation, tool_name, success, response_time,
                     parameters, response_size)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    utc_timestamp(),
                    domain,
                    operation,
                    tool_name,
                    1 if success else 0,
                    int(response_time),
                    _serialize_params(parameters),
                    response_size,
                ),
            )
        except Exception as e:
            logger.error(f"Failed to log tool call {domain}.{operation}: {e}")

    def log_error(
        self,
        domain: str,
        operation: str,
        error_type: str,
        error_message: str,
        stack_trace: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ):
        try:
            self.db.run(
                """
                INSERT INTO errors
                    (timestamp, domain, operation, error_type, error_message,
                     stack_trace, parameters)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    utc_timestamp(),
                    domain,
                    operation,
                    error_type,
                    error_message,
                    stack_trace,
                    _serialize_params(parameters),
                ),
            )
        except Exception as e:
            logger.error(f"Failed to log error for {domain}.{operation}: {e}")

    def get_tool_usage(self, days: int = 7) -> List[Dict[str, Any]]:
        rows = self.db.query(
            """
            SELECT domain, operation, COUNT(*) AS count,
                   AVG(response_time) AS avg_response_time,
                   SUM(CASE WHEN success = 0 THEN 1 ELSE 0 END) AS errors
            FROM tool_calls
            WHERE timestamp >= ?
            GROUP BY domain, operation
            ORDER BY count DESC
            """,
            (days_ago(days),),
        )
        return [
            {
                "domain": row["domain"],
                "operation": row["operation"],
                "count": row["count"],
                "avgResponseTime": _round(row["avg_response_time"]),
                "errors": row["errors"],
            }
            for row in rows
        ]

    def get_error_stats(self, days: int = 7) -> List[Dict[str, Any]]:
        rows = self.db.query(
            """
            SELECT domain, operation, error_type, error_message, COUNT(*) AS count,
                   MAX(timestamp) AS last_occurrence
            FROM errors
            WHERE timestamp >= ?
            GROUP BY domain, operation, error_type, error_message
            ORDER BY count DESC, last_occurrence DESC
            """,
            (days_ago(days),),
        )
        return [
            {
                "domain": row["domain"],
                "operation": row["operation"],
                "errorType": row["error_type"],
                "errorMessage": row["error_message"],
                "count": row["count"],
                "lastOccurrence": row["last_occurrence"],
            }
            for row in rows
        ]

    def get_summary(self, days: int = 7) -> Dict[str, Any]:
        [row] = self.db.query(
            """
            SELECT COUNT(*) AS total_calls,
                   SUM(CASE WHEN success = 1 THEN 1 ELSE 0 END) AS successful_calls,
                   AVG(response_time) AS avg_response_time,
                   COUNT(DISTINCT domain) AS domains_used
            FROM tool_calls
            WHERE timestamp >= ?
            """,
            (days_ago(days),),
        )
        total = row["total_calls"] or 0
        successful = row["successful_calls"] or 0
        return {
            "totalCalls": total,
            "successfulCalls": successful,
            "errorRate": _round((total - successful) / total * 100) if total else 0,
            "avgResponseTime": _round(row["avg_response_time"]),
            "domainsUsed": row["domains_used"] or 0,
        }

    def get_daily_stats(self, days: int = 7) -> List[Dict[str, Any]]:
        rows = self.db.query(
            """
            SELECT DATE(timestamp) AS date, COUNT(*) AS calls,
                   AVG(response_time) AS avg_response_time,
                   SUM(CASE WHEN success = 0 THEN 1 ELSE 0 END) AS errors
            FROM tool_calls
            WHERE timestamp >= ?
            GROUP BY DATE(timestamp)
            ORDER BY date
            """,
            (days_ago(days),),
        )
        return [
            {
                "date": row["date"],
                "calls": row["calls"],
                "avgResponseTime": _round(row["avg_response_time"]),
                "errors": row["errors"],
            }
            for row in rows
        ]

    def dashboard_data(self, days: int = 7) -> Dict[str, Any]:
        return {
            "toolUsage": self.get_tool_usage(days),
            "errors": self.get_error_stats(days),
            "summary": self.get_summary(days),
            "dailyStats": self.get_daily_stats(days),
        }


_analytics_service = None


def get_analytics_service() -> Optional[AnalyticsService]:
    """Process-wide service, or None when ANALYTICS_ENABLED is false"""
    global _analytics_service
    settings = get_settings()
    if not settings["analytics_enabled"]:
        return None
    if _analytics_service is None or _analytics_service.db.db_path != settings["analytics_db_path"]:
        _analytics_service = AnalyticsService(AnalyticsDatabase(settings["analytics_db_path"]))
    return _analytics_service
