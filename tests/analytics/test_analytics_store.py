import json
from datetime import datetime, timedelta, timezone

import pytest

from hubspot_mcp.analytics.database import AnalyticsDatabase, utc_timestamp
from hubspot_mcp.analytics.service import AnalyticsService, get_analytics_service


@pytest.fixture
def db(tmp_path):
    return AnalyticsDatabase(str(tmp_path / "nested" / "analytics.db"))


@pytest.fixture
def analytics(db):
    return AnalyticsService(db)


def test_initialize_is_idempotent(db):
    db.initialize()
    db.initialized = False
    db.initialize()

    tables = {row["name"] for row in db.query("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert {"users", "tool_calls", "errors", "sessions"} <= tables


def test_tool_usage_groups_by_operation(analytics):
    analytics.log_tool_call("Deals", "create", True, 200, tool_name="create_deal")
    analytics.log_tool_call("Deals", "create", False, 100, tool_name="create_deal")
    analytics.log_tool_call("Notes", "list", True, 50)

    usage = analytics.get_tool_usage(7)

    assert usage[0] == {
        "domain": "Deals",
        "operation": "create",
        "count": 2,
        "avgResponseTime": 150,
        "errors": 1,
    }
    assert usage[1]["domain"] == "Notes"


def test_old_calls_fall_outside_the_window(analytics, db):
    analytics.log_tool_call("Deals", "get", True, 10)
    old = utc_timestamp(datetime.now(timezone.utc) - timedelta(days=10))
    db.run(
        "INSERT INTO tool_calls (timestamp, domain, operation, success, response_time) "
        "VALUES (?, ?, ?, ?, ?)",
        (old, "Deals", "get", 1, 10),
    )

    assert analytics.get_summary(7)["totalCalls"] == 1
    assert analytics.get_summary(30)["totalCalls"] == 2


def test_summary_of_empty_store(analytics):
    assert analytics.get_summary(7) == {
        "totalCalls": 0,
        "successfulCalls": 0,
        "errorRate": 0,
        "avgResponseTime": 0,
        "domainsUsed": 0,
    }


def test_summary_error_rate(analytics):
    for success in (True, True, True, False):
        analytics.log_tool_call("Contacts", "search", success, 40)
    analytics.log_tool_call("Owners", "list", True, 40)

    summary = analytics.get_summary(7)

    assert summary["totalCalls"] == 5
    assert summary["successfulCalls"] == 4
    assert summary["errorRate"] == 20
    assert summary["domainsUsed"] == 2


def test_error_stats_group_identical_errors(analytics):
    for _ in range(2):
        analytics.log_error("Quotes", "addLineItem", "NOT_FOUND", "Quote not found")
    analytics.log_error("Quotes", "get", "AUTH_ERROR", "Invalid token")

    stats = analytics.get_error_stats(7)

    assert [(s["operation"], s["count"]) for s in stats] == [("addLineItem", 2), ("get", 1)]
    assert stats[0]["errorType"] == "NOT_FOUND"
    assert stats[0]["lastOccurrence"]


def test_daily_stats(analytics):
    analytics.log_tool_call("Deals", "get", True, 30)
    analytics.log_tool_call("Deals", "get", False, 10)

    [today] = analytics.get_daily_stats(7)

    assert today["date"] == datetime.now(timezone.utc).strftime("%Y-%m-%d")
    assert today["calls"] == 2
    assert today["errors"] == 1


def test_sensitive_parameters_are_redacted(analytics, db):
    analytics.log_tool_call(
        "Contacts", "create", True, 10, parameters={"email": "a@b.c", "token": "secret"}
    )

    [row] = db.query("SELECT parameters FROM tool_calls")
    assert json.loads(row["parameters"]) == {"email": "a@b.c", "token": "[REDACTED]"}


def test_logging_never_raises(tmp_path):
    broken = AnalyticsService(AnalyticsDatabase(str(tmp_path)))

    broken.log_tool_call("Deals", "get", True, 10)
    broken.log_error("Deals", "get", "API_ERROR", "boom")


def test_service_disabled_by_setting(monkeypatch):
    monkeypatch.setenv("ANALYTICS_ENABLED", "false")
    assert get_analytics_service() is None

    monkeypatch.setenv("ANALYTICS_ENABLED", "true")
    assert get_analytics_service() is get_analytics_service()
