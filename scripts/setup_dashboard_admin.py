#!/usr/bin/env python3
"""
Create or update a dashboard login in the analytics database.

    python scripts/setup_dashboard_admin.py --username admin
"""
import argparse
import getpass
import logging
import sys

from hubspot_mcp.analytics.auth import DashboardAuth
from hubspot_mcp.analytics.database import AnalyticsDatabase
from hubspot_mcp.config import configure_logging, get_settings

logger = logging.getLogger("hubspot-dashboard-admin")

MIN_PASSWORD_LENGTH = 8


def main():
    parser = argparse.ArgumentParser(description="Create or update a dashboard user")
    parser.add_argument("--username", default="admin", help="Dashboard username")
    parser.add_argument(
        "--password", help="Password (prompted for when omitted)"
    )
    parser.add_argument("--db", help="Analytics database path (default: ANALYTICS_DB_PATH)")
    args = parser.parse_args()

    configure_logging()

    password = args.password or getpass.getpass(f"Password for {args.username}: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        logger.error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return 1

    db = AnalyticsDatabase(args.db or get_settings()["analytics_db_path"])
    created = DashboardAuth(db).create_user(args.username, password)
    action = "Created" if created else "Updated"
    logger.info(f"{action} dashboard user '{args.username}' in {db.db_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
