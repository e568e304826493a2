"""
Dashboard users and login sessions, stored beside the analytics tables.

Passwords are hashed with PBKDF2-SHA256 and a per-user salt, stored as
``pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>``.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from hubspot_mcp.analytics.database import AnalyticsDatabase, utc_timestamp

logger = logging.getLogger("hubspot-analytics-auth")

ALGORITHM = "pbkdf2_sha256"
ITERATIONS = 260000


def hash_password(password: str, salt: Optional[str] = None, iterations: int = ITERATIONS) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), bytes.fromhex(salt), iterations)
    return f"{ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, _ = encoded.split("$")
    except ValueError:
        return False
    if algorithm != ALGORITHM:
        return False
    candidate = hash_password(password, salt, int(iterations))
    return hmac.compare_digest(candidate, encoded)


class DashboardAuth:
    def __init__(self, db: AnalyticsDatabase, session_ttl: int = 24 * 60 * 60):
        self.db = db
        self.session_ttl = session_ttl

    def create_user(self, username: str, password: str) -> bool:
        """Create the user or reset its password; True when a new user was created"""
        if not username or not password:
            raise ValueError("Username and password are required")
        password_hash = hash_password(password)
        updated = self.db.run(
            "UPDATE users SET password_hash = ? WHERE username = ?",
            (password_hash, username),
        )
        if updated:
            logger.info(f"Updated password for dashboard user {username}")
            return False
        self.db.run(
            "INSERT INTO users (username, password_hash) VALUES (?, ?)",
            (username, password_hash),
        )
        logger.info(f"Created dashboard user {username}")
        return True

    def authenticate(self, username: str, password: str) -> bool:
        rows = self.db.query(
            "SELECT password_hash FROM users WHERE username = ?", (username,)
        )
        if not rows:
            return False
        return verify_password(password, rows[0]["password_hash"])

    def create_session(self, username: str) -> str:
        sid = secrets.token_urlsafe(32)
        expire = datetime.now(timezone.utc) + timedelta(seconds=self.session_ttl)
        self.db.run(
            "INSERT INTO sessions (sid, username, expire) VALUES (?, ?, ?)",
            (sid, username, utc_timestamp(expire)),
        )
        return sid

    def session_user(self, sid: Optional[str]) -> Optional[str]:
        """Username of a live session, or None"""
        if not sid:
            return None
        self.db.run("DELETE FROM sessions WHERE expire < ?", (utc_timestamp(),))
        rows = self.db.query("SELECT username FROM sessions WHERE sid = ?", (sid,))
        return rows[0]["username"] if rows else None

    def destroy_session(self, sid: Optional[str]):
        if sid:
            self.db.run("DELETE FROM sessions WHERE sid = ?", (sid,))
