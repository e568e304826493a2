import pytest

from hubspot_mcp.analytics.auth import DashboardAuth, hash_password, verify_password
from hubspot_mcp.analytics.database import AnalyticsDatabase


@pytest.fixture
def db(tmp_path):
    return AnalyticsDatabase(str(tmp_path / "auth.db"))


def test_password_hash_round_trip():
    encoded = hash_password("hunter22", iterations=1000)

    assert encoded.startswith("pbkdf2_sha256$1000$")
    assert verify_password("hunter22", encoded)
    assert not verify_password("hunter23", encoded)
    assert not verify_password("hunter22", "not-a-hash")


def test_salts_differ():
    assert hash_password("same", iterations=1000) != hash_password("same", iterations=1000)


def test_create_user_then_reset_password(db):
    auth = DashboardAuth(db)

    assert auth.create_user("admin", "first-password") is True
    assert auth.create_user("admin", "second-password") is False

    assert auth.authenticate("admin", "second-password")
    assert not auth.authenticate("admin", "first-password")
    assert not auth.authenticate("nobody", "second-password")


def test_create_user_requires_credentials(db):
    with pytest.raises(ValueError):
        DashboardAuth(db).create_user("admin", "")


def test_sessions_resolve_until_destroyed(db):
    auth = DashboardAuth(db)
    sid = auth.create_session("admin")

    assert auth.session_user(sid) == "admin"
    assert auth.session_user("unknown") is None
    assert auth.session_user(None) is None

    auth.destroy_session(sid)
    assert auth.session_user(sid) is None


def test_expired_sessions_are_purged(db):
    auth = DashboardAuth(db, session_ttl=-5)
    sid = auth.create_session("admin")

    assert auth.session_user(sid) is None
    assert db.query("SELECT * FROM sessions") == []
