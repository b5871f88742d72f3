import json
from datetime import datetime, timedelta, timezone

import pytest

from billing_panel.core.config import Settings
from billing_panel.core.exceptions import AuthenticationError
from billing_panel.core.session import AdminCredential, SessionGate, load_admin_credential


class _MovableNow:
    def __init__(self):
        self.value = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.value


def test_login_and_validate():
    gate = SessionGate(AdminCredential("admin", "pw"))
    session = gate.login("admin", "pw")

    assert gate.validate(session.token) is session
    assert gate.validate("forged") is None
    assert gate.validate(None) is None


def test_wrong_credentials_create_no_session():
    gate = SessionGate(AdminCredential("admin", "pw"))
    with pytest.raises(AuthenticationError):
        gate.login("admin", "wrong")
    with pytest.raises(AuthenticationError):
        gate.login("", "")
    assert gate._sessions == {}


def test_session_expires():
    now = _MovableNow()
    gate = SessionGate(AdminCredential("admin", "pw"), lifetime_seconds=60, now=now)
    session = gate.login("admin", "pw")

    now.value += timedelta(seconds=59)
    assert gate.validate(session.token) is not None

    now.value += timedelta(seconds=1)
    assert gate.validate(session.token) is None


def test_logout_invalidates_token():
    gate = SessionGate(AdminCredential("admin", "pw"))
    session = gate.login("admin", "pw")

    assert gate.logout(session.token) is True
    assert gate.validate(session.token) is None
    assert gate.logout(session.token) is False


def test_credential_from_config_file(tmp_path):
    (tmp_path / "config.json").write_text(
        json.dumps({"admin": {"username": "owner", "password": "hunter2"}})
    )
    settings = Settings(data_dir=str(tmp_path), admin_username=None, admin_password=None)

    assert load_admin_credential(settings) == AdminCredential("owner", "hunter2")


def test_env_credential_overrides_config_file(tmp_path):
    (tmp_path / "config.json").write_text(
        json.dumps({"admin": {"username": "owner", "password": "hunter2"}})
    )
    settings = Settings(data_dir=str(tmp_path), admin_username="boss", admin_password="x")

    assert load_admin_credential(settings) == AdminCredential("boss", "x")


def test_default_credential_when_unconfigured(tmp_path):
    (tmp_path / "config.json").write_text("{not json")
    settings = Settings(data_dir=str(tmp_path), admin_username=None, admin_password=None)

    assert load_admin_credential(settings) == AdminCredential("admin", "admin")
