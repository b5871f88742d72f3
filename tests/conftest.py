import os
import tempfile
from datetime import date

# Entorno de pruebas ANTES de importar la aplicación (Settings se cachea)
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="billing_panel_test_"))
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("ADMIN_USERNAME", None)
os.environ.pop("ADMIN_PASSWORD", None)
os.environ.pop("RESEND_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from billing_panel import models  # noqa: F401
from billing_panel.api.dependencies import get_broker, get_external_notifier
from billing_panel.core.clock import FixedClock, get_clock
from billing_panel.core.events import NotificationBroker
from billing_panel.core.session import AdminCredential, SessionGate, get_session_gate
from billing_panel.db.engine import get_sync_session
from billing_panel.main import app
from billing_panel.services.client_service import ClientService
from billing_panel.services.notification_service import NotificationService
from billing_panel.services.sweep_service import SweepService
from billing_panel.utils.alerter import DeliveryResult
from billing_panel.core.constants import DeliveryChannel


class RecordingNotifier:
    """Stand-in for ExternalNotifier that records deliveries."""

    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent = []

    def deliver(self, subject, message):
        self.sent.append((subject, message))
        return DeliveryResult(
            ok=self.ok,
            channel=DeliveryChannel.SMS_LOG,
            detail="queued" if self.ok else "gateway down",
        )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def clock():
    return FixedClock(date(2024, 1, 1))


@pytest.fixture
def broker():
    return NotificationBroker()


@pytest.fixture
def make_notifier():
    return RecordingNotifier


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def notification_service(session, broker, notifier):
    return NotificationService(session, broker, notifier=notifier)


@pytest.fixture
def client_service(session, clock, notification_service):
    return ClientService(session, clock, notification_service)


@pytest.fixture
def sweep_service(session, clock, notification_service):
    return SweepService(session, clock, notification_service)


@pytest.fixture
def gate():
    return SessionGate(AdminCredential(username="admin", password="s3cret"))


@pytest.fixture
def api(engine, clock, broker, notifier, gate):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_sync_session] = override_session
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_broker] = lambda: broker
    app.dependency_overrides[get_external_notifier] = lambda: notifier
    app.dependency_overrides[get_session_gate] = lambda: gate

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def logged_in(api):
    response = api.post("/login", json={"username": "admin", "password": "s3cret"})
    assert response.status_code == 200
    return api
