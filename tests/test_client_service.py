from datetime import date, timedelta

import pytest

from billing_panel.core.constants import ClientStatus, NotificationKind
from billing_panel.core.exceptions import NotFoundError, PersistenceError, ValidationError
from billing_panel.models import Client


def _new_client(service, **overrides):
    fields = {
        "name": "Juan Dela Cruz",
        "phone": "09171234567",
        "plan": "50 Mbps",
        "location": "Brgy. San Roque",
        "install_date": "2024-01-01",
        "billing_cycle": 30,
    }
    fields.update(overrides)
    return service.create_client(fields)


def test_create_client_derives_first_due_date(client_service):
    client = _new_client(client_service)

    assert client.id
    assert client.due_date == date(2024, 1, 31)
    assert client.status == ClientStatus.ACTIVE.value
    assert client.billing_cycle == 30


def test_create_client_reports_missing_fields(client_service):
    with pytest.raises(ValidationError) as exc:
        client_service.create_client({"name": "  ", "install_date": "2024-01-01"})
    assert "name" in str(exc.value)
    assert "phone" in str(exc.value)


def test_create_client_rejects_bad_date(client_service):
    with pytest.raises(ValidationError):
        _new_client(client_service, install_date="31/01/2024")


def test_create_client_rejects_non_positive_cycle(client_service):
    with pytest.raises(ValidationError):
        _new_client(client_service, billing_cycle="0")
    with pytest.raises(ValidationError):
        _new_client(client_service, billing_cycle=-10)
    assert client_service.list_clients() == []


def test_create_client_defaults_garbage_cycle(client_service):
    client = _new_client(client_service, billing_cycle="monthly")
    assert client.billing_cycle == 30

    client = _new_client(client_service, phone="0918", billing_cycle=None)
    assert client.billing_cycle == 30


def test_payment_advances_exactly_one_cycle(client_service, notification_service, notifier):
    client = _new_client(client_service)

    paid = client_service.record_payment(client.id)

    assert paid.due_date == date(2024, 3, 1)
    assert paid.status == ClientStatus.ACTIVE.value
    assert paid.paid_at is not None

    history = notification_service.list_notifications()
    assert len(history) == 1
    assert history[0].kind == NotificationKind.PAYMENT.value
    assert history[0].client_id == client.id
    assert "2024-03-01" in history[0].message
    assert len(notifier.sent) == 1


def test_due_date_stays_on_cycle_grid(client_service):
    client = _new_client(client_service, billing_cycle=28)
    for _ in range(5):
        client = client_service.record_payment(client.id)

    delta = client.due_date - client.install_date
    assert delta.days % client.billing_cycle == 0
    assert client.due_date == date(2024, 1, 1) + timedelta(days=28 * 6)


def test_payment_on_unknown_client(client_service):
    with pytest.raises(NotFoundError):
        client_service.record_payment("does-not-exist")


def test_payment_without_due_date_sets_first_due(client_service, session):
    legacy = Client(name="Legacy", phone="0919", install_date=date(2024, 1, 1), due_date=None)
    session.add(legacy)
    session.commit()

    paid = client_service.record_payment(legacy.id)
    assert paid.due_date == date(2024, 1, 31)


def test_payment_survives_notification_failure(client_service, notification_service, monkeypatch):
    client = _new_client(client_service)

    def broken_emit(event, delivery=None):
        raise PersistenceError("disk full")

    monkeypatch.setattr(notification_service, "emit", broken_emit)

    paid = client_service.record_payment(client.id)
    assert paid.due_date == date(2024, 3, 1)
    assert client_service.get_client(client.id).due_date == date(2024, 3, 1)


def test_list_reclassifies_without_persisting_or_emitting(
    client_service, notification_service, broker, clock, session
):
    events = []
    broker.subscribe(events.append)
    client = _new_client(client_service)

    clock.set_today(date(2024, 2, 1))
    listed = client_service.list_clients()

    assert [c.status for c in listed] == [ClientStatus.INACTIVE.value]
    session.expire_all()
    assert session.get(Client, client.id).status == ClientStatus.ACTIVE.value
    assert notification_service.list_notifications() == []
    assert events == []


def test_list_search_by_name_or_phone(client_service):
    _new_client(client_service, name="Maria Santos", phone="09170000001")
    _new_client(client_service, name="Pedro Reyes", phone="09280000002")

    assert [c.name for c in client_service.list_clients("maria")] == ["Maria Santos"]
    assert [c.name for c in client_service.list_clients("0928")] == ["Pedro Reyes"]
    assert len(client_service.list_clients()) == 2


def test_delete_client_keeps_notifications(client_service, notification_service):
    client = _new_client(client_service)
    client_service.record_payment(client.id)

    removed = client_service.delete_client(client.id)

    assert removed.id == client.id
    with pytest.raises(NotFoundError):
        client_service.get_client(client.id)
    history = notification_service.list_notifications()
    assert len(history) == 1
    assert history[0].client_name == "Juan Dela Cruz"


def test_delete_unknown_client(client_service):
    with pytest.raises(NotFoundError):
        client_service.delete_client("nope")


def test_summary_counts(client_service, clock):
    _new_client(client_service, name="Late", install_date="2023-12-01")
    _new_client(client_service, name="Soon", install_date="2023-12-05")
    _new_client(client_service, name="Fresh", install_date="2024-01-01")

    # Vencimientos: 2023-12-31, 2024-01-04, 2024-01-31
    clock.set_today(date(2024, 1, 2))
    summary = client_service.summary(due_soon_days=3)

    assert summary.total == 3
    assert summary.inactive == 1
    assert summary.active == 2
    assert summary.due_soon == 1


def test_create_client_rejects_cycle_beyond_calendar(client_service):
    with pytest.raises(ValidationError) as exc:
        _new_client(client_service, billing_cycle=5000000)
    assert "out of range" in str(exc.value)
    assert client_service.list_clients() == []


def test_payment_past_last_calendar_date_is_rejected(client_service, session):
    client = Client(
        name="Far future",
        phone="0917",
        install_date=date(9999, 11, 1),
        due_date=date(9999, 12, 1),
        billing_cycle=60,
    )
    session.add(client)
    session.commit()

    with pytest.raises(ValidationError):
        client_service.record_payment(client.id)
    session.expire_all()
    assert client_service.get_client(client.id).due_date == date(9999, 12, 1)


@pytest.mark.parametrize("value", ["2024-01-01xyz", "2024-01-01 garbage", "2024-13-01"])
def test_create_client_rejects_trailing_garbage_in_date(client_service, value):
    with pytest.raises(ValidationError):
        _new_client(client_service, install_date=value)


def test_create_client_accepts_iso_timestamp(client_service):
    client = _new_client(client_service, install_date="2024-01-01T09:30:00")
    assert client.install_date == date(2024, 1, 1)
