# billing_panel/api/dependencies.py
"""Shared dependencies for the billing API endpoints."""

from fastapi import Depends
from sqlmodel import Session

from ..core.clock import Clock, get_clock
from ..core.config import Settings, get_settings
from ..core.events import NotificationBroker, broker
from ..db.engine import get_sync_session
from ..services.client_service import ClientService
from ..services.notification_service import NotificationService
from ..services.sweep_service import SweepService
from ..utils.alerter import ExternalNotifier


def get_broker() -> NotificationBroker:
    return broker


def get_external_notifier(settings: Settings = Depends(get_settings)) -> ExternalNotifier:
    return ExternalNotifier(settings)


def get_notification_service(
    session: Session = Depends(get_sync_session),
    notification_broker: NotificationBroker = Depends(get_broker),
    notifier: ExternalNotifier = Depends(get_external_notifier),
    settings: Settings = Depends(get_settings),
) -> NotificationService:
    return NotificationService(
        session,
        notification_broker,
        notifier=notifier,
        history_limit=settings.notification_history_limit,
    )


def get_client_service(
    session: Session = Depends(get_sync_session),
    clock: Clock = Depends(get_clock),
    notifications: NotificationService = Depends(get_notification_service),
    settings: Settings = Depends(get_settings),
) -> ClientService:
    return ClientService(
        session,
        clock,
        notifications,
        default_billing_cycle=settings.default_billing_cycle,
    )


def get_sweep_service(
    session: Session = Depends(get_sync_session),
    clock: Clock = Depends(get_clock),
    notifications: NotificationService = Depends(get_notification_service),
) -> SweepService:
    return SweepService(session, clock, notifications)
