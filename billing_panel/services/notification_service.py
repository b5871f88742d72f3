# billing_panel/services/notification_service.py
"""
Notification sink: bounded, append-only history of billing events.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.clock import ensure_utc
from ..core.constants import NOTIFICATION_HISTORY_LIMIT, NotificationKind
from ..core.events import NotificationBroker
from ..core.exceptions import PersistenceError
from ..models import Notification
from ..utils.alerter import DeliveryResult, ExternalNotifier

logger = logging.getLogger(__name__)

# Serializa las escrituras del historial entre hilos (API + scheduler)
notifications_lock = threading.Lock()


@dataclass(frozen=True)
class NotificationEvent:
    """Unsaved notification as produced by the sweep or the payment operation."""

    kind: NotificationKind
    message: str
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    due_date: Optional[date] = None

    @property
    def subject(self) -> str:
        if self.kind == NotificationKind.OVERDUE:
            return f"⚠️ Cliente vencido: {self.client_name}"
        if self.kind == NotificationKind.PAYMENT:
            return f"💰 Pago registrado: {self.client_name}"
        return "✅ Notificación de prueba"


def serialize_notification(notification: Notification) -> Dict[str, Any]:
    data = notification.model_dump()
    data["time"] = ensure_utc(notification.time).isoformat() if notification.time else None
    data["due_date"] = notification.due_date.isoformat() if notification.due_date else None
    return data


class NotificationService:
    """
    Service layer for the notification history.
    """

    def __init__(
        self,
        session: Session,
        broker: NotificationBroker,
        notifier: Optional[ExternalNotifier] = None,
        history_limit: int = NOTIFICATION_HISTORY_LIMIT,
    ):
        """
        Args:
            session: SQLModel Session instance
            broker: pub/sub used to fan events out to live viewers
            notifier: best-effort external channel (email / SMS outbox)
            history_limit: number of most recent notifications kept
        """
        self.session = session
        self.broker = broker
        self.notifier = notifier
        self.history_limit = history_limit

    def deliver_externally(self, event: NotificationEvent) -> Optional[DeliveryResult]:
        """
        Best-effort delivery. Never raises: a channel outage must not block
        billing state transitions.
        """
        if self.notifier is None:
            return None
        try:
            return self.notifier.deliver(event.subject, event.message)
        except Exception as e:
            logger.error(f"Error inesperado en entrega externa: {e}", exc_info=True)
            return None

    def emit(
        self, event: NotificationEvent, delivery: Optional[DeliveryResult] = None
    ) -> Notification:
        """
        Append the event to history, trim to the most recent entries, persist,
        and publish it to every live subscriber before returning.
        """
        notification = Notification(
            time=datetime.now(timezone.utc),
            kind=event.kind.value,
            client_id=event.client_id,
            client_name=event.client_name,
            due_date=event.due_date,
            message=event.message,
            delivered=bool(delivery and delivery.ok),
            delivery_channel=delivery.channel.value if delivery else None,
            delivery_detail=delivery.detail if delivery else None,
        )

        with notifications_lock:
            try:
                self.session.add(notification)
                self.session.flush()
                self._trim_history()
                self.session.commit()
                self.session.refresh(notification)
            except SQLAlchemyError as e:
                self.session.rollback()
                logger.error(f"Error guardando notificación: {e}")
                raise PersistenceError("Could not persist notification") from e

        self.broker.publish(serialize_notification(notification))
        return notification

    def notify(self, event: NotificationEvent) -> Notification:
        """Deliver externally (best effort) and then emit."""
        delivery = self.deliver_externally(event)
        return self.emit(event, delivery)

    def list_notifications(self, limit: Optional[int] = None) -> List[Notification]:
        """Most recent first."""
        statement = select(Notification).order_by(Notification.id.desc())
        if limit:
            statement = statement.limit(limit)
        return list(self.session.exec(statement).all())

    def clear(self) -> int:
        """Irreversibly empty the history. Returns the number of removed entries."""
        with notifications_lock:
            try:
                result = self.session.exec(delete(Notification))
                self.session.commit()
            except SQLAlchemyError as e:
                self.session.rollback()
                raise PersistenceError("Could not clear notifications") from e
        removed = result.rowcount or 0
        logger.info(f"🧹 Historial de notificaciones limpiado ({removed} entradas)")
        return removed

    def _trim_history(self):
        keep_ids = (
            select(Notification.id)
            .order_by(Notification.id.desc())
            .limit(self.history_limit)
        )
        self.session.exec(
            delete(Notification)
            .where(Notification.id.not_in(keep_ids))
            .execution_options(synchronize_session=False)
        )
