# billing_panel/services/sweep_service.py
"""
Due-date sweep: re-evaluates every client against today and reports each
Active -> Inactive transition exactly once.

The manual trigger (POST /api/run-check) and the daily scheduler job both go
through SweepService.run_sweep(); there is no other sweep code path.
"""

import logging
import threading
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.clock import Clock
from ..core.constants import ClientStatus, NotificationKind
from ..core.exceptions import PersistenceError, SweepInProgressError
from ..models import Client
from .billing_calculator import classify_status
from .notification_service import NotificationEvent, NotificationService

logger = logging.getLogger(__name__)

# Impide que dos auditorías (manual + diaria) se solapen
_sweep_guard = threading.Lock()


@dataclass
class SweepResult:
    today: str
    processed: int = 0
    skipped: int = 0
    newly_overdue: List[str] = field(default_factory=list)
    reactivated: List[str] = field(default_factory=list)
    notifications_emitted: int = 0

    @property
    def message(self) -> str:
        return (
            f"Checked {self.processed} clients: {len(self.newly_overdue)} newly overdue, "
            f"{len(self.reactivated)} reactivated, "
            f"{self.notifications_emitted} notifications sent."
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["message"] = self.message
        return data


def is_sweep_running() -> bool:
    return _sweep_guard.locked()


class SweepService:
    def __init__(self, session: Session, clock: Clock, notifications: NotificationService):
        self.session = session
        self.clock = clock
        self.notifications = notifications

    def run_sweep(self) -> SweepResult:
        """
        Run one sweep. Raises SweepInProgressError if another sweep holds the
        guard and PersistenceError if the updated statuses cannot be saved.
        """
        if not _sweep_guard.acquire(blocking=False):
            raise SweepInProgressError("A due-date check is already running")
        try:
            return self._sweep()
        finally:
            _sweep_guard.release()

    def _sweep(self) -> SweepResult:
        # Import tardío: clients_lock vive junto al ClientService
        from .client_service import clients_lock

        today = self.clock.today()
        result = SweepResult(today=today.isoformat())
        overdue_events: List[NotificationEvent] = []

        logger.info(f"--- EJECUTANDO AUDITORÍA DE VENCIMIENTOS ({today}) ---")

        with clients_lock:
            try:
                clients = self.session.exec(select(Client).order_by(Client.created_at)).all()

                for client in clients:
                    if client.due_date is None:
                        result.skipped += 1
                        continue

                    result.processed += 1
                    new_status = classify_status(client.due_date, today)
                    if new_status.value == client.status:
                        continue

                    previous_status = client.status
                    client.status = new_status.value
                    self.session.add(client)

                    if (
                        previous_status == ClientStatus.ACTIVE.value
                        and new_status == ClientStatus.INACTIVE
                    ):
                        result.newly_overdue.append(client.id)
                        overdue_events.append(
                            NotificationEvent(
                                kind=NotificationKind.OVERDUE,
                                client_id=client.id,
                                client_name=client.name,
                                due_date=client.due_date,
                                message=(
                                    f"{client.name} is overdue. "
                                    f"Due date was {client.due_date.isoformat()}."
                                ),
                            )
                        )
                    elif new_status == ClientStatus.ACTIVE:
                        result.reactivated.append(client.id)

                # Un solo commit para toda la colección
                self.session.commit()
            except SQLAlchemyError as e:
                self.session.rollback()
                logger.critical(f"Error crítico guardando la auditoría: {e}", exc_info=True)
                raise PersistenceError("Could not persist client statuses") from e

        # Los avisos salen solo después de que los estados quedaron guardados
        failed_ids: List[str] = []
        for event in overdue_events:
            try:
                self.notifications.notify(event)
            except PersistenceError as e:
                logger.error(f"No se pudo registrar el aviso de {event.client_name}: {e}")
                failed_ids.append(event.client_id)
                continue
            result.notifications_emitted += 1
            logger.info(f"🔴 Cliente vencido: {event.client_name} (vencía {event.due_date})")

        if failed_ids:
            self._restore_active(failed_ids)
            raise PersistenceError(
                f"{len(failed_ids)} overdue notifications could not be recorded"
            )

        logger.info(f"--- FIN DE LA AUDITORÍA. {result.message} ---")
        return result

    def _restore_active(self, client_ids: List[str]):
        """
        Put clients whose overdue notice was lost back to Active, so the next
        sweep detects the transition again.
        """
        from .client_service import clients_lock

        with clients_lock:
            try:
                for client_id in client_ids:
                    client = self.session.get(Client, client_id)
                    if client is not None:
                        client.status = ClientStatus.ACTIVE.value
                        self.session.add(client)
                self.session.commit()
            except SQLAlchemyError as e:
                self.session.rollback()
                logger.critical(
                    f"Error crítico restaurando estados tras avisos fallidos: {e}", exc_info=True
                )
                raise PersistenceError("Could not restore client statuses") from e
        logger.warning(f"↩️ {len(client_ids)} clientes vuelven a Active para reintentar el aviso")
