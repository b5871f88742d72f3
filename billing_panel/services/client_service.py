# billing_panel/services/client_service.py
"""
Client store: CRUD over the subscriber collection using SQLModel ORM.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.clock import Clock
from ..core.constants import DEFAULT_BILLING_CYCLE_DAYS, ClientStatus, NotificationKind
from ..core.exceptions import NotFoundError, PersistenceError, ValidationError
from ..models import Client
from .billing_calculator import (
    classify_status,
    coerce_billing_cycle,
    compute_initial_due_date,
    compute_next_due_date,
    is_due_soon,
)
from .notification_service import NotificationEvent, NotificationService

logger = logging.getLogger(__name__)

# Un solo escritor a la vez sobre la colección de clientes (API + scheduler)
clients_lock = threading.Lock()

REQUIRED_FIELDS = ("name", "phone", "install_date")


@dataclass(frozen=True)
class ClientSummary:
    total: int
    active: int
    inactive: int
    due_soon: int


def _parse_date(value: Any, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    # Se acepta una marca de tiempo ISO completa ("2024-01-01T00:00:00")
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValidationError(f"Invalid date for '{field}': {value}")


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class ClientService:
    """
    Service layer for Client operations.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        notifications: NotificationService,
        default_billing_cycle: int = DEFAULT_BILLING_CYCLE_DAYS,
    ):
        """
        Args:
            session: SQLModel Session instance
            clock: fixed-timezone clock used for every "today"
            notifications: sink for payment notifications
            default_billing_cycle: cycle used when none (or garbage) is given
        """
        self.session = session
        self.clock = clock
        self.notifications = notifications
        self.default_billing_cycle = default_billing_cycle

    # --- Lectura ---

    def list_clients(self, query: Optional[str] = None) -> List[Client]:
        """
        All clients, with status reclassified against today.

        The fresh status is applied to detached copies only: nothing is
        persisted and nothing is emitted, the due-date sweep owns transitions.
        """
        clients = self.session.exec(select(Client).order_by(Client.created_at)).all()
        if query:
            needle = query.strip().lower()
            clients = [
                c
                for c in clients
                if needle in (c.name or "").lower() or needle in (c.phone or "")
            ]

        today = self.clock.today()
        result = []
        for client in clients:
            view = Client(**client.model_dump())
            if view.due_date:
                view.status = classify_status(view.due_date, today).value
            result.append(view)
        return result

    def get_client(self, client_id: str) -> Client:
        client = self.session.get(Client, client_id)
        if not client:
            raise NotFoundError(f"Client {client_id} not found.")
        return client

    def summary(self, due_soon_days: int) -> ClientSummary:
        """Totals for the dashboard cards."""
        today = self.clock.today()
        clients = self.list_clients()
        active = [c for c in clients if c.status == ClientStatus.ACTIVE.value]
        due_soon = [
            c for c in active if c.due_date and is_due_soon(c.due_date, today, due_soon_days)
        ]
        return ClientSummary(
            total=len(clients),
            active=len(active),
            inactive=len(clients) - len(active),
            due_soon=len(due_soon),
        )

    # --- Escritura ---

    def create_client(self, fields: Dict[str, Any]) -> Client:
        """Validate, derive the first due date and store a new client."""
        missing = [f for f in REQUIRED_FIELDS if not _clean(fields.get(f))]
        if missing:
            raise ValidationError(f"Missing fields: {', '.join(missing)}")

        install_date = _parse_date(fields["install_date"], "install_date")
        billing_cycle = coerce_billing_cycle(
            fields.get("billing_cycle"), default=self.default_billing_cycle
        )
        if billing_cycle <= 0:
            raise ValidationError("billing_cycle must be a positive number of days")
        try:
            due_date = compute_initial_due_date(install_date, billing_cycle)
        except OverflowError:
            raise ValidationError("billing_cycle out of range")

        client = Client(
            name=_clean(fields["name"]),
            phone=_clean(fields["phone"]),
            plan=_clean(fields.get("plan")),
            location=_clean(fields.get("location")),
            install_date=install_date,
            billing_cycle=billing_cycle,
            due_date=due_date,
            status=ClientStatus.ACTIVE.value,
        )

        with clients_lock:
            self._commit(client)
        logger.info(f"Cliente creado: {client.name} (vence {client.due_date})")
        return client

    def record_payment(self, client_id: str) -> Client:
        """
        Advance the due date by exactly one cycle, mark the client Active and
        emit one payment notification.
        """
        with clients_lock:
            client = self.get_client(client_id)
            cycle = coerce_billing_cycle(client.billing_cycle, self.default_billing_cycle)
            try:
                if client.due_date is None:
                    # Registro sin vencimiento: el pago cubre el primer ciclo
                    next_due = compute_initial_due_date(client.install_date, cycle)
                else:
                    next_due = compute_next_due_date(client.due_date, cycle)
            except OverflowError:
                raise ValidationError("Next due date is out of range")
            client.due_date = next_due
            client.status = ClientStatus.ACTIVE.value
            client.paid_at = datetime.now(timezone.utc)
            self._commit(client)

        logger.info(f"💰 Pago registrado para {client.name}. Próximo vencimiento: {client.due_date}")
        event = NotificationEvent(
            kind=NotificationKind.PAYMENT,
            client_id=client.id,
            client_name=client.name,
            due_date=client.due_date,
            message=f"{client.name} marked as paid. Next due: {client.due_date.isoformat()}",
        )
        try:
            self.notifications.notify(event)
        except PersistenceError:
            # El pago ya quedó guardado; solo se pierde el aviso
            logger.error(f"No se pudo registrar la notificación de pago de {client.name}")
        return client

    def delete_client(self, client_id: str) -> Client:
        """Remove a client. Past notifications keep their snapshot."""
        with clients_lock:
            client = self.get_client(client_id)
            removed = Client(**client.model_dump())
            try:
                self.session.delete(client)
                self.session.commit()
            except SQLAlchemyError as e:
                self.session.rollback()
                logger.error(f"Error eliminando cliente {client_id}: {e}")
                raise PersistenceError("Could not delete client") from e
        logger.info(f"🗑 Cliente eliminado: {removed.name}")
        return removed

    def _commit(self, client: Client):
        try:
            self.session.add(client)
            self.session.commit()
            self.session.refresh(client)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error guardando cliente: {e}")
            raise PersistenceError("Could not persist client") from e
