# billing_panel/services/billing_job.py
import logging
from typing import Optional

from sqlmodel import Session

from ..core.clock import Clock, get_clock
from ..core.config import get_settings
from ..core.events import broker
from ..core.exceptions import BillingPanelError
from ..db.engine import get_engine
from ..utils.alerter import ExternalNotifier
from .notification_service import NotificationService
from .sweep_service import SweepResult, SweepService

# Configuración del Logger
logger = logging.getLogger("BillingJob")


def build_sweep_service(session: Session, clock: Optional[Clock] = None) -> SweepService:
    settings = get_settings()
    notifications = NotificationService(
        session,
        broker,
        notifier=ExternalNotifier(settings),
        history_limit=settings.notification_history_limit,
    )
    return SweepService(session, clock or get_clock(), notifications)


def run_due_date_sweep(engine=None, clock: Optional[Clock] = None) -> Optional[SweepResult]:
    """
    Ejecuta UNA auditoría de vencimientos.
    Esta función es llamada diariamente por APScheduler; los fallos se
    registran y no impiden la ejecución del día siguiente.
    """
    try:
        with Session(engine or get_engine()) as session:
            result = build_sweep_service(session, clock).run_sweep()
            logger.info(f"Resumen: {result.message}")
            return result
    except BillingPanelError as e:
        logger.error(f"Auditoría diaria no completada: {e}")
    except Exception as e:
        logger.critical(f"Error crítico en la auditoría de vencimientos: {e}", exc_info=True)
    return None
