# billing_panel/scheduler.py
import logging

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .core.config import Settings, get_settings

logger = logging.getLogger("Scheduler")

SWEEP_JOB_ID = "due_date_sweep"


def job_listener(event):
    """
    Listener para eventos del scheduler.
    Permite logging detallado de la ejecución de jobs.
    """
    if event.exception:
        logger.error(f"Job {event.job_id} falló: {event.exception}")
    else:
        logger.info(f"Job {event.job_id} ejecutado exitosamente")


def create_scheduler(settings: Settings | None = None) -> BackgroundScheduler:
    """
    Configura el scheduler con el único job diario: la auditoría de vencimientos.
    El job llama exactamente a la misma función que POST /api/run-check.
    """
    from .services.billing_job import run_due_date_sweep

    settings = settings or get_settings()

    scheduler = BackgroundScheduler(
        timezone=settings.billing_timezone,
        job_defaults={
            "coalesce": True,  # Si se perdieron ejecuciones, solo ejecuta una vez
            "max_instances": 1,  # Solo una instancia del mismo job a la vez
            "misfire_grace_time": 300,  # Tolerar 5 min de retraso
        },
    )
    scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    try:
        hour, minute = settings.sweep_hour_minute()
    except (ValueError, AttributeError):
        logger.warning(f"Formato de hora inválido: {settings.sweep_run_time}. Usando 08:00")
        hour, minute = 8, 0

    logger.info(
        f"Programando auditoría diaria a las {hour:02d}:{minute:02d} ({settings.billing_timezone})"
    )
    scheduler.add_job(
        run_due_date_sweep,
        trigger=CronTrigger(hour=hour, minute=minute, timezone=settings.billing_timezone),
        id=SWEEP_JOB_ID,
        name="Daily Due-Date Sweep",
        replace_existing=True,
    )
    return scheduler


def start_scheduler(settings: Settings | None = None) -> BackgroundScheduler:
    scheduler = create_scheduler(settings)
    scheduler.start()
    logger.info("✅ Scheduler iniciado exitosamente")
    return scheduler


def stop_scheduler(scheduler: BackgroundScheduler | None):
    if scheduler is not None and scheduler.running:
        logger.info("Deteniendo scheduler...")
        scheduler.shutdown(wait=False)
        logger.info("Scheduler detenido")
