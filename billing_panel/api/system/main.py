import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ...core.constants import NotificationKind
from ...core.exceptions import PersistenceError, SweepInProgressError
from ...core.session import AdminSession, require_session
from ...services.notification_service import NotificationEvent, NotificationService
from ...services.sweep_service import SweepService, is_sweep_running
from ..dependencies import get_notification_service, get_sweep_service

router = APIRouter()
logger = logging.getLogger(__name__)


class SweepResponse(BaseModel):
    ok: bool = True
    message: str
    today: str
    processed: int
    skipped: int
    newly_overdue: list[str]
    reactivated: list[str]
    notifications_emitted: int


class TestNotificationResponse(BaseModel):
    ok: bool
    message: str
    channel: str | None = None
    detail: str | None = None


@router.post("/run-check", response_model=SweepResponse)
def api_run_check(
    service: SweepService = Depends(get_sweep_service),
    current_session: AdminSession = Depends(require_session),
):
    """
    Manual due-date sweep. Same algorithm as the daily scheduled job.
    """
    try:
        result = service.run_sweep()
    except SweepInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PersistenceError as e:
        logger.error(f"run-check falló: {e}")
        raise HTTPException(status_code=500, detail="Due-date check failed")
    return SweepResponse(**result.to_dict())


@router.post("/test-email", response_model=TestNotificationResponse)
def api_test_email(
    service: NotificationService = Depends(get_notification_service),
    current_session: AdminSession = Depends(require_session),
):
    """Send a test notification through the external channel and record it."""
    event = NotificationEvent(
        kind=NotificationKind.TEST,
        message="Your billing panel notification channel is working!",
    )
    delivery = service.deliver_externally(event)
    if delivery is None or not delivery.ok:
        detail = delivery.detail if delivery else "No delivery channel available"
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)

    service.emit(event, delivery)
    return TestNotificationResponse(
        ok=True,
        message="Test notification sent!",
        channel=delivery.channel.value,
        detail=delivery.detail,
    )


@router.get("/health", tags=["System"])
def get_system_health():
    return {"status": "ok", "sweep_running": is_sweep_running()}
