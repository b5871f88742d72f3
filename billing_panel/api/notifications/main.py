from fastapi import APIRouter, Depends, HTTPException

from ...core.exceptions import PersistenceError
from ...core.session import AdminSession, require_session
from ...services.notification_service import NotificationService
from ..dependencies import get_notification_service
from .models import ClearResponse, Notification

router = APIRouter()


@router.get("/notifications", response_model=list[Notification])
def api_get_notifications(
    limit: int | None = None,
    service: NotificationService = Depends(get_notification_service),
    current_session: AdminSession = Depends(require_session),
):
    """Notification history, most recent first."""
    return service.list_notifications(limit=limit)


@router.delete("/notifications", response_model=ClearResponse)
def api_clear_notifications(
    service: NotificationService = Depends(get_notification_service),
    current_session: AdminSession = Depends(require_session),
):
    try:
        removed = service.clear()
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return ClearResponse(removed=removed)
