from fastapi import APIRouter, Depends, HTTPException

from ...core.config import Settings, get_settings
from ...core.exceptions import NotFoundError, PersistenceError, ValidationError
from ...core.session import AdminSession, require_session
from ...services.client_service import ClientService
from ..dependencies import get_client_service
from .models import Client, ClientCreate, ClientSummary

router = APIRouter()


# --- Client Endpoints ---


@router.get("/clients", response_model=list[Client])
def api_get_all_clients(
    q: str | None = None,
    service: ClientService = Depends(get_client_service),
    current_session: AdminSession = Depends(require_session),
):
    return service.list_clients(query=q)


@router.get("/clients/summary", response_model=ClientSummary)
def api_get_clients_summary(
    service: ClientService = Depends(get_client_service),
    settings: Settings = Depends(get_settings),
    current_session: AdminSession = Depends(require_session),
):
    """Totals for the dashboard cards (total / active / inactive / due soon)."""
    summary = service.summary(settings.due_soon_days)
    return ClientSummary(
        total=summary.total,
        active=summary.active,
        inactive=summary.inactive,
        due_soon=summary.due_soon,
        due_soon_days=settings.due_soon_days,
    )


@router.get("/clients/{client_id}", response_model=Client)
def api_get_client(
    client_id: str,
    service: ClientService = Depends(get_client_service),
    current_session: AdminSession = Depends(require_session),
):
    try:
        return service.get_client(client_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/clients", response_model=Client)
def api_create_client(
    client: ClientCreate,
    service: ClientService = Depends(get_client_service),
    current_session: AdminSession = Depends(require_session),
):
    try:
        return service.create_client(client.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/clients/{client_id}/pay", response_model=Client)
def api_record_payment(
    client_id: str,
    service: ClientService = Depends(get_client_service),
    current_session: AdminSession = Depends(require_session),
):
    """
    Register a payment: advances the due date one cycle and notifies.
    """
    try:
        return service.record_payment(client_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/clients/{client_id}", response_model=Client)
def api_delete_client(
    client_id: str,
    service: ClientService = Depends(get_client_service),
    current_session: AdminSession = Depends(require_session),
):
    try:
        return service.delete_client(client_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
