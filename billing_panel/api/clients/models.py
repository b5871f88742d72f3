# billing_panel/api/clients/models.py
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, field_validator

from ...core.clock import ensure_utc


# --- Modelos Pydantic (Cliente) ---
class Client(BaseModel):
    id: str
    name: str
    phone: str
    plan: str | None = None
    location: str | None = None
    install_date: date
    billing_cycle: int
    due_date: date | None = None
    status: str
    created_at: datetime | None = None
    paid_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "paid_at")
    @classmethod
    def _as_utc(cls, value):
        return ensure_utc(value) if value else value


class ClientCreate(BaseModel):
    # Los requeridos se validan en ClientService para responder 400 (no 422)
    name: str | None = None
    phone: str | None = None
    plan: str | None = None
    location: str | None = None
    install_date: str | None = None
    billing_cycle: int | float | str | None = None


class ClientSummary(BaseModel):
    total: int
    active: int
    inactive: int
    due_soon: int
    due_soon_days: int
