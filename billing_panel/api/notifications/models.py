# billing_panel/api/notifications/models.py
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, field_validator

from ...core.clock import ensure_utc


class Notification(BaseModel):
    id: int
    time: datetime
    kind: str
    client_id: str | None = None
    client_name: str | None = None
    due_date: date | None = None
    message: str
    delivered: bool = False
    delivery_channel: str | None = None
    delivery_detail: str | None = None
    model_config = ConfigDict(from_attributes=True)

    @field_validator("time")
    @classmethod
    def _as_utc(cls, value):
        return ensure_utc(value)


class ClearResponse(BaseModel):
    ok: bool = True
    removed: int
