# billing_panel/models/client.py
"""
Client model for subscriber billing.
"""
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

from ..core.constants import DEFAULT_BILLING_CYCLE_DAYS, ClientStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Client(SQLModel, table=True):
    """
    Client model representing an ISP subscriber.

    Fields:
    - id: opaque UUID string, assigned at creation
    - name / phone / plan / location: descriptive data
    - install_date: civil date of installation (immutable)
    - billing_cycle: days per billing period
    - due_date: next date on which payment is owed
    - status: Active / Inactive, derived from due_date vs today
    - created_at / paid_at: audit timestamps (UTC)
    """

    __tablename__ = "clients"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str = Field(nullable=False)
    phone: str = Field(nullable=False)
    plan: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None)
    install_date: date = Field(nullable=False)
    billing_cycle: int = Field(default=DEFAULT_BILLING_CYCLE_DAYS, nullable=False)
    due_date: Optional[date] = Field(default=None, index=True)
    status: str = Field(default=ClientStatus.ACTIVE.value, nullable=False)
    created_at: Optional[datetime] = Field(default_factory=_utcnow)
    paid_at: Optional[datetime] = Field(default=None)
