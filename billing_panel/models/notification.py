# billing_panel/models/notification.py
"""
Notification model: immutable event record of the billing history.
"""
from datetime import date, datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class Notification(SQLModel, table=True):
    """
    Fields:
    - id: auto-increment primary key (orders the history)
    - time: emission timestamp (UTC)
    - kind: overdue / payment / test
    - client_id / client_name: snapshot of the client at emission time
    - due_date / message: substance of the notice
    - delivered / delivery_channel / delivery_detail: best-effort external delivery result
    """

    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    time: datetime = Field(nullable=False, index=True)
    kind: str = Field(nullable=False)
    client_id: Optional[str] = Field(default=None, index=True)
    client_name: Optional[str] = Field(default=None)
    due_date: Optional[date] = Field(default=None)
    message: str = Field(nullable=False)
    delivered: bool = Field(default=False)
    delivery_channel: Optional[str] = Field(default=None)
    delivery_detail: Optional[str] = Field(default=None)
