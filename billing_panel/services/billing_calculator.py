# billing_panel/services/billing_calculator.py
"""
Pure billing-cycle arithmetic. No I/O, no clock access: callers pass "today".

Due dates only ever move in whole-cycle steps, so for every client
due_date == install_date + k * billing_cycle days.
"""

from datetime import date, timedelta
from typing import Any

from ..core.constants import DEFAULT_BILLING_CYCLE_DAYS, ClientStatus


def coerce_billing_cycle(value: Any, default: int = DEFAULT_BILLING_CYCLE_DAYS) -> int:
    """
    Missing or non-numeric values fall back to the default cycle.
    Zero and negative numbers are returned unchanged so the caller can reject them.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        # "30", 30.0 y "30.5" se truncan a días enteros
        return int(float(str(value).strip()))
    except (ValueError, OverflowError):
        return default


def compute_initial_due_date(install_date: date, billing_cycle_days: int) -> date:
    return install_date + timedelta(days=billing_cycle_days)


def compute_next_due_date(current_due_date: date, billing_cycle_days: int) -> date:
    """Advance exactly one cycle; missed cycles are never caught up."""
    return current_due_date + timedelta(days=billing_cycle_days)


def classify_status(due_date: date, today: date) -> ClientStatus:
    # El día del vencimiento todavía cuenta como activo.
    if today > due_date:
        return ClientStatus.INACTIVE
    return ClientStatus.ACTIVE


def days_until_due(due_date: date, today: date) -> int:
    return (due_date - today).days


def is_due_soon(due_date: date, today: date, window_days: int) -> bool:
    """True when the due date falls within [today, today + window_days]."""
    return 0 <= days_until_due(due_date, today) <= window_days
