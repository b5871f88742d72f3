# billing_panel/core/clock.py
"""
Adaptador de reloj con zona horaria fija.

"Hoy" siempre se calcula en la zona civil configurada (BILLING_TIMEZONE),
sin importar la zona horaria del servidor.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def ensure_utc(timestamp: datetime) -> datetime:
    """SQLite devuelve los instantes sin zona; se guardan siempre en UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


class Clock:
    def __init__(self, tz_name: str):
        self.tz_name = tz_name
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def civil_date(self, timestamp: datetime) -> date:
        """Fecha civil de un instante. Los instantes naive se tratan como UTC."""
        return ensure_utc(timestamp).astimezone(self.tz).date()


class FixedClock(Clock):
    """Reloj anclado a una fecha. Útil para pruebas y auditorías manuales."""

    def __init__(self, today: date, tz_name: str = "Asia/Manila"):
        super().__init__(tz_name)
        self._today = today

    def set_today(self, today: date):
        self._today = today

    def now(self) -> datetime:
        return datetime.combine(self._today, datetime.min.time(), tzinfo=self.tz)

    def today(self) -> date:
        return self._today


_clock: Clock | None = None


def get_clock() -> Clock:
    global _clock
    if _clock is None:
        from .config import get_settings

        _clock = Clock(get_settings().billing_timezone)
    return _clock
