"""
Constantes centralizadas para el sistema.
Elimina "magic strings" y provee tipado fuerte para valores comunes.
"""

from enum import Enum, unique


@unique
class ClientStatus(str, Enum):
    """Estado de servicio de un cliente, derivado solo de su fecha de vencimiento."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


@unique
class NotificationKind(str, Enum):
    """Tipos de notificación del historial."""

    OVERDUE = "overdue"
    PAYMENT = "payment"
    TEST = "test"


@unique
class DeliveryChannel(str, Enum):
    """Canales de entrega externa (best-effort)."""

    EMAIL = "email"
    SMS_LOG = "sms_log"


DEFAULT_BILLING_CYCLE_DAYS = 30
NOTIFICATION_HISTORY_LIMIT = 200
SESSION_COOKIE_NAME = "billing_panel_session"
