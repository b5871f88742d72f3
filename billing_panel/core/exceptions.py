# billing_panel/core/exceptions.py
"""
Errores de dominio del panel de facturación.
Los routers los traducen a HTTPException (400/401/404/409/500).
"""


class BillingPanelError(Exception):
    """Base de todos los errores de dominio."""


class ValidationError(BillingPanelError):
    """Entrada faltante o inválida."""


class NotFoundError(BillingPanelError):
    """El cliente referenciado no existe."""


class PersistenceError(BillingPanelError):
    """Fallo leyendo o escribiendo el estado durable."""


class ExternalDeliveryError(BillingPanelError):
    """Fallo del canal externo (email/SMS). Solo se registra en el log."""


class SweepInProgressError(BillingPanelError):
    """Ya hay una auditoría de vencimientos en curso."""


class AuthenticationError(BillingPanelError):
    """Credenciales de administrador inválidas."""
