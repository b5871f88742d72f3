# billing_panel/core/events.py
"""
Publish/subscribe mínimo para notificaciones en vivo.

El NotificationService publica de forma síncrona después de guardar cada
evento. Los suscriptores (por ejemplo, el puente hacia los WebSockets del
dashboard) no conocen el historial ni la base de datos.
"""

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

Subscriber = Callable[[dict[str, Any]], None]


class NotificationBroker:
    def __init__(self):
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Registra un suscriptor y devuelve la función para darlo de baja."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, payload: dict[str, Any]) -> int:
        """
        Entrega el payload a todos los suscriptores antes de retornar.
        Un suscriptor que falla no impide la entrega a los demás.
        """
        with self._lock:
            subscribers = self._subscribers[:]

        delivered = 0
        for callback in subscribers:
            try:
                callback(payload)
                delivered += 1
            except Exception as e:
                logger.error(f"Suscriptor de notificaciones falló: {e}", exc_info=True)
        return delivered


broker = NotificationBroker()
