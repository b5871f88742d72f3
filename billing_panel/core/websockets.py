import asyncio
import logging
from typing import List

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        self.active_connections: List[WebSocket] = []
        self.loop: asyncio.AbstractEventLoop | None = None

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast_event(self, event_type: str, data: dict = None):
        """
        Envía una señal JSON genérica a todos los clientes conectados.
        """
        payload = {"type": event_type}
        if data:
            payload.update(data)

        # Iteramos sobre una copia [:] para evitar errores si la lista cambia durante el envío
        for connection in self.active_connections[:]:
            try:
                await connection.send_json(payload)
            except Exception:
                self.disconnect(connection)

    def bind_loop(self, loop: asyncio.AbstractEventLoop):
        """Guarda el event loop del servidor para poder emitir desde otros hilos."""
        self.loop = loop

    def notify_threadsafe(self, payload: dict):
        """
        Suscriptor del NotificationBroker.
        Se llama desde hilos del threadpool o del scheduler; programa el
        broadcast en el loop del servidor sin esperar confirmación.
        """
        if self.loop is None or self.loop.is_closed() or not self.active_connections:
            return
        asyncio.run_coroutine_threadsafe(
            self.broadcast_event("notification", {"notification": payload}), self.loop
        )


manager = ConnectionManager()
