# billing_panel/utils/alerter.py
"""
Entrega externa best-effort de notificaciones.

- Email vía la API HTTP de Resend (si RESEND_API_KEY y ALERT_EMAIL están configurados).
- Si no hay email configurado, la notificación se agrega al outbox SMS (DATA_DIR/sms.log),
  que un gateway/módem externo consume.

Nada de este módulo lanza excepciones hacia el llamador: los fallos se registran
en el log y se devuelven como DeliveryResult(ok=False).
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx

from ..core.config import Settings
from ..core.constants import DeliveryChannel
from ..core.exceptions import ExternalDeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    channel: DeliveryChannel
    detail: str = ""


class ExternalNotifier:
    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None):
        self.settings = settings
        self._http_client = http_client

    @property
    def email_enabled(self) -> bool:
        return bool(self.settings.resend_api_key and self.settings.alert_email)

    def deliver(self, subject: str, message: str) -> DeliveryResult:
        channel = DeliveryChannel.EMAIL if self.email_enabled else DeliveryChannel.SMS_LOG
        try:
            if channel == DeliveryChannel.EMAIL:
                detail = self._send_email(subject, message)
            else:
                detail = self._append_sms_outbox(message)
        except ExternalDeliveryError as e:
            logger.error(f"❌ Entrega externa falló ({channel.value}): {e}")
            return DeliveryResult(ok=False, channel=channel, detail=str(e))

        logger.info(f"📧 Notificación entregada vía {channel.value}: {subject}")
        return DeliveryResult(ok=True, channel=channel, detail=detail)

    def _send_email(self, subject: str, message: str) -> str:
        payload = {
            "from": self.settings.email_from,
            "to": self.settings.alert_email,
            "subject": subject,
            "html": f"<p>{message}</p>",
        }
        headers = {"Authorization": f"Bearer {self.settings.resend_api_key}"}
        try:
            if self._http_client is not None:
                response = self._http_client.post(
                    self.settings.resend_api_url,
                    json=payload,
                    headers=headers,
                    timeout=self.settings.delivery_timeout_seconds,
                )
            else:
                response = httpx.post(
                    self.settings.resend_api_url,
                    json=payload,
                    headers=headers,
                    timeout=self.settings.delivery_timeout_seconds,
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalDeliveryError(
                f"Resend respondió {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise ExternalDeliveryError(f"Error de conexión con Resend: {e}") from e

        try:
            email_id = response.json().get("id", "")
        except ValueError:
            email_id = ""
        return f"email id={email_id}" if email_id else "email sent"

    def _append_sms_outbox(self, message: str) -> str:
        sms_log = self.settings.sms_log_file
        line = f"{datetime.now(timezone.utc).isoformat()}\t{message}\n"
        try:
            os.makedirs(os.path.dirname(sms_log), exist_ok=True)
            with open(sms_log, "a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            raise ExternalDeliveryError(f"No se pudo escribir el outbox SMS: {e}") from e
        return f"queued in {os.path.basename(sms_log)}"
