# billing_panel/core/config.py
"""
Configuración centralizada de la aplicación.
Todas las opciones se leen de variables de entorno (o del archivo .env).
"""

import os
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "development"

    # --- Persistencia ---
    data_dir: str = os.path.join(os.getcwd(), "data")
    database_url: str | None = None

    # --- Facturación ---
    billing_timezone: str = "Asia/Manila"
    default_billing_cycle: int = 30
    due_soon_days: int = 3
    notification_history_limit: int = 200

    # --- Scheduler ---
    scheduler_enabled: bool = True
    sweep_run_time: str = "08:00"

    # --- Sesión del administrador ---
    admin_username: str | None = None
    admin_password: str | None = None
    session_lifetime_seconds: int = 86400  # 24 horas
    rate_limit_enabled: bool = True
    rate_limit_login: str = "10/minute"

    # --- Entrega externa (Resend / SMS) ---
    resend_api_key: str | None = None
    resend_api_url: str = "https://api.resend.com/emails"
    email_from: str = "onboarding@resend.dev"
    alert_email: str | None = None
    delivery_timeout_seconds: float = 10.0

    # --- Servidor ---
    allowed_origins: str = "http://localhost:8000"
    uvicorn_host: str = "0.0.0.0"
    uvicorn_port: int = 10000

    @property
    def config_file(self) -> str:
        return os.path.join(self.data_dir, "config.json")

    @property
    def sms_log_file(self) -> str:
        return os.path.join(self.data_dir, "sms.log")

    @property
    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        db_file = os.path.join(self.data_dir, "db", "billing.sqlite")
        return f"sqlite:///{db_file}"

    def sweep_hour_minute(self) -> tuple[int, int]:
        """Parse SWEEP_RUN_TIME ('HH:MM'). Raises ValueError on bad input."""
        hour, minute = self.sweep_run_time.split(":")
        hour, minute = int(hour), int(minute)
        if not (0 <= hour < 24 and 0 <= minute < 60):
            raise ValueError(f"Hora fuera de rango: {self.sweep_run_time}")
        return hour, minute


@lru_cache
def get_settings() -> Settings:
    return Settings()
