# launcher.py
import json
import logging
import os
import socket
import sys

from dotenv import load_dotenv

# --- Constante ---
ENV_FILE = ".env"

# --- Configuración del logging ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - [Launcher] - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def get_lan_ip():
    """Detects the primary LAN IP (not localhost)."""
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        s.settimeout(0.1)
        s.connect(("1.1.1.1", 80))
        ip = s.getsockname()[0]
        s.close()
        return ip
    except OSError:
        return "127.0.0.1"


def ensure_data_files(settings):
    """
    Crea DATA_DIR, el outbox SMS y las tablas. Un config.json corrupto se
    reemplaza por uno vacío (se usarán las credenciales por defecto).
    """
    from billing_panel.db.engine import create_db_and_tables

    os.makedirs(settings.data_dir, exist_ok=True)

    if os.path.exists(settings.config_file):
        try:
            with open(settings.config_file, "r", encoding="utf-8") as f:
                json.load(f)
        except (json.JSONDecodeError, OSError):
            logging.warning("config.json corrupto. Se reinicia a {}.")
            with open(settings.config_file, "w", encoding="utf-8") as f:
                json.dump({}, f, indent=2)

    if not os.path.exists(settings.sms_log_file):
        open(settings.sms_log_file, "a", encoding="utf-8").close()

    create_db_and_tables()
    logging.info(f"✓ Datos en: {settings.data_dir}")


def start_api_server(settings):
    from uvicorn import Config, Server

    from billing_panel.main import app as fastapi_app

    config = Config(
        app=fastapi_app,
        host=settings.uvicorn_host,
        port=settings.uvicorn_port,
        log_level="info",
    )
    try:
        Server(config).run()
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    load_dotenv(ENV_FILE)

    from billing_panel.core.config import get_settings

    settings = get_settings()
    try:
        ensure_data_files(settings)
    except Exception as e:
        logging.critical(f"Error inicializando datos: {e}", exc_info=True)
        sys.exit(1)

    port = settings.uvicorn_port
    print("-" * 60)
    print("🚀 ISP Billing Panel")
    print(f"   🔌 Local:     http://localhost:{port}")
    print(f"   📡 Network:   http://{get_lan_ip()}:{port}")
    print(f"   ⏰ Auditoría diaria: {settings.sweep_run_time} ({settings.billing_timezone})")
    print("-" * 60)

    start_api_server(settings)
