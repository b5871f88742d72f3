# billing_panel/main.py
from dotenv import load_dotenv

# Cargar variables de entorno desde .env ANTES de cualquier otra cosa
load_dotenv()

import asyncio
import logging

from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.auth import main as auth_api
from .api.clients import main as clients_api
from .api.notifications import main as notifications_api
from .api.system import main as system_api
from .core.config import get_settings
from .core.constants import SESSION_COOKIE_NAME
from .core.events import broker
from .core.limiter import limiter
from .core.session import SessionGate, get_session_gate
from .core.websockets import manager
from .db.engine import create_db_and_tables
from .scheduler import start_scheduler, stop_scheduler
from .views import router as views_router

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(title="ISP Billing Panel", version="1.0.0")


# --- Startup / Shutdown ---
@app.on_event("startup")
async def on_startup():
    """Initialize database tables, live notifications and the daily sweep."""
    create_db_and_tables()
    logger.info("✅ Database tables initialized")

    manager.bind_loop(asyncio.get_running_loop())
    app.state.unsubscribe_ws = broker.subscribe(manager.notify_threadsafe)

    app.state.scheduler = None
    if settings.scheduler_enabled:
        app.state.scheduler = start_scheduler(settings)


@app.on_event("shutdown")
async def on_shutdown():
    stop_scheduler(getattr(app.state, "scheduler", None))
    unsubscribe = getattr(app.state, "unsubscribe_ws", None)
    if unsubscribe:
        unsubscribe()


# --- Configuración de SlowAPI ---
app.state.limiter = limiter


async def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        content={"detail": f"Rate limit exceeded: {exc.detail}"}, status_code=429
    )


app.add_exception_handler(RateLimitExceeded, custom_rate_limit_handler)


# ============================================================================
# --- SEGURIDAD: CONFIGURACIÓN CORS ---
# ============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# --- SEGURIDAD: CABECERAS DE SEGURIDAD HTTP ---
# ============================================================================
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# ============================================================================
# --- GLOBAL EXCEPTION HANDLER ---
# ============================================================================
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Redirect to login for 401 on pages (not API)
    path = request.url.path
    if exc.status_code == 401 and not (
        path.startswith("/api/") or path in ("/login", "/logout")
    ):
        response = RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)
        response.delete_cookie(SESSION_COOKIE_NAME)
        return response
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# ============================================================================
# --- WEBSOCKET: NOTIFICACIONES EN VIVO ---
# ============================================================================
@app.websocket("/ws/dashboard")
async def websocket_dashboard(
    websocket: WebSocket, gate: SessionGate = Depends(get_session_gate)
):
    if gate.validate(websocket.cookies.get(SESSION_COOKIE_NAME)) is None:
        logger.warning("⚠️ [WebSocket] Rechazado: sesión inválida o ausente.")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    manager.bind_loop(asyncio.get_running_loop())
    await manager.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)


# ============================================================================
# --- ROUTERS INCLUSION ---
# ============================================================================
app.include_router(views_router)
app.include_router(auth_api.router)
app.include_router(clients_api.router, prefix="/api", tags=["Clients"])
app.include_router(notifications_api.router, prefix="/api", tags=["Notifications"])
app.include_router(system_api.router, prefix="/api", tags=["System"])
