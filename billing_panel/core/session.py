# billing_panel/core/session.py
"""
Session gate for the single admin role.

The admin credential comes from DATA_DIR/config.json
({"admin": {"username": ..., "password": ...}}), can be overridden through
ADMIN_USERNAME / ADMIN_PASSWORD and falls back to admin/admin.
Sessions are kept server-side; the browser only holds an opaque token in an
HTTP-only cookie.
"""

import json
import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status

from .config import Settings, get_settings
from .constants import SESSION_COOKIE_NAME
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminCredential:
    username: str
    password: str


@dataclass
class AdminSession:
    token: str
    username: str
    created_at: datetime
    expires_at: datetime


def load_admin_credential(settings: Settings) -> AdminCredential:
    """
    Resolve the admin credential: env vars > config.json > admin/admin.
    """
    admin = {}
    try:
        with open(settings.config_file, "r", encoding="utf-8") as f:
            admin = (json.load(f) or {}).get("admin") or {}
    except FileNotFoundError:
        pass
    except (json.JSONDecodeError, OSError, AttributeError) as e:
        logger.warning(f"config.json ilegible ({e}). Usando credenciales por defecto.")

    username = settings.admin_username or admin.get("username")
    password = settings.admin_password or admin.get("password")
    if not username or not password:
        logger.warning("⚠️ Credencial de administrador no configurada. Usando admin/admin.")
        username, password = "admin", "admin"
    return AdminCredential(username=username, password=password)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionGate:
    def __init__(
        self,
        credential: AdminCredential,
        lifetime_seconds: int = 86400,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.credential = credential
        self.lifetime = timedelta(seconds=lifetime_seconds)
        self._now = now
        self._sessions: dict[str, AdminSession] = {}
        self._lock = threading.Lock()

    def login(self, username: str, password: str) -> AdminSession:
        user_ok = secrets.compare_digest(
            (username or "").encode(), self.credential.username.encode()
        )
        pass_ok = secrets.compare_digest(
            (password or "").encode(), self.credential.password.encode()
        )
        if not (user_ok and pass_ok):
            logger.warning(f"🔒 Intento de login fallido para '{username}'")
            raise AuthenticationError("Invalid credentials")

        now = self._now()
        session = AdminSession(
            token=secrets.token_urlsafe(32),
            username=self.credential.username,
            created_at=now,
            expires_at=now + self.lifetime,
        )
        with self._lock:
            self._purge_expired(now)
            self._sessions[session.token] = session
        logger.info(f"🔐 Sesión iniciada: {session.username}")
        return session

    def validate(self, token: Optional[str]) -> Optional[AdminSession]:
        if not token:
            return None
        now = self._now()
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.expires_at <= now:
                del self._sessions[token]
                return None
            return session

    def logout(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def _purge_expired(self, now: datetime):
        expired = [t for t, s in self._sessions.items() if s.expires_at <= now]
        for token in expired:
            del self._sessions[token]


_gate: SessionGate | None = None


def get_session_gate() -> SessionGate:
    global _gate
    if _gate is None:
        settings = get_settings()
        _gate = SessionGate(
            load_admin_credential(settings),
            lifetime_seconds=settings.session_lifetime_seconds,
        )
    return _gate


def require_session(
    request: Request, gate: SessionGate = Depends(get_session_gate)
) -> AdminSession:
    """FastAPI dependency guarding every client/notification endpoint."""
    session = gate.validate(request.cookies.get(SESSION_COOKIE_NAME))
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )
    return session
