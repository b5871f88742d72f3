# billing_panel/api/auth/main.py
"""
Login / logout for the single admin session.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel

from ...core.config import get_settings
from ...core.constants import SESSION_COOKIE_NAME
from ...core.exceptions import AuthenticationError
from ...core.limiter import limiter
from ...core.session import AdminSession, SessionGate, get_session_gate, require_session

router = APIRouter()


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class OkResponse(BaseModel):
    ok: bool = True


@router.post("/login", response_model=OkResponse, tags=["Auth & Pages"])
@limiter.limit(get_settings().rate_limit_login)
def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    gate: SessionGate = Depends(get_session_gate),
):
    try:
        session = gate.login(credentials.username, credentials.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    settings = get_settings()
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session.token,
        max_age=settings.session_lifetime_seconds,
        httponly=True,
        secure=settings.app_env == "production",
        samesite="lax",
    )
    return OkResponse()


@router.post("/logout", response_model=OkResponse, tags=["Auth & Pages"])
def logout(
    request: Request,
    response: Response,
    gate: SessionGate = Depends(get_session_gate),
    current_session: AdminSession = Depends(require_session),
):
    gate.logout(current_session.token)
    response.delete_cookie(SESSION_COOKIE_NAME)
    return OkResponse()
