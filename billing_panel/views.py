from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from .core.constants import SESSION_COOKIE_NAME
from .core.session import AdminSession, SessionGate, get_session_gate, require_session
from .core.templates import templates

router = APIRouter()


# --- Auth Routes (Web UI) ---

@router.get("/login", response_class=HTMLResponse, tags=["Auth & Pages"])
async def read_login_form(request: Request):
    """Login page"""
    return templates.TemplateResponse(request, "login.html", {})


# --- Page Routes ---

@router.get("/", tags=["Auth & Pages"], include_in_schema=False)
async def read_root(request: Request, gate: SessionGate = Depends(get_session_gate)):
    if gate.validate(request.cookies.get(SESSION_COOKIE_NAME)):
        return RedirectResponse(url="/dashboard", status_code=status.HTTP_303_SEE_OTHER)
    return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/dashboard", response_class=HTMLResponse, tags=["Auth & Pages"])
async def read_dashboard(
    request: Request, current_session: AdminSession = Depends(require_session)
):
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {"active_page": "dashboard", "user": current_session.username},
    )
