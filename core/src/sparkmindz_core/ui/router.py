from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from sparkmindz_core.auth import LOGIN_PAGE, PROTECTED_PAGE, require_auth
from sparkmindz_core.sessions import Session
from sparkmindz_core.ui.static_files import HTML_CACHE_CONTROL

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["ui"])


def _flash_from_request(request: Request) -> dict[str, Any] | None:
    msg = request.query_params.get("msg")
    if not msg:
        return None
    kind = request.query_params.get("kind") or ""
    return {"message": msg, "kind": kind}


def _render(
    request: Request, name: str, ctx: dict[str, Any], *, status_code: int = 200
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        name,
        ctx,
        status_code=status_code,
        headers={"Cache-Control": HTML_CACHE_CONTROL},
    )


def render_not_found(request: Request) -> HTMLResponse:
    return _render(
        request,
        "not_found.html",
        {"title": "Not found • SparkMindz", "path": request.url.path},
        status_code=404,
    )


@router.get("/", response_class=HTMLResponse)
async def ui_index(request: Request) -> HTMLResponse:
    return _render(request, "index.html", {"title": "SparkMindz", "login_url": LOGIN_PAGE})


@router.get(LOGIN_PAGE, response_class=HTMLResponse)
async def ui_login(request: Request) -> HTMLResponse:
    return _render(
        request,
        "admin.html",
        {
            "title": "Admin login • SparkMindz",
            "flash": _flash_from_request(request),
            "panel_url": PROTECTED_PAGE,
        },
    )


@router.get(PROTECTED_PAGE, response_class=HTMLResponse)
async def ui_admin_panel(
    request: Request, session: Session = Depends(require_auth)  # noqa: B008
) -> HTMLResponse:
    return _render(
        request,
        "admin_panel.html",
        {
            "title": "Admin panel • SparkMindz",
            "signed_in_at": session.created_at,
            "expires_at": session.expires_at,
            "login_url": LOGIN_PAGE,
        },
    )
