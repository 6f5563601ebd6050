from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from sparkmindz_core.api.models import AuthStatus, LoginRequest, SuccessResult, fail
from sparkmindz_core.auth import get_session_gate, require_auth
from sparkmindz_core.sessions import SessionStoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


def _iso_timestamp(moment: datetime) -> str:
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@router.post(
    "/login",
    response_model=SuccessResult,
    responses={401: {"description": "Invalid credentials"}},
)
async def login(request: Request, payload: LoginRequest) -> SuccessResult | JSONResponse:
    gate = get_session_gate(request)
    if not gate.login(request, payload.password):
        return JSONResponse(status_code=401, content=fail("Invalid credentials"))
    return SuccessResult(success=True)


@router.get("/check-auth", response_model=AuthStatus)
async def check_auth(request: Request) -> AuthStatus:
    gate = get_session_gate(request)
    return AuthStatus(
        authenticated=gate.check_auth(request),
        timestamp=_iso_timestamp(gate.now()),
    )


@router.post(
    "/logout",
    response_model=SuccessResult,
    responses={500: {"description": "Failed to log out"}},
)
async def logout(request: Request) -> SuccessResult | JSONResponse:
    gate = get_session_gate(request)
    try:
        gate.logout(request)
    except SessionStoreError:
        logger.exception("Error destroying session")
        return JSONResponse(status_code=500, content=fail("Failed to log out"))
    return SuccessResult(success=True)


@router.get("/admin/ping", dependencies=[Depends(require_auth)])
async def admin_ping() -> dict[str, bool]:
    return {"pong": True}
