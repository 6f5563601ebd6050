from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ErrorBody(BaseModel):
    error: str
    details: Any | None = None


class LoginRequest(BaseModel):
    password: str = ""


class SuccessResult(BaseModel):
    success: bool


class AuthStatus(BaseModel):
    authenticated: bool
    timestamp: str


def fail(message: str, *, details: Any | None = None) -> dict[str, Any]:
    return ErrorBody(error=message, details=details).model_dump(mode="json", exclude_none=True)
