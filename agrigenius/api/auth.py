"""Sign-up and sign-in endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from agrigenius.api.deps import STATUS_BY_KIND, get_auth_service, get_language_service
from agrigenius.core.context import Identity
from agrigenius.services.auth import AuthService, login_error_message, validate_login_form
from agrigenius.services.errors import AgriGeniusError
from agrigenius.services.language import LanguageService

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginPayload(BaseModel):
    email: str = ""
    password: str = ""


class SignupPayload(LoginPayload):
    name: str = ""


def _token_response(auth: AuthService, identity: Identity) -> dict[str, Any]:
    return {
        "access_token": auth.issue_token(identity),
        "token_type": "bearer",
        "uid": identity.uid,
        "email": identity.email,
    }


def _login_failure(exc: AgriGeniusError) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_KIND.get(exc.kind, 400),
        detail={"kind": exc.kind, "message": login_error_message(exc)},
    )


@router.post("/signup", status_code=201)
def signup(
    payload: SignupPayload,
    auth: AuthService = Depends(get_auth_service),
    languages: LanguageService = Depends(get_language_service),
) -> dict[str, Any]:
    problem = validate_login_form(payload.email, payload.password, payload.name, register=True)
    if problem:
        raise HTTPException(status_code=422, detail={"kind": "invalid_form", "message": problem})
    try:
        # New profiles start in the language chosen before sign-up.
        identity = auth.sign_up(payload.email, payload.name, payload.password, languages.resolve(None))
    except AgriGeniusError as exc:
        raise _login_failure(exc) from exc
    return _token_response(auth, identity)


@router.post("/login")
def login(payload: LoginPayload, auth: AuthService = Depends(get_auth_service)) -> dict[str, Any]:
    problem = validate_login_form(payload.email, payload.password)
    if problem:
        raise HTTPException(status_code=422, detail={"kind": "invalid_form", "message": problem})
    try:
        identity = auth.sign_in(payload.email, payload.password)
    except AgriGeniusError as exc:
        raise _login_failure(exc) from exc
    return _token_response(auth, identity)


__all__ = ["router"]
