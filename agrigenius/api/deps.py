"""API dependencies."""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from agrigenius.core.context import Identity, SessionContext
from agrigenius.services.auth import AuthService
from agrigenius.services.errors import AgriGeniusError, NotAuthenticated
from agrigenius.services.gateway import ProfileGateway
from agrigenius.services.language import LanguageService
from agrigenius.services.registry import ControllerRegistry, get_registry

bearer_scheme = HTTPBearer(auto_error=False)

STATUS_BY_KIND = {
    "not_authenticated": 401,
    "invalid_credentials": 401,
    "permission_denied": 403,
    "not_found": 404,
    "not_configured": 409,
    "auth_failure": 400,
    "invalid_coordinates": 422,
    "malformed_response": 502,
    "network_failure": 502,
    "inference_failure": 502,
    "storage_failure": 500,
    "unsupported_capability": 501,
}


def http_error(exc: AgriGeniusError) -> HTTPException:
    """Map an error kind onto an HTTP status; ``detail`` carries the kind."""
    return HTTPException(status_code=STATUS_BY_KIND.get(exc.kind, 500), detail=exc.kind)


def get_gateway() -> ProfileGateway:
    return ProfileGateway()


def get_auth_service() -> AuthService:
    return AuthService()


def get_language_service(gateway: ProfileGateway = Depends(get_gateway)) -> LanguageService:
    return LanguageService(gateway)


def get_controller_registry() -> ControllerRegistry:
    return get_registry()


def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> Identity:
    if credentials is None:
        raise HTTPException(status_code=401, detail="not_authenticated")
    try:
        return auth.identity_from_token(credentials.credentials)
    except NotAuthenticated as exc:
        raise http_error(exc) from exc


def get_context(
    identity: Identity = Depends(get_identity),
    languages: LanguageService = Depends(get_language_service),
) -> SessionContext:
    return languages.context_for(identity)


__all__ = [
    "bearer_scheme",
    "get_auth_service",
    "get_context",
    "get_controller_registry",
    "get_gateway",
    "get_identity",
    "get_language_service",
    "http_error",
]
