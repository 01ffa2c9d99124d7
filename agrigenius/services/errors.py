"""Error kinds surfaced by gateways and controllers."""

from __future__ import annotations


class AgriGeniusError(Exception):
    """Base class; ``kind`` is the stable, user-facing error category."""

    kind = "error"


class NotAuthenticated(AgriGeniusError):
    kind = "not_authenticated"


class NotConfigured(AgriGeniusError):
    """A required endpoint or farm location is missing."""

    kind = "not_configured"


class NotFound(AgriGeniusError):
    kind = "not_found"


class MalformedResponse(AgriGeniusError):
    kind = "malformed_response"


class NetworkFailure(AgriGeniusError):
    kind = "network_failure"

    def __init__(self, message: str, cors_hint: bool = False) -> None:
        super().__init__(message)
        self.cors_hint = cors_hint


class InvalidCredentials(AgriGeniusError):
    kind = "invalid_credentials"

    def __init__(self, message: str = "auth/invalid-credential") -> None:
        super().__init__(message)


class AuthFailure(AgriGeniusError):
    kind = "auth_failure"


class PermissionDenied(AgriGeniusError):
    kind = "permission_denied"


class StorageFailure(AgriGeniusError):
    kind = "storage_failure"


class InvalidCoordinates(AgriGeniusError):
    kind = "invalid_coordinates"


class UnsupportedCapability(AgriGeniusError):
    kind = "unsupported_capability"


class InferenceFailure(AgriGeniusError):
    kind = "inference_failure"


__all__ = [
    "AgriGeniusError",
    "AuthFailure",
    "InferenceFailure",
    "InvalidCoordinates",
    "InvalidCredentials",
    "MalformedResponse",
    "NetworkFailure",
    "NotAuthenticated",
    "NotConfigured",
    "NotFound",
    "PermissionDenied",
    "StorageFailure",
    "UnsupportedCapability",
]
