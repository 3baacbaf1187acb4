"""
shiptrack.errors

Service-level error taxonomy.

Responsibilities:
- Give every operation failure a distinct, human-readable type.
- Carry the HTTP status the API layer renders for each kind.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    code = "SERVICE_ERROR"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "error": self.code}


class AuthenticationRequired(ServiceError):
    code = "AUTHENTICATION_REQUIRED"
    status_code = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class AuthorizationDenied(ServiceError):
    code = "AUTHORIZATION_DENIED"
    status_code = 403

    def __init__(self, message: str = "Admin access required") -> None:
        super().__init__(message)


class NotFound(ServiceError):
    code = "NOT_FOUND"
    status_code = 404


class Conflict(ServiceError):
    code = "CONFLICT"
    status_code = 409


class ValidationFailed(ServiceError):
    code = "VALIDATION_FAILED"
    status_code = 422


class InternalError(ServiceError):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = "Internal error") -> None:
        super().__init__(message)


# Login failures: the only two externally distinguishable kinds.
class IdentifierNotFound(ServiceError):
    code = "IDENTIFIER_NOT_FOUND"
    status_code = 401


class CredentialIncorrect(ServiceError):
    code = "CREDENTIAL_INCORRECT"
    status_code = 401


# --- Module Notes -----------------------------------------------------------
# Services raise these; `api.errors` maps them onto JSON responses.
