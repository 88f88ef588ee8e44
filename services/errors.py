"""
Service Errors
Version: 1.0

Error taxonomy shared by every service. The API layer maps each class to
an HTTP status and the JSON envelope.
NO DEPENDENCIES on other services.
"""

from typing import Dict, List, Optional


class ServiceError(Exception):
    """Base error for service-layer failures."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class ValidationError(ServiceError):
    """Malformed, missing or out-of-range input."""

    status_code = 422

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls("Validation error", {field: [message]})


class AuthenticationError(ServiceError):
    """Missing or unknown bearer token."""

    status_code = 401


class AuthorizationError(ServiceError):
    """Role or ownership mismatch."""

    status_code = 403

    def __init__(self, message: str = "Unauthorized", errors=None):
        super().__init__(message, errors)


class NotFoundError(ServiceError):
    """Raised when an entity is not found."""

    status_code = 404

    @classmethod
    def for_entity(cls, entity: str, entity_id) -> "NotFoundError":
        return cls(f"{entity} {entity_id} not found")


class ConflictError(ServiceError):
    """Booking overlap, non-cancellable state, duplicate license plate."""

    status_code = 422
