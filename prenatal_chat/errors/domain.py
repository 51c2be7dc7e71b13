"""Typed domain exceptions for API error mapping.

Each exception carries the HTTP status and the public ``error`` text it
maps to, so the app-level exception handlers can turn any of them into a
``{"error": ..., "message": ...}`` body without string matching.

Usage:
    # In service layer
    raise NotFoundError("Conversation", conversation_id)

    # In the app (prenatal_chat.api.main)
    @app.exception_handler(DomainError)
    async def domain_error_handler(request, exc): ...
"""

from typing import Any


class DomainError(Exception):
    """Base exception for all domain errors. Maps to HTTP 500."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict[str, Any]:
        """Public JSON body for this error."""
        return {"error": self.error, "message": self.message}


class ValidationError(DomainError):
    """Missing or malformed request field. Maps to HTTP 400."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.error = message

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error}


class NotFoundError(DomainError):
    """Resource was not found (or is not owned by the caller). Maps to HTTP 404."""

    status_code = 404

    def __init__(self, resource_type: str, identifier: str) -> None:
        super().__init__(f"{resource_type} '{identifier}' not found")
        self.resource_type = resource_type
        self.identifier = identifier
        self.error = f"{resource_type} not found"


class ConflictError(DomainError):
    """Resource conflict (e.g., duplicate favorite). Maps to HTTP 409."""

    status_code = 409

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.error = message

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error}


class AlreadyFavoritedError(ConflictError):
    """Message is already in the user's favorites. Maps to HTTP 409."""

    def __init__(self, user_id: str, message_id: str) -> None:
        super().__init__("Message already favorited")
        self.user_id = user_id
        self.message_id = message_id


class StoreUnavailableError(DomainError):
    """Persistence store cannot be reached. Maps to HTTP 503."""

    status_code = 503
    error = "Database service unavailable"


class GatewayError(DomainError):
    """Unexpected failure talking to the AI service. Maps to HTTP 500."""


class GatewayUnavailableError(GatewayError):
    """AI service is unreachable. Maps to HTTP 503."""

    status_code = 503
    error = "AI service temporarily unavailable"


class GatewayTimeoutError(GatewayError):
    """AI service did not answer within the timeout. Maps to HTTP 503."""

    status_code = 503
    error = "AI service timed out"


class GatewayBadRequestError(GatewayError):
    """AI service rejected the payload as malformed (422). Maps to HTTP 400."""

    status_code = 400
    error = "Invalid request format"

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.details = details

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message, "details": self.details}
