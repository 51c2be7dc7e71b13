"""Error handling framework for the prenatal chat backend.

Every error that can leave a request handler is a DomainError subclass
carrying its HTTP status and public error text:
- 400: ValidationError, GatewayBadRequestError
- 404: NotFoundError
- 409: ConflictError, AlreadyFavoritedError
- 503: GatewayUnavailableError, GatewayTimeoutError, StoreUnavailableError
- 500: GatewayError and anything unexpected
"""

from prenatal_chat.errors.domain import (
    AlreadyFavoritedError,
    ConflictError,
    DomainError,
    GatewayBadRequestError,
    GatewayError,
    GatewayTimeoutError,
    GatewayUnavailableError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "AlreadyFavoritedError",
    "StoreUnavailableError",
    # Gateway
    "GatewayError",
    "GatewayUnavailableError",
    "GatewayTimeoutError",
    "GatewayBadRequestError",
]
