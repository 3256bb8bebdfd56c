"""Error kinds raised by services and mapped to HTTP statuses at the boundary."""

from typing import Optional


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnauthorizedError(StorefrontError):
    """Raised when the request carries no valid identity."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(StorefrontError):
    """Raised when the identity lacks the role an operation needs."""

    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class ValidationError(StorefrontError):
    """Raised when input or current state rejects the operation."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class NotFoundError(StorefrontError):
    """Raised when a resource does not exist or is not visible to the caller."""

    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ConflictError(StorefrontError):
    """Raised when a write collides with existing data."""

    status_code = 409


class InternalError(StorefrontError):
    """Raised when an operation failed for reasons the caller cannot fix."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


class DatabaseNotConfiguredError(InternalError):
    """Raised when a store handle is requested but its URL was never set."""

    def __init__(self, store: str):
        self.store = store
        super().__init__(f"Database '{store}' is not configured")
