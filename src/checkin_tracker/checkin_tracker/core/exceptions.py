class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when the target of an operation does not exist."""


class StoreError(DomainError):
    """Raised when a record store call fails."""

    def __init__(self, message: str, *, table: str | None = None):
        super().__init__(message)
        self.table = table


class AuthenticationError(DomainError):
    """Raised when a PIN cannot be verified."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
