class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConflictError(ValidationError):
    """Raised when an operation would duplicate live data (e.g. payroll for a period)."""


class NotFoundError(DomainError):
    """Raised when a row does not exist or is not in the state an operation requires."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid or no session is present."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
