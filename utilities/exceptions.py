"""
Exception hierarchy for the book catalog core.

Validation and business-rule errors carry a precise, caller-safe message.
Storage errors carry internal detail that is logged but never returned to
HTTP clients.
"""


class CatalogError(Exception):
    """Base class for all catalog errors."""

    default_message = "Catalog error"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(CatalogError):
    """Missing or malformed input, detected before any storage access."""

    default_message = "Invalid input"


class DuplicateIdentityError(CatalogError):
    """A user with the same email is already registered."""

    default_message = "User already exists"


class AuthFailure(CatalogError):
    """Authentication failed."""

    default_message = "Authentication failed"


class InvalidCredentialsError(AuthFailure):
    """Unknown email or wrong password. The two cases are not distinguished."""

    default_message = "Invalid credentials"


class MissingTokenError(AuthFailure):
    default_message = "Token required"


class InvalidTokenError(AuthFailure):
    """Token is malformed, badly signed or expired."""

    default_message = "Invalid or expired token"


class UnknownIdentityError(InvalidTokenError):
    """Token is valid but its user no longer exists."""

    default_message = "Invalid token"


class NotFoundError(CatalogError):
    default_message = "Book not found"


class ForbiddenError(CatalogError):
    """Authenticated, but not the owner of the record."""

    default_message = "Unauthorized"


class StorageError(CatalogError):
    """Infrastructure failure in the record store."""

    default_message = "Storage error"


class StorageUnavailableError(StorageError):
    default_message = "Storage unavailable"


class StorageCorruptError(StorageError):
    default_message = "Storage content is corrupt"
