"""Shared auth/permission error types."""

DEFAULT_DENIED_MESSAGE = "You do not have permission to access this section."


class AuthenticationError(Exception):
    """Raised when a request cannot be authenticated."""


class PermissionDeniedError(Exception):
    """Raised when a guard rejects the current identity.

    ``message`` is the human-readable reason returned to the client.
    """

    def __init__(self, message: str = DEFAULT_DENIED_MESSAGE) -> None:
        self.message = message
        super().__init__(message)


__all__ = ["DEFAULT_DENIED_MESSAGE", "AuthenticationError", "PermissionDeniedError"]
