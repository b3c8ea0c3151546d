"""Auth contracts and helpers shared across the API surface."""

from .errors import AuthenticationError, PermissionDeniedError
from .facade import Authorization

__all__ = [
    "Authorization",
    "AuthenticationError",
    "PermissionDeniedError",
]
