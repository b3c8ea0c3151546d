"""RBAC persistence: catalog sync, custom roles and user assignments."""

from .service import (
    PermissionNotFoundError,
    RbacService,
    RoleConflictError,
    RoleError,
    RoleImmutableError,
    RoleNotFoundError,
    RoleValidationError,
    UnknownPermissionError,
)

__all__ = [
    "PermissionNotFoundError",
    "RbacService",
    "RoleConflictError",
    "RoleError",
    "RoleImmutableError",
    "RoleNotFoundError",
    "RoleValidationError",
    "UnknownPermissionError",
]
