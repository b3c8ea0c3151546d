"""RBAC type definitions used across the stack."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PermissionDef:
    """Static permission definition."""

    key: str
    resource: str
    action: str
    category: str
    label: str
    description: str


@dataclass(frozen=True)
class RoleDef:
    """Static system role definition seeded at startup."""

    slug: str
    name: str
    description: str
    administrative: bool
    management: bool
    level: int
    color: str
    permissions: tuple[str, ...]
    assignable: tuple[str, ...] = ()
    is_system: bool = True
    is_editable: bool = False


__all__ = ["PermissionDef", "RoleDef"]
