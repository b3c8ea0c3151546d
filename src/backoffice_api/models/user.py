"""Canonical user model shared across auth and RBAC."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from backoffice_api.db import Base, IntPrimaryKeyMixin, TimestampMixin, UTCDateTime

if TYPE_CHECKING:
    from .commerce import Customer
    from .rbac import UserRoleAssignment


def _normalise_email(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        msg = "Email must not be empty"
        raise ValueError(msg)
    return cleaned


def _clean_name(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        msg = "Name must not be empty"
        raise ValueError(msg)
    return cleaned[:255]


class User(IntPrimaryKeyMixin, TimestampMixin, Base):
    """Back-office identity: staff members and storefront clients alike."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), nullable=False)
    email_canonical: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    failed_login_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    locked_until: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    role_assignments: Mapped[list[UserRoleAssignment]] = relationship(
        "UserRoleAssignment",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserRoleAssignment.id",
    )
    customer: Mapped[Customer | None] = relationship(
        "Customer",
        back_populates="user",
        uselist=False,
    )

    @validates("email")
    def _store_normalised_email(self, _key: str, value: str) -> str:
        cleaned = _normalise_email(value)
        self.email_canonical = cleaned.lower()
        return cleaned

    @validates("name")
    def _trim_name(self, _key: str, value: str) -> str:
        return _clean_name(value)

    @property
    def label(self) -> str:
        return self.name or self.email


__all__ = ["User"]
