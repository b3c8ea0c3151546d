"""Form and response contracts for the session bootstrap endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import EmailStr, Field, field_validator, model_validator

from backoffice_api.common.schema import BaseSchema

_ACCEPTED = {"1", "on", "yes", "true", "accepted"}


class LoginForm(BaseSchema):
    """Credentials posted by the login page."""

    email: EmailStr = Field(..., description="User email address.")
    password: str = Field(..., min_length=1, description="User password.")


class RegisterForm(BaseSchema):
    """Self-registration payload for storefront clients."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr = Field(..., max_length=320)
    password: str = Field(..., min_length=1)
    password_confirmation: str = Field(..., min_length=1)
    terms: bool = Field(..., description="Terms and conditions accepted.")

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("terms", mode="before")
    @classmethod
    def _coerce_terms(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        return str(value or "").strip().lower() in _ACCEPTED

    @field_validator("terms")
    @classmethod
    def _require_terms(cls, value: bool) -> bool:
        if not value:
            raise ValueError("You must accept the terms and conditions.")
        return value

    @model_validator(mode="after")
    def _passwords_match(self) -> RegisterForm:
        if self.password != self.password_confirmation:
            raise ValueError("The password confirmation does not match.")
        return self


class SessionUser(BaseSchema):
    id: int
    name: str
    email: str
    is_active: bool


class SessionSnapshot(BaseSchema):
    """Current identity, its abilities and any pending flash messages."""

    user: SessionUser | None = None
    abilities: dict[str, Any]
    flash: dict[str, Any] = Field(default_factory=lambda: {"errors": {}})


__all__ = ["LoginForm", "RegisterForm", "SessionSnapshot", "SessionUser"]
