"""Password login, lockout bookkeeping and client self-registration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice_api.common.logging import log_context
from backoffice_api.core.auth import Authorization
from backoffice_api.core.rbac.registry import Permissions, Roles
from backoffice_api.core.security import hash_password, verify_password
from backoffice_api.features.rbac import RbacService
from backoffice_api.features.rbac.legacy import ensure_customer
from backoffice_api.models import User
from backoffice_api.settings import Settings

from .schemas import RegisterForm

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "These credentials do not match our records."
INACTIVE_ACCOUNT_MESSAGE = "Your account is inactive. Contact the administrator."
LOCKED_ACCOUNT_MESSAGE = "Too many login attempts. Please try again later."
REGISTERED_MESSAGE = "Registration successful. Welcome!"
EMAIL_TAKEN_MESSAGE = "The email has already been taken."


class InvalidCredentialsError(RuntimeError):
    """Raised when the email/password pair does not match a user."""


class InactiveUserError(RuntimeError):
    """Raised when a deactivated user presents valid credentials."""


class AccountLockedError(RuntimeError):
    """Raised while a user is locked out after repeated failures."""


class RegistrationError(ValueError):
    """Raised with field-scoped messages when registration is refused."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("; ".join(errors.values()))
        self.errors = errors


@dataclass(slots=True)
class AuthService:
    """Credential checks and account bootstrap for the browser session."""

    session: AsyncSession
    settings: Settings

    async def _user_by_email(self, email: str) -> User | None:
        result = await self.session.execute(
            select(User).where(User.email_canonical == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def authenticate(self, *, email: str, password: str) -> User:
        """Return the user for valid credentials or raise.

        Credentials are verified before the active flag so that the inactive
        message is never shown to someone who does not know the password.
        """

        now = datetime.now(tz=UTC)
        user = await self._user_by_email(email)

        if user is not None and user.locked_until is not None and user.locked_until > now:
            logger.warning("auth.login.locked", extra=log_context(user_id=user.id))
            raise AccountLockedError(LOCKED_ACCOUNT_MESSAGE)

        if user is None or not verify_password(password, user.password_hash):
            if user is not None:
                await self._record_failure(user, now=now)
            logger.info("auth.login.failed", extra=log_context(email=email.strip().lower()))
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        if not user.is_active:
            logger.info("auth.login.inactive", extra=log_context(user_id=user.id))
            raise InactiveUserError(INACTIVE_ACCOUNT_MESSAGE)

        user.failed_login_count = 0
        user.locked_until = None
        user.last_login_at = now
        await self.session.flush()
        logger.info("auth.login.success", extra=log_context(user_id=user.id))
        return user

    async def _record_failure(self, user: User, *, now: datetime) -> None:
        user.failed_login_count = (user.failed_login_count or 0) + 1
        if user.failed_login_count >= self.settings.failed_login_lock_threshold:
            user.locked_until = now + self.settings.failed_login_lock_duration
            user.failed_login_count = 0
            logger.warning(
                "auth.login.lockout",
                extra=log_context(user_id=user.id, locked_until=user.locked_until.isoformat()),
            )
        await self.session.flush()

    async def register_client(self, form: RegisterForm) -> User:
        """Create an active client: one user, the client role, one customer."""

        errors: dict[str, str] = {}
        if len(form.password) < self.settings.password_min_length:
            errors["password"] = (
                f"The password must be at least {self.settings.password_min_length} characters."
            )
        if await self._user_by_email(str(form.email)) is not None:
            errors["email"] = EMAIL_TAKEN_MESSAGE
        if errors:
            raise RegistrationError(errors)

        logger.info("auth.register.start", extra=log_context(email=str(form.email)))
        user = User(
            name=form.name,
            email=str(form.email),
            password_hash=hash_password(form.password),
            is_active=True,
            failed_login_count=0,
        )
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # A concurrent registration claimed the address after the lookup.
            await self.session.rollback()
            logger.info("auth.register.conflict", extra=log_context(email=str(form.email)))
            raise RegistrationError({"email": EMAIL_TAKEN_MESSAGE}) from exc

        rbac = RbacService(session=self.session)
        await rbac.assign_role_by_slug(user=user, slug=Roles.CLIENT.value)
        await ensure_customer(self.session, user)

        logger.info("auth.register.success", extra=log_context(user_id=user.id))
        return user

    def redirect_target(self, auth: Authorization, *, intended: str | None) -> str:
        """Pick where a freshly authenticated user lands."""

        if intended:
            return intended
        if (
            auth.has_permission(Permissions.DASHBOARD_ACCESS)
            or auth.is_admin()
            or auth.is_management()
        ):
            return self.settings.dashboard_path
        if auth.is_client():
            return self.settings.home_path
        return self.settings.dashboard_path


__all__ = [
    "EMAIL_TAKEN_MESSAGE",
    "INACTIVE_ACCOUNT_MESSAGE",
    "INVALID_CREDENTIALS_MESSAGE",
    "LOCKED_ACCOUNT_MESSAGE",
    "REGISTERED_MESSAGE",
    "AccountLockedError",
    "AuthService",
    "InactiveUserError",
    "InvalidCredentialsError",
    "RegistrationError",
]
