"""HTTP interface for the browser session: login, registration and logout."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Form, Request, Response, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from backoffice_api.api.deps import SessionDep, SettingsDep, get_auth_service
from backoffice_api.core.auth import Authorization
from backoffice_api.core.auth.sessions import (
    consume_flash,
    end_session,
    flash,
    forget_intended,
    read_flash,
    read_intended,
    start_session,
)
from backoffice_api.core.http import OptionalAuthorizationDep, load_identity, require_csrf
from backoffice_api.settings import Settings

from .schemas import LoginForm, RegisterForm, SessionSnapshot, SessionUser
from .service import (
    REGISTERED_MESSAGE,
    AccountLockedError,
    AuthService,
    InactiveUserError,
    InvalidCredentialsError,
    RegistrationError,
)

router = APIRouter(tags=["auth"])

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


# ---- Helpers ----


def _field_errors(exc: ValidationError, *, fallback: str) -> dict[str, str]:
    """First message per form field; model-level errors land on ``fallback``."""

    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        field = str(loc[0]) if loc else fallback
        if field in errors:
            continue
        if loc and error.get("input") is None:
            errors[field] = f"The {field.replace('_', ' ')} field is required."
            continue
        cause = (error.get("ctx") or {}).get("error")
        errors[field] = str(cause) if cause is not None else str(error.get("msg"))
    return errors


def _redirect(path: str) -> RedirectResponse:
    return RedirectResponse(path, status_code=status.HTTP_303_SEE_OTHER)


def _back_to(
    path: str,
    settings: Settings,
    *,
    errors: dict[str, str],
    old: dict[str, str] | None = None,
) -> RedirectResponse:
    response = _redirect(path)
    flash(response, settings, errors=errors, old=old)
    return response


# ---- Routes ----


@router.post(
    "/login",
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Authenticate with email and password",
    response_class=RedirectResponse,
)
async def login(
    request: Request,
    db: SessionDep,
    settings: SettingsDep,
    service: AuthServiceDep,
    email: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
) -> RedirectResponse:
    old = {"email": (email or "").strip()}
    try:
        form = LoginForm.model_validate({"email": email, "password": password})
    except ValidationError as exc:
        return _back_to(
            settings.login_path,
            settings,
            errors=_field_errors(exc, fallback="email"),
            old=old,
        )

    try:
        user = await service.authenticate(email=str(form.email), password=form.password)
    except (InvalidCredentialsError, AccountLockedError) as exc:
        return _back_to(settings.login_path, settings, errors={"email": str(exc)}, old=old)
    except InactiveUserError as exc:
        response = _back_to(settings.login_path, settings, errors={"email": str(exc)}, old=old)
        end_session(response, settings)
        return response

    identity = await load_identity(db, user.id)
    target = service.redirect_target(
        Authorization(identity),
        intended=read_intended(request, settings),
    )
    response = _redirect(target)
    start_session(response, settings, user_id=user.id)
    forget_intended(response, settings)
    return response


@router.post(
    "/register",
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Register a storefront client account",
    response_class=RedirectResponse,
)
async def register(
    settings: SettingsDep,
    service: AuthServiceDep,
    name: Annotated[str | None, Form()] = None,
    email: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
    password_confirmation: Annotated[str | None, Form()] = None,
    terms: Annotated[str | None, Form()] = None,
) -> RedirectResponse:
    old = {"name": (name or "").strip(), "email": (email or "").strip()}
    try:
        form = RegisterForm.model_validate(
            {
                "name": name,
                "email": email,
                "password": password,
                "password_confirmation": password_confirmation,
                "terms": terms,
            }
        )
    except ValidationError as exc:
        return _back_to(
            settings.register_path,
            settings,
            errors=_field_errors(exc, fallback="password"),
            old=old,
        )

    try:
        user = await service.register_client(form)
    except RegistrationError as exc:
        return _back_to(settings.register_path, settings, errors=exc.errors, old=old)

    response = _redirect(settings.dashboard_path)
    start_session(response, settings, user_id=user.id)
    flash(response, settings, success=REGISTERED_MESSAGE)
    return response


@router.post(
    "/logout",
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Terminate the current session",
    response_class=RedirectResponse,
    dependencies=[Depends(require_csrf)],
)
async def logout(settings: SettingsDep) -> RedirectResponse:
    response = _redirect(settings.home_path)
    end_session(response, settings)
    forget_intended(response, settings)
    return response


@router.get(
    "/session",
    response_model=SessionSnapshot,
    status_code=status.HTTP_200_OK,
    summary="Return the current identity, its abilities and pending flash messages",
)
async def read_session_snapshot(
    request: Request,
    response: Response,
    settings: SettingsDep,
    auth: OptionalAuthorizationDep,
) -> SessionSnapshot:
    pending = read_flash(request, settings)
    if request.cookies.get(settings.flash_cookie_name):
        consume_flash(response, settings)

    user = auth.user
    return SessionSnapshot(
        user=SessionUser.model_validate(user) if user is not None else None,
        abilities=auth.abilities(),
        flash=pending,
    )


__all__ = ["router"]
