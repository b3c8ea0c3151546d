"""Unit tests for login/registration form handling and post-login routing."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from backoffice_api.core.auth import Authorization
from backoffice_api.core.rbac.registry import SYSTEM_ROLE_BY_SLUG
from backoffice_api.features.auth.schemas import RegisterForm
from backoffice_api.features.auth.service import AuthService
from backoffice_api.settings import Settings


def _form(**overrides) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": "  Ana Perez ",
        "email": "Ana@Example.com",
        "password": "long-enough-pw",
        "password_confirmation": "long-enough-pw",
        "terms": "on",
    }
    payload.update(overrides)
    return payload


def test_register_form_normalises_input() -> None:
    form = RegisterForm.model_validate(_form())

    assert form.name == "Ana Perez"
    assert str(form.email) == "ana@example.com"
    assert form.terms is True


@pytest.mark.parametrize("terms", [None, "", "no", "0"])
def test_register_form_requires_terms(terms: object) -> None:
    with pytest.raises(ValidationError):
        RegisterForm.model_validate(_form(terms=terms))


def test_register_form_requires_matching_passwords() -> None:
    with pytest.raises(ValidationError) as excinfo:
        RegisterForm.model_validate(_form(password_confirmation="something-else"))

    assert "password confirmation does not match" in str(excinfo.value)


def _auth(*slugs: str) -> Authorization:
    roles = []
    for slug in slugs:
        definition = SYSTEM_ROLE_BY_SLUG[slug]
        roles.append(
            SimpleNamespace(
                role=SimpleNamespace(
                    slug=slug,
                    is_administrative=definition.administrative,
                    is_management=definition.management,
                    permissions=[
                        SimpleNamespace(permission=SimpleNamespace(key=key))
                        for key in definition.permissions
                    ],
                )
            )
        )
    user = SimpleNamespace(id=1, name="Ana", is_active=True, customer=None, role_assignments=roles)
    return Authorization(user)


@pytest.fixture()
def service() -> AuthService:
    settings = Settings(
        _env_file=None,
        home_path="/",
        dashboard_path="/dashboard",
        secret_key="unit-test-secret-that-is-long-enough-1234",
    )
    return AuthService(session=None, settings=settings)  # type: ignore[arg-type]


def test_redirect_prefers_intended_path(service: AuthService) -> None:
    assert service.redirect_target(_auth("client"), intended="/cart") == "/cart"


def test_redirect_staff_to_dashboard(service: AuthService) -> None:
    assert service.redirect_target(_auth("employee"), intended=None) == "/dashboard"
    assert service.redirect_target(_auth("admin"), intended=None) == "/dashboard"


def test_redirect_clients_home(service: AuthService) -> None:
    assert service.redirect_target(_auth("client"), intended=None) == "/"


def test_redirect_roleless_user_to_dashboard(service: AuthService) -> None:
    assert service.redirect_target(_auth(), intended=None) == "/dashboard"
