"""Unit tests for guard helpers that do not need a running app."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from backoffice_api.core.auth import Authorization, PermissionDeniedError
from backoffice_api.core.http import can_manage_users, is_self_service_request
from backoffice_api.core.http.guards import MANAGE_USERS_MESSAGE


def _auth(user_id: int | None) -> Authorization:
    if user_id is None:
        return Authorization(None)
    user = SimpleNamespace(
        id=user_id,
        name="Ana",
        is_active=True,
        customer=None,
        role_assignments=[],
    )
    return Authorization(user)


def _request(method: str, route_name: str, user_id: object) -> SimpleNamespace:
    return SimpleNamespace(
        method=method,
        scope={"route": SimpleNamespace(name=route_name)},
        path_params={"user_id": user_id},
        url=SimpleNamespace(path=f"/api/users/{user_id}"),
    )


def test_self_service_matches_own_show_route() -> None:
    assert is_self_service_request(_request("GET", "users.show", 5), _auth(5)) is True
    assert is_self_service_request(_request("get", "users.show", "5"), _auth(5)) is True


@pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE"])
def test_self_service_never_covers_writes(method: str) -> None:
    assert is_self_service_request(_request(method, "users.show", 5), _auth(5)) is False


def test_self_service_requires_matching_id_and_route() -> None:
    assert is_self_service_request(_request("GET", "users.show", 6), _auth(5)) is False
    assert is_self_service_request(_request("GET", "users.index", 5), _auth(5)) is False
    assert is_self_service_request(_request("GET", "users.show", 5), _auth(None)) is False


@pytest.mark.asyncio
async def test_can_manage_users_lets_self_service_through() -> None:
    await can_manage_users(_request("GET", "users.show", 5), _auth(5))


@pytest.mark.asyncio
async def test_can_manage_users_denies_without_permission() -> None:
    with pytest.raises(PermissionDeniedError) as excinfo:
        await can_manage_users(_request("PATCH", "users.update", 5), _auth(5))

    assert excinfo.value.message == MANAGE_USERS_MESSAGE
