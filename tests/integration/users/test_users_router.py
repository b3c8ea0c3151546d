"""User administration routes and their guards."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from backoffice_api.core.http.guards import ADMIN_ONLY_MESSAGE, MANAGE_USERS_MESSAGE
from backoffice_api.features.users.service import UsersService
from tests.utils import csrf_headers, error_code, login

pytestmark = pytest.mark.asyncio


async def test_admin_lists_users(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin", name="Zoe Admin")
    other = await make_user("employee", name="Ana Employee")
    await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.get("/api/users", params={"sort": "name"})

    assert response.status_code == 200, response.text
    payload = response.json()
    emails = [item["email"] for item in payload["items"]]
    assert emails == [other.email, admin.email]
    assert payload["total"] == 2
    assert payload["items"][1]["primary_role"] == "admin"


async def test_list_users_filters_by_query(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    await make_user("employee", name="Marco Polo")
    await make_user("employee", name="Julia Child")
    await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.get("/api/users", params={"q": "marco"})

    assert response.status_code == 200
    assert [item["name"] for item in response.json()["items"]] == ["Marco Polo"]


async def test_staff_without_user_permissions_is_denied(async_client: AsyncClient, make_user) -> None:
    employee = await make_user("employee")
    await login(async_client, email=employee.email, password=employee.password)

    response = await async_client.get("/api/users")

    assert response.status_code == 403
    assert response.json()["detail"] == {"error": "forbidden", "message": MANAGE_USERS_MESSAGE}


async def test_self_service_read_is_allowed(async_client: AsyncClient, make_user) -> None:
    employee = await make_user("employee")
    await login(async_client, email=employee.email, password=employee.password)

    response = await async_client.get(f"/api/users/{employee.id}")

    assert response.status_code == 200
    assert response.json()["email"] == employee.email


async def test_self_service_does_not_cover_other_users(async_client: AsyncClient, make_user) -> None:
    employee = await make_user("employee")
    other = await make_user("employee")
    await login(async_client, email=employee.email, password=employee.password)

    response = await async_client.get(f"/api/users/{other.id}")

    assert response.status_code == 403


@pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE"])
async def test_self_service_does_not_cover_writes(
    async_client: AsyncClient,
    make_user,
    method: str,
) -> None:
    employee = await make_user("employee")
    token = await login(async_client, email=employee.email, password=employee.password)

    response = await async_client.request(
        method,
        f"/api/users/{employee.id}",
        headers=csrf_headers(token),
        json={"name": "New Name"} if method != "DELETE" else None,
    )

    assert response.status_code == 403
    assert error_code(response) == "forbidden"


async def test_writes_require_csrf_header(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.post(
        "/api/users",
        json={"name": "No Token", "email": "no-token@example.com", "password": "long-password"},
    )

    assert response.status_code == 403
    assert error_code(response) == "csrf_failed"


async def test_admin_creates_and_updates_user(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    token = await login(async_client, email=admin.email, password=admin.password)

    created = await async_client.post(
        "/api/users",
        headers=csrf_headers(token),
        json={
            "name": "Nuevo Usuario",
            "email": "Nuevo@Example.com",
            "password": "long-password",
            "phone": "555-0100",
            "gender": "female",
        },
    )
    assert created.status_code == 201, created.text
    user = created.json()
    assert user["roles"] == []
    assert user["is_active"] is True

    updated = await async_client.patch(
        f"/api/users/{user['id']}",
        headers=csrf_headers(token),
        json={"name": "Renamed User", "is_active": False},
    )
    assert updated.status_code == 200, updated.text
    assert updated.json()["name"] == "Renamed User"
    assert updated.json()["is_active"] is False


async def test_duplicate_email_conflicts(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    existing = await make_user("employee")
    token = await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.post(
        "/api/users",
        headers=csrf_headers(token),
        json={"name": "Copy", "email": existing.email.upper(), "password": "long-password"},
    )

    assert response.status_code == 409
    assert error_code(response) == "email_in_use"


async def test_short_password_is_rejected(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    token = await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.post(
        "/api/users",
        headers=csrf_headers(token),
        json={"name": "Short", "email": "short@example.com", "password": "abc"},
    )

    assert response.status_code == 422
    assert error_code(response) == "password_too_short"


async def test_admin_cannot_delete_or_deactivate_self(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    token = await login(async_client, email=admin.email, password=admin.password)

    deleted = await async_client.delete(f"/api/users/{admin.id}", headers=csrf_headers(token))
    assert deleted.status_code == 409
    assert error_code(deleted) == "self_delete"

    toggled = await async_client.patch(
        f"/api/users/{admin.id}/toggle-status",
        headers=csrf_headers(token),
    )
    assert toggled.status_code == 409
    assert error_code(toggled) == "self_deactivate"


async def test_toggle_and_delete_other_user(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    target = await make_user("client")
    token = await login(async_client, email=admin.email, password=admin.password)

    toggled = await async_client.patch(
        f"/api/users/{target.id}/toggle-status",
        headers=csrf_headers(token),
    )
    assert toggled.status_code == 200
    assert toggled.json()["is_active"] is False

    deleted = await async_client.delete(f"/api/users/{target.id}", headers=csrf_headers(token))
    assert deleted.status_code == 204

    missing = await async_client.get(f"/api/users/{target.id}")
    assert missing.status_code == 404
    assert error_code(missing) == "user_not_found"


async def test_deactivated_user_is_refused_at_next_login(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    target = await make_user("employee")
    token = await login(async_client, email=admin.email, password=admin.password)
    await async_client.patch(f"/api/users/{target.id}/toggle-status", headers=csrf_headers(token))

    async_client.cookies.clear()
    response = await async_client.post(
        "/api/auth/login",
        data={"email": target.email, "password": target.password},
    )

    assert response.headers["location"] == "/login"
    assert not async_client.cookies.get("backoffice_session")


async def test_admin_assigns_roles(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    target = await make_user("employee")
    token = await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.put(
        f"/api/users/{target.id}/roles",
        headers=csrf_headers(token),
        json={"roles": ["Organizer", "client"]},
    )

    assert response.status_code == 200, response.text
    payload = response.json()
    assert sorted(payload["roles"]) == ["client", "organizer"]
    assert payload["customer_nit"] == f"AUTO-{target.id}"


async def test_admin_cannot_grant_super_admin(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    target = await make_user("employee")
    token = await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.put(
        f"/api/users/{target.id}/roles",
        headers=csrf_headers(token),
        json={"roles": ["super-admin"]},
    )

    assert response.status_code == 403
    assert error_code(response) == "forbidden"


async def test_admin_cannot_edit_higher_ranked_user(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    boss = await make_user("super-admin")
    token = await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.put(
        f"/api/users/{boss.id}/roles",
        headers=csrf_headers(token),
        json={"roles": ["client"]},
    )

    assert response.status_code == 403


async def test_super_admin_grants_admin(async_client: AsyncClient, make_user) -> None:
    boss = await make_user("super-admin")
    target = await make_user("employee")
    token = await login(async_client, email=boss.email, password=boss.password)

    response = await async_client.put(
        f"/api/users/{target.id}/roles",
        headers=csrf_headers(token),
        json={"roles": ["admin"]},
    )

    assert response.status_code == 200
    assert response.json()["primary_role"] == "admin"


async def test_unknown_role_is_rejected(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    target = await make_user("employee")
    token = await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.put(
        f"/api/users/{target.id}/roles",
        headers=csrf_headers(token),
        json={"roles": ["astronaut"]},
    )

    assert response.status_code == 422
    assert error_code(response) == "unknown_role"


async def test_role_assignment_is_admin_only(async_client: AsyncClient, make_user) -> None:
    employee = await make_user("employee")
    token = await login(async_client, email=employee.email, password=employee.password)

    response = await async_client.put(
        f"/api/users/{employee.id}/roles",
        headers=csrf_headers(token),
        json={"roles": ["admin"]},
    )

    assert response.status_code == 403
    assert response.json()["detail"]["message"] in {ADMIN_ONLY_MESSAGE, MANAGE_USERS_MESSAGE}


async def test_email_conflict_at_insert_is_reported(
    async_client: AsyncClient,
    make_user,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    admin = await make_user("admin")
    existing = await make_user("employee")
    token = await login(async_client, email=admin.email, password=admin.password)

    async def _missed_lookup(self, email: str) -> None:
        return None

    monkeypatch.setattr(UsersService, "_ensure_email_available", _missed_lookup)

    response = await async_client.post(
        "/api/users",
        headers=csrf_headers(token),
        json={"name": "Copy", "email": existing.email, "password": "long-password"},
    )

    assert response.status_code == 409
    assert error_code(response) == "email_in_use"
