"""Folding the legacy role/permission tables into the RBAC store."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from sqlalchemy import func, select, text

from backoffice_api.db import session_scope
from backoffice_api.features.rbac.legacy import (
    LegacyRbacImporter,
    LegacySnapshot,
    load_snapshot_from_file,
    load_snapshot_from_tables,
)
from backoffice_api.features.rbac.service import RbacService
from backoffice_api.models import Customer, Role, UserRoleAssignment
from backoffice_api.settings import Settings

pytestmark = pytest.mark.asyncio


async def _role_slugs(settings: Settings, user_id: int) -> list[str]:
    async with session_scope(settings) as session:
        result = await session.execute(
            select(Role.slug)
            .join(UserRoleAssignment, UserRoleAssignment.role_id == Role.id)
            .where(UserRoleAssignment.user_id == user_id)
            .order_by(Role.slug)
        )
        return list(result.scalars().all())


async def test_import_creates_custom_roles_and_assignments(settings: Settings, make_user) -> None:
    clerk = await make_user(email="clerk@example.com")
    shopper = await make_user(email="shopper@example.com")
    snapshot = LegacySnapshot(
        roles={
            "bodeguero": ["ver_inventario", "crear-ajustes-inventario", "volar"],
            "Administrador": ["ver-usuarios"],
        },
        assignments={
            "clerk@example.com": ["bodeguero"],
            "ghost@example.com": ["empleado"],
        },
        role_columns={"shopper@example.com": "cliente"},
    )

    async with session_scope(settings) as session:
        report = await LegacyRbacImporter(session).import_snapshot(snapshot)

    assert report.roles_created == 1
    assert report.assignments_created == 2
    assert report.customers_created == 1
    assert report.unknown_permissions == {"volar"}
    assert report.unknown_users == {"ghost@example.com"}

    async with session_scope(settings) as session:
        role = await RbacService(session=session).get_role_by_slug(slug="bodeguero")
        assert role is not None
        assert role.is_system is False
        assert role.permission_keys == ["inventory.adjust", "inventory.view"]
        nit = (
            await session.execute(select(Customer.nit).where(Customer.user_id == shopper.id))
        ).scalar_one()
        assert nit == f"AUTO-{shopper.id}"

    assert await _role_slugs(settings, clerk.id) == ["bodeguero"]
    assert await _role_slugs(settings, shopper.id) == ["client"]


async def test_import_is_idempotent(settings: Settings, make_user) -> None:
    await make_user(email="clerk@example.com")
    snapshot = LegacySnapshot(
        roles={"bodeguero": ["ver_inventario"]},
        assignments={"clerk@example.com": ["bodeguero", "empleado"]},
    )

    async with session_scope(settings) as session:
        first = await LegacyRbacImporter(session).import_snapshot(snapshot)
    async with session_scope(settings) as session:
        second = await LegacyRbacImporter(session).import_snapshot(snapshot)

    assert first.assignments_created == 2
    assert second.roles_created == 0
    assert second.roles_updated == 0
    assert second.assignments_created == 0


async def test_unknown_legacy_role_is_reported(settings: Settings, make_user) -> None:
    user = await make_user(email="clerk@example.com")
    snapshot = LegacySnapshot(assignments={"clerk@example.com": ["astronauta"]})

    async with session_scope(settings) as session:
        report = await LegacyRbacImporter(session).import_snapshot(snapshot)

    assert report.unknown_roles == {"astronauta"}
    assert await _role_slugs(settings, user.id) == []


async def test_dry_run_leaves_store_untouched(settings: Settings, make_user) -> None:
    user = await make_user(email="clerk@example.com")
    snapshot = LegacySnapshot(
        roles={"bodeguero": ["ver_inventario"]},
        assignments={"clerk@example.com": ["bodeguero"]},
    )

    async with session_scope(settings) as session:
        report = await LegacyRbacImporter(session).import_snapshot(snapshot, dry_run=True)

    assert report.dry_run is True
    assert report.roles_created == 1
    async with session_scope(settings) as session:
        count = (
            await session.execute(select(func.count(Role.id)).where(Role.slug == "bodeguero"))
        ).scalar_one()
    assert count == 0
    assert await _role_slugs(settings, user.id) == []


async def test_snapshot_is_read_from_legacy_tables(settings: Settings, make_user) -> None:
    await make_user(email="clerk@example.com")
    async with session_scope(settings) as session:
        user_id = (
            await session.execute(text("SELECT id FROM users WHERE email = 'clerk@example.com'"))
        ).scalar_one()
        for statement in (
            "CREATE TABLE rol (id INTEGER PRIMARY KEY, nombre VARCHAR(100))",
            "CREATE TABLE permiso (id INTEGER PRIMARY KEY, nombre VARCHAR(100))",
            "CREATE TABLE rol_permiso (rol_id INTEGER, permiso_id INTEGER)",
            "CREATE TABLE user_rol (user_id INTEGER, rol_id INTEGER)",
            "ALTER TABLE users ADD COLUMN role VARCHAR(50)",
            "INSERT INTO rol (id, nombre) VALUES (1, 'bodeguero'), (2, 'vacio')",
            "INSERT INTO permiso (id, nombre) VALUES (1, 'ver_inventario')",
            "INSERT INTO rol_permiso (rol_id, permiso_id) VALUES (1, 1)",
        ):
            await session.execute(text(statement))
        await session.execute(
            text("INSERT INTO user_rol (user_id, rol_id) VALUES (:user_id, 1)"),
            {"user_id": user_id},
        )
        await session.execute(
            text("UPDATE users SET role = 'empleado' WHERE id = :user_id"),
            {"user_id": user_id},
        )

    async with session_scope(settings) as session:
        snapshot = await load_snapshot_from_tables(session)

    assert snapshot.roles == {"bodeguero": ["ver_inventario"], "vacio": []}
    assert snapshot.assignments == {"clerk@example.com": ["bodeguero"]}
    assert snapshot.role_columns == {"clerk@example.com": "empleado"}


async def test_snapshot_file_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "legacy.json"
    path.write_text(
        json.dumps({"roles": {"bodeguero": ["ver_inventario"]}, "assignments": {}}),
        encoding="utf-8",
    )

    snapshot = load_snapshot_from_file(path)

    assert snapshot.roles == {"bodeguero": ["ver_inventario"]}
    assert snapshot.role_columns == {}
