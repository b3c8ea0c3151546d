from __future__ import annotations

import json

import pytest

from backoffice_api.features.rbac.legacy import (
    LegacySnapshot,
    load_snapshot_from_file,
    normalize_legacy_permission,
    normalize_legacy_role,
)


@pytest.mark.parametrize(
    ("legacy", "expected"),
    [
        ("ver_usuarios", "users.view"),
        ("ver-usuarios", "users.view"),
        ("crear-productos", "products.create"),
        ("editar_ventas", "sales.update"),
        ("eliminar-proveedores", "suppliers.delete"),
        ("acceso-dashboard", "dashboard.access"),
        ("ver-reportes", "reports.view"),
        ("gestionar-roles", "roles.manage"),
        ("crear-ajustes-inventario", "inventory.adjust"),
        ("Ver Clientes", "clients.view"),
        ("users.update", "users.update"),
    ],
)
def test_permission_names_map_onto_catalog(legacy: str, expected: str) -> None:
    assert normalize_legacy_permission(legacy) == expected


@pytest.mark.parametrize("legacy", ["volar-naves", "ver-naves", "editar", ""])
def test_unknown_permission_names_are_rejected(legacy: str) -> None:
    assert normalize_legacy_permission(legacy) is None


@pytest.mark.parametrize(
    ("legacy", "expected"),
    [
        ("Administrador", "admin"),
        ("super-admin", "super-admin"),
        ("Cliente", "client"),
        ("empleado", "employee"),
        ("Organizador", "organizer"),
    ],
)
def test_role_names_map_onto_system_roles(legacy: str, expected: str) -> None:
    assert normalize_legacy_role(legacy) == expected


def test_custom_role_names_are_not_system_roles() -> None:
    assert normalize_legacy_role("Bodeguero") is None


def test_snapshot_loads_from_json_export(tmp_path) -> None:
    path = tmp_path / "legacy.json"
    path.write_text(
        json.dumps(
            {
                "roles": {"Bodeguero": ["ver-inventario"]},
                "assignments": {"ana@example.com": ["Bodeguero"]},
                "role_columns": {"ana@example.com": "cliente"},
            }
        ),
        encoding="utf-8",
    )

    snapshot = load_snapshot_from_file(path)

    assert isinstance(snapshot, LegacySnapshot)
    assert snapshot.roles == {"Bodeguero": ["ver-inventario"]}
    assert snapshot.role_columns["ana@example.com"] == "cliente"
