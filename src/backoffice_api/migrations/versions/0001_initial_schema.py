"""Initial back-office schema: identities, RBAC store and commerce tables."""

from __future__ import annotations

from typing import Optional

import sqlalchemy as sa
from alembic import op

# Revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision: Optional[str] = None
branch_labels: Optional[str] = None
depends_on: Optional[str] = None


# ---------------------------------------------------------------------------
# Types / enums
# ---------------------------------------------------------------------------


def _enum(*values: str, name: str) -> sa.Enum:
    return sa.Enum(
        *values,
        name=name,
        native_enum=False,
        create_constraint=True,
        length=20,
    )


SALE_STATUS = _enum("pending", "completed", "cancelled", name="sale_status")
CART_STATUS = _enum("active", "converted", "abandoned", name="cart_status")
COMPLAINT_TYPE = _enum("petition", "complaint", "claim", "suggestion", name="complaint_type")
COMPLAINT_STATUS = _enum("pending", "in_progress", "resolved", name="complaint_status")

_MONEY = sa.Numeric(12, 2)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # Identity & RBAC
    _create_users()
    _create_permissions()
    _create_roles()
    _create_role_permissions()
    _create_user_role_assignments()

    # Commerce
    _create_customers()
    _create_suppliers()
    _create_categories()
    _create_products()
    _create_warehouses()
    _create_product_inventories()
    _create_sale_notes()
    _create_sale_details()
    _create_carts()
    _create_cart_items()
    _create_complaints()


def downgrade() -> None:  # pragma: no cover
    raise NotImplementedError("Downgrade is not supported for this revision.")


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def _int_pk(name: str = "id") -> sa.Column:
    return sa.Column(name, sa.Integer(), primary_key=True, autoincrement=True)


def _timestamps() -> tuple[sa.Column, sa.Column]:
    """Common created_at / updated_at pair."""
    return (
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )


def _create_users() -> None:
    op.create_table(
        "users",
        _int_pk(),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("email_canonical", sa.String(length=320), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("gender", sa.String(length=20), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("failed_login_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )


def _create_permissions() -> None:
    op.create_table(
        "permissions",
        _int_pk(),
        sa.Column("key", sa.String(length=120), nullable=False, unique=True),
        sa.Column("resource", sa.String(length=120), nullable=False),
        sa.Column("action", sa.String(length=120), nullable=False),
        sa.Column("category", sa.String(length=60), nullable=False),
        sa.Column("label", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
    )


def _create_roles() -> None:
    op.create_table(
        "roles",
        _int_pk(),
        sa.Column("slug", sa.String(length=100), nullable=False, unique=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_system", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_editable", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_administrative", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_management", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("color", sa.String(length=30), nullable=True),
        *_timestamps(),
    )


def _create_role_permissions() -> None:
    op.create_table(
        "role_permissions",
        sa.Column(
            "role_id",
            sa.Integer(),
            sa.ForeignKey("roles.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "permission_id",
            sa.Integer(),
            sa.ForeignKey("permissions.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )


def _create_user_role_assignments() -> None:
    op.create_table(
        "user_role_assignments",
        _int_pk(),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "role_id",
            sa.Integer(),
            sa.ForeignKey("roles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "role_id", name="uq_user_role"),
    )
    op.create_index("ix_user_role_assignments_role", "user_role_assignments", ["role_id"])


def _create_customers() -> None:
    op.create_table(
        "customers",
        _int_pk(),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("nit", sa.String(length=50), nullable=False),
        *_timestamps(),
    )


def _create_suppliers() -> None:
    op.create_table(
        "suppliers",
        _int_pk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        *_timestamps(),
    )


def _create_categories() -> None:
    op.create_table(
        "categories",
        _int_pk(),
        sa.Column("name", sa.String(length=150), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )


def _create_products() -> None:
    op.create_table(
        "products",
        _int_pk(),
        sa.Column("code", sa.String(length=60), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("purchase_price", _MONEY, nullable=False, server_default="0"),
        sa.Column("sale_price", _MONEY, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    )


def _create_warehouses() -> None:
    op.create_table(
        "warehouses",
        _int_pk(),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        *_timestamps(),
    )


def _create_product_inventories() -> None:
    op.create_table(
        "product_inventories",
        _int_pk(),
        sa.Column(
            "product_id",
            sa.Integer(),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "warehouse_id",
            sa.Integer(),
            sa.ForeignKey("warehouses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("product_id", "warehouse_id", name="uq_product_warehouse"),
    )


def _create_sale_notes() -> None:
    op.create_table(
        "sale_notes",
        _int_pk(),
        sa.Column(
            "customer_id",
            sa.Integer(),
            sa.ForeignKey("customers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("total", _MONEY, nullable=False, server_default="0"),
        sa.Column("status", SALE_STATUS, nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_sale_notes_status_date", "sale_notes", ["status", "date"])


def _create_sale_details() -> None:
    op.create_table(
        "sale_details",
        _int_pk(),
        sa.Column(
            "sale_id",
            sa.Integer(),
            sa.ForeignKey("sale_notes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "product_id",
            sa.Integer(),
            sa.ForeignKey("products.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", _MONEY, nullable=False),
        sa.Column("total", _MONEY, nullable=False),
    )


def _create_carts() -> None:
    op.create_table(
        "carts",
        _int_pk(),
        sa.Column(
            "customer_id",
            sa.Integer(),
            sa.ForeignKey("customers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("total", _MONEY, nullable=False, server_default="0"),
        sa.Column("status", CART_STATUS, nullable=False, server_default="active"),
        *_timestamps(),
    )


def _create_cart_items() -> None:
    op.create_table(
        "cart_items",
        _int_pk(),
        sa.Column(
            "cart_id",
            sa.Integer(),
            sa.ForeignKey("carts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "product_id",
            sa.Integer(),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
    )


def _create_complaints() -> None:
    op.create_table(
        "complaints",
        _int_pk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("type", COMPLAINT_TYPE, nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", COMPLAINT_STATUS, nullable=False, server_default="pending"),
        *_timestamps(),
    )
