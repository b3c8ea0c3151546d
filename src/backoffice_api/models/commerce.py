"""Commerce entities read by the dashboard and the management listings."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice_api.db import Base, IntPrimaryKeyMixin, TimestampMixin, enum_values

from .user import User

_MONEY = Numeric(12, 2)


class SaleStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CartStatus(str, Enum):
    ACTIVE = "active"
    CONVERTED = "converted"
    ABANDONED = "abandoned"


class ComplaintType(str, Enum):
    PETITION = "petition"
    COMPLAINT = "complaint"
    CLAIM = "claim"
    SUGGESTION = "suggestion"


class ComplaintStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


def _enum_column(enum_cls: type[Enum], name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=20,
        values_callable=enum_values,
        validate_strings=True,
    )


class Customer(IntPrimaryKeyMixin, TimestampMixin, Base):
    """Storefront client record; one per client user."""

    __tablename__ = "customers"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    nit: Mapped[str] = mapped_column(String(50), nullable=False)

    user: Mapped[User] = relationship("User", back_populates="customer")
    sales: Mapped[list[SaleNote]] = relationship("SaleNote", back_populates="customer")
    carts: Mapped[list[Cart]] = relationship("Cart", back_populates="customer")


class Supplier(IntPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)


class Category(IntPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Product(IntPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "products"

    code: Mapped[str] = mapped_column(String(60), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    purchase_price: Mapped[Decimal] = mapped_column(_MONEY, nullable=False, default=Decimal("0"))
    sale_price: Mapped[Decimal] = mapped_column(_MONEY, nullable=False, default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )

    category: Mapped[Category | None] = relationship("Category")
    inventories: Mapped[list[ProductInventory]] = relationship(
        "ProductInventory",
        back_populates="product",
        cascade="all, delete-orphan",
    )


class Warehouse(IntPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "warehouses"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)


class ProductInventory(IntPrimaryKeyMixin, TimestampMixin, Base):
    """Stock of one product held in one warehouse."""

    __tablename__ = "product_inventories"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    warehouse_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False
    )
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    product: Mapped[Product] = relationship("Product", back_populates="inventories")
    warehouse: Mapped[Warehouse] = relationship("Warehouse")

    __table_args__ = (UniqueConstraint("product_id", "warehouse_id", name="uq_product_warehouse"),)


class SaleNote(IntPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "sale_notes"

    customer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    total: Mapped[Decimal] = mapped_column(_MONEY, nullable=False, default=Decimal("0"))
    status: Mapped[SaleStatus] = mapped_column(
        _enum_column(SaleStatus, "sale_status"),
        nullable=False,
        default=SaleStatus.PENDING,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    customer: Mapped[Customer | None] = relationship("Customer", back_populates="sales")
    details: Mapped[list[SaleDetail]] = relationship(
        "SaleDetail",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleDetail.id",
    )


class SaleDetail(IntPrimaryKeyMixin, Base):
    __tablename__ = "sale_details"

    sale_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sale_notes.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)
    total: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)

    sale: Mapped[SaleNote] = relationship("SaleNote", back_populates="details")
    product: Mapped[Product] = relationship("Product")


class Cart(IntPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "carts"

    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    total: Mapped[Decimal] = mapped_column(_MONEY, nullable=False, default=Decimal("0"))
    status: Mapped[CartStatus] = mapped_column(
        _enum_column(CartStatus, "cart_status"),
        nullable=False,
        default=CartStatus.ACTIVE,
    )

    customer: Mapped[Customer] = relationship("Customer", back_populates="carts")
    items: Mapped[list[CartItem]] = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
    )


class CartItem(IntPrimaryKeyMixin, Base):
    __tablename__ = "cart_items"

    cart_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    cart: Mapped[Cart] = relationship("Cart", back_populates="items")


class Complaint(IntPrimaryKeyMixin, TimestampMixin, Base):
    """PQRS entry: petition, complaint, claim or suggestion."""

    __tablename__ = "complaints"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    type: Mapped[ComplaintType] = mapped_column(
        _enum_column(ComplaintType, "complaint_type"),
        nullable=False,
    )
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ComplaintStatus] = mapped_column(
        _enum_column(ComplaintStatus, "complaint_status"),
        nullable=False,
        default=ComplaintStatus.PENDING,
    )


__all__ = [
    "Cart",
    "CartItem",
    "CartStatus",
    "Category",
    "Complaint",
    "ComplaintStatus",
    "ComplaintType",
    "Customer",
    "Product",
    "ProductInventory",
    "SaleDetail",
    "SaleNote",
    "SaleStatus",
    "Supplier",
    "Warehouse",
]
