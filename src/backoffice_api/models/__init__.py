"""Central exports for back-office SQLAlchemy models."""

from .commerce import (
    Cart,
    CartItem,
    CartStatus,
    Category,
    Complaint,
    ComplaintStatus,
    ComplaintType,
    Customer,
    Product,
    ProductInventory,
    SaleDetail,
    SaleNote,
    SaleStatus,
    Supplier,
    Warehouse,
)
from .rbac import Permission, Role, RolePermission, UserRoleAssignment
from .user import User

__all__ = [
    "Cart",
    "CartItem",
    "CartStatus",
    "Category",
    "Complaint",
    "ComplaintStatus",
    "ComplaintType",
    "Customer",
    "Permission",
    "Product",
    "ProductInventory",
    "Role",
    "RolePermission",
    "SaleDetail",
    "SaleNote",
    "SaleStatus",
    "Supplier",
    "User",
    "UserRoleAssignment",
    "Warehouse",
]
