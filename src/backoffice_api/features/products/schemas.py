from __future__ import annotations

from pydantic import Field

from backoffice_api.common.pagination import Page
from backoffice_api.common.schema import BaseSchema


class ProductOut(BaseSchema):
    id: int
    code: str
    name: str
    category: str | None = None
    purchase_price: float
    sale_price: float
    is_active: bool
    total_stock: int = 0


class ProductPage(Page[ProductOut]):
    """Paginated products with their stock across warehouses."""


class WarehouseStock(BaseSchema):
    warehouse_id: int
    warehouse: str
    stock: int


class ProductDetail(ProductOut):
    description: str | None = None
    stock: list[WarehouseStock] = Field(default_factory=list)


__all__ = ["ProductDetail", "ProductOut", "ProductPage", "WarehouseStock"]
