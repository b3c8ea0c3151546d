"""Product listing with stock totals for management users."""

from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backoffice_api.common.sorting import resolve_sort
from backoffice_api.models import Category, Product, ProductInventory

from .schemas import ProductDetail, ProductOut, ProductPage, WarehouseStock

_TOTAL_STOCK = (
    select(func.coalesce(func.sum(ProductInventory.stock), 0))
    .where(ProductInventory.product_id == Product.id)
    .correlate(Product)
    .scalar_subquery()
)

SORT_FIELDS = {
    "name": (func.lower(Product.name).asc(), func.lower(Product.name).desc()),
    "code": (Product.code.asc(), Product.code.desc()),
    "sale_price": (Product.sale_price.asc(), Product.sale_price.desc()),
    "stock": (_TOTAL_STOCK.asc(), _TOTAL_STOCK.desc()),
}
DEFAULT_SORT = "name"
ID_FIELD = (Product.id.asc(), Product.id.desc())


class ProductsService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session

    async def list_products(
        self,
        *,
        q: str | None,
        is_active: bool | None,
        sort: str | None,
        page: int,
        page_size: int,
    ) -> ProductPage:
        base = select(Product.id)
        if q and q.strip():
            pattern = f"%{q.strip().lower()}%"
            base = base.where(
                or_(func.lower(Product.name).like(pattern), func.lower(Product.code).like(pattern))
            )
        if is_active is not None:
            base = base.where(Product.is_active == is_active)

        total = int(
            (await self._session.execute(select(func.count()).select_from(base.subquery()))).scalar_one()
        )
        order_by = resolve_sort(sort, allowed=SORT_FIELDS, default=DEFAULT_SORT, id_field=ID_FIELD)
        stmt = (
            select(Product, Category.name, _TOTAL_STOCK.label("total_stock"))
            .outerjoin(Category, Category.id == Product.category_id)
            .where(Product.id.in_(base))
            .order_by(*order_by)
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        items = [
            self._serialize(product, category, int(total_stock or 0))
            for product, category, total_stock in (await self._session.execute(stmt)).all()
        ]
        return ProductPage(
            items=items,
            page=page,
            page_size=page_size,
            has_next=page * page_size < total,
            has_previous=page > 1,
            total=total,
        )

    async def get_product(self, *, product_id: int) -> ProductDetail:
        stmt = (
            select(Product)
            .options(
                selectinload(Product.category),
                selectinload(Product.inventories).selectinload(ProductInventory.warehouse),
            )
            .where(Product.id == product_id)
        )
        product = (await self._session.execute(stmt)).scalar_one_or_none()
        if product is None:
            raise HTTPException(
                status.HTTP_404_NOT_FOUND,
                detail={"error": "product_not_found", "message": "Product not found."},
            )
        stock = [
            WarehouseStock(
                warehouse_id=inventory.warehouse_id,
                warehouse=inventory.warehouse.name,
                stock=inventory.stock,
            )
            for inventory in sorted(product.inventories, key=lambda row: row.warehouse_id)
        ]
        summary = self._serialize(
            product,
            product.category.name if product.category is not None else None,
            sum(row.stock for row in stock),
        )
        return ProductDetail(**summary.model_dump(), description=product.description, stock=stock)

    @staticmethod
    def _serialize(product: Product, category: str | None, total_stock: int) -> ProductOut:
        return ProductOut(
            id=product.id,
            code=product.code,
            name=product.name,
            category=category,
            purchase_price=float(product.purchase_price or 0),
            sale_price=float(product.sale_price or 0),
            is_active=product.is_active,
            total_stock=total_stock,
        )


__all__ = ["ProductsService"]
