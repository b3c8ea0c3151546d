"""Product listing routes for management users."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Security

from backoffice_api.api.deps import get_products_service
from backoffice_api.common.pagination import PageParams
from backoffice_api.core.http import can_manage_products, require_authenticated

from .schemas import ProductDetail, ProductPage
from .service import ProductsService

router = APIRouter(
    prefix="/products",
    tags=["products"],
    dependencies=[Security(require_authenticated), Depends(can_manage_products)],
)

ProductsServiceDep = Annotated[ProductsService, Depends(get_products_service)]


@router.get("", name="products.index", response_model=ProductPage, summary="List products")
async def list_products(
    page: Annotated[PageParams, Depends()],
    service: ProductsServiceDep,
    q: Annotated[str | None, Query(max_length=100)] = None,
    is_active: Annotated[bool | None, Query()] = None,
    sort: Annotated[str | None, Query(description="name, code, sale_price or stock.")] = None,
) -> ProductPage:
    return await service.list_products(
        q=q,
        is_active=is_active,
        sort=sort,
        page=page.page,
        page_size=page.page_size,
    )


@router.get("/{product_id}", name="products.show", response_model=ProductDetail, summary="Show a product")
async def show_product(
    product_id: Annotated[int, Path(ge=1)],
    service: ProductsServiceDep,
) -> ProductDetail:
    return await service.get_product(product_id=product_id)


__all__ = ["router"]
