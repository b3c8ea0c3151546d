"""Read model for the client portal."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice_api.models import Cart, CartItem, CartStatus, SaleNote, SaleStatus, User

from .schemas import ClientDashboard


class ClientPortalService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session

    async def summary(self, *, user: User) -> ClientDashboard:
        customer = user.customer
        if customer is None:
            return ClientDashboard(
                name=user.name,
                nit=None,
                purchases_count=0,
                purchases_total=0.0,
                cart_items=0,
            )

        count, total = (
            await self._session.execute(
                select(func.count(SaleNote.id), func.coalesce(func.sum(SaleNote.total), 0)).where(
                    SaleNote.customer_id == customer.id,
                    SaleNote.status == SaleStatus.COMPLETED,
                )
            )
        ).one()
        cart_items = (
            await self._session.execute(
                select(func.coalesce(func.sum(CartItem.quantity), 0))
                .join(Cart, Cart.id == CartItem.cart_id)
                .where(Cart.customer_id == customer.id, Cart.status == CartStatus.ACTIVE)
            )
        ).scalar_one()
        return ClientDashboard(
            name=user.name,
            nit=customer.nit,
            purchases_count=int(count or 0),
            purchases_total=float(total or 0),
            cart_items=int(cart_items or 0),
        )


__all__ = ["ClientPortalService"]
