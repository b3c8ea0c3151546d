from __future__ import annotations

from backoffice_api.common.schema import BaseSchema


class ClientDashboard(BaseSchema):
    """Summary shown to a storefront client."""

    name: str
    nit: str | None = None
    purchases_count: int
    purchases_total: float
    cart_items: int


__all__ = ["ClientDashboard"]
