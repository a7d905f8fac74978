"""Favorite Orders Tracker - per-customer bookmarks and re-ordering."""

from orderflow.models.actor import RequestContext, Role
from orderflow.models.order import Order, OrderLine
from orderflow.services.base import BaseService
from orderflow.services.orders import OrderService
from orderflow.state.store import OrderStore


class FavoritesTracker(BaseService):
    """
    Favorites tracker for customers.

    Favorites are a set per customer with no dependency on order status;
    adding twice or removing a missing entry are successful no-ops.
    """

    def __init__(self, store: OrderStore, orders: OrderService | None = None):
        super().__init__("favorites_tracker", store)
        self.orders = orders or OrderService(store)

    async def _own_order(self, ctx: RequestContext, order_id: int) -> Order:
        self.require_role(ctx, Role.CUSTOMER)
        order = await self.get_order_or_404(order_id)
        self.ensure_involved(ctx, order)
        return order

    async def add_favorite(self, ctx: RequestContext, order_id: int) -> bool:
        """Bookmark one of the customer's orders. Returns whether anything changed."""
        await self._own_order(ctx, order_id)
        changed = await self.store.add_favorite(ctx.actor_id, order_id)
        self.audit.log_favorite(ctx.actor_id, order_id, action="add", changed=changed)
        return changed

    async def remove_favorite(self, ctx: RequestContext, order_id: int) -> bool:
        """Drop a bookmark. Returns whether anything changed."""
        self.require_role(ctx, Role.CUSTOMER)
        changed = await self.store.remove_favorite(ctx.actor_id, order_id)
        self.audit.log_favorite(ctx.actor_id, order_id, action="remove", changed=changed)
        return changed

    async def is_favorite(self, ctx: RequestContext, order_id: int) -> bool:
        return order_id in await self.store.list_favorites(ctx.actor_id)

    async def list_favorites(self, ctx: RequestContext) -> list[Order]:
        """The customer's favorited orders, newest first."""
        self.require_role(ctx, Role.CUSTOMER)

        orders = []
        for order_id in await self.store.list_favorites(ctx.actor_id):
            order = await self.store.get_order(order_id)
            if order is not None:
                orders.append(order)

        orders.sort(key=lambda order: (order.created_at, order.id), reverse=True)
        return orders

    async def reorder(self, ctx: RequestContext, order_id: int) -> Order:
        """
        Place a new order repeating a historical one.

        The new order gets a fresh id, starts at PLACED, keeps the restaurant
        and quantities, and is priced from the current menu rather than the
        historical snapshot. The source order is not touched.
        """
        source = await self._own_order(ctx, order_id)

        lines = [
            OrderLine(menu_item_id=item.menu_item_id, quantity=item.quantity)
            for item in source.items
        ]
        return await self.orders.place_order(
            ctx,
            source.restaurant_id,
            lines,
            source_order_id=source.id,
        )
