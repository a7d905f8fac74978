"""Order placement, status updates and role-scoped order queries."""

from orderflow.errors import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from orderflow.models.actor import RequestContext, Role
from orderflow.models.order import Order, OrderItem, OrderLine, OrderStatus
from orderflow.services.base import BaseService
from orderflow.state.store import OrderStore
from orderflow.state.workflow import OrderTransitions


class OrderService(BaseService):
    """
    Order service that owns placement and the restaurant-side lifecycle.

    Responsibilities:
    - Place orders from a restaurant menu, snapshotting prices
    - Validate and apply status transitions for the acting role
    - List orders scoped to the acting actor
    """

    def __init__(self, store: OrderStore):
        super().__init__("order_service", store)

    async def place_order(
        self,
        ctx: RequestContext,
        restaurant_id: int,
        lines: list[OrderLine],
        source_order_id: int | None = None,
    ) -> Order:
        """
        Create a new PLACED order for the acting customer.

        Args:
            ctx: Request context of the customer
            restaurant_id: Restaurant the order is placed with
            lines: Menu items and quantities
            source_order_id: Historical order this one re-orders, if any

        Returns:
            The stored order
        """
        self.require_role(ctx, Role.CUSTOMER)

        if not lines:
            raise ValidationError("An order needs at least one item")

        restaurant = await self.store.get_actor(restaurant_id)
        if restaurant is None or restaurant.role != Role.RESTAURANT:
            raise NotFoundError(f"Restaurant {restaurant_id} not found")

        items = await self._price_items(restaurant_id, lines)

        order = Order(
            id=await self.store.next_id("order"),
            restaurant_id=restaurant_id,
            customer_id=ctx.actor_id,
            items=items,
            source_order_id=source_order_id,
        )
        await self.store.insert_order(order)

        self.audit.logger.info(
            "order_placed",
            order_id=order.id,
            restaurant_id=restaurant_id,
            customer_id=ctx.actor_id,
            total_price=str(order.total_price),
            source_order_id=source_order_id,
        )

        return order

    async def _price_items(self, restaurant_id: int, lines: list[OrderLine]) -> list[OrderItem]:
        """Snapshot the current menu price of every requested line."""
        items = []
        for line in lines:
            menu_item = await self.store.get_menu_item(line.menu_item_id)

            if menu_item is None or menu_item.restaurant_id != restaurant_id:
                raise ValidationError(
                    f"Menu item {line.menu_item_id} is not offered by restaurant {restaurant_id}"
                )
            if not menu_item.is_available:
                raise ValidationError(f"Menu item {menu_item.name!r} is currently unavailable")

            items.append(
                OrderItem(
                    menu_item_id=menu_item.id,
                    name=menu_item.name,
                    quantity=line.quantity,
                    unit_price=menu_item.price,
                )
            )
        return items

    async def get_order(self, ctx: RequestContext, order_id: int) -> Order:
        """Get one order the actor is a party to."""
        order = await self.get_order_or_404(order_id)
        self.ensure_involved(ctx, order)
        return order

    async def list_orders(
        self,
        ctx: RequestContext,
        statuses: list[OrderStatus] | None = None,
        search: str | None = None,
    ) -> list[Order]:
        """
        List the actor's orders, newest first.

        Admins see every order, restaurants and customers their own, couriers
        the orders currently or previously assigned to them.
        """
        needle = search.strip().lower() if search else ""

        orders = [
            order
            for order in await self.store.list_orders()
            if self.is_involved(ctx, order)
            and (not statuses or order.status in statuses)
            and (not needle or needle in order.search_text())
        ]
        orders.sort(key=lambda order: (order.created_at, order.id), reverse=True)
        return orders

    async def list_customer_orders(self, ctx: RequestContext, old: bool = False) -> list[Order]:
        """Active orders of the customer, or its finished ones when ``old`` is set."""
        self.require_role(ctx, Role.CUSTOMER)
        orders = await self.list_orders(ctx)
        return [order for order in orders if order.is_terminal == old]

    async def update_status(
        self,
        ctx: RequestContext,
        order_id: int,
        status: OrderStatus,
    ) -> Order:
        """
        Move an order along one lifecycle edge.

        Courier assignment needs a courier id and goes through
        ``CourierAssignmentManager.assign_courier`` instead.
        """
        previous: dict[str, OrderStatus] = {}

        def mutate(order: Order) -> Order:
            if not self.is_involved(ctx, order):
                raise AuthorizationError(
                    f"Actor {ctx.actor_id} ({ctx.role.value}) may not change order {order.id}"
                )
            if not OrderTransitions.is_edge(order.status, status):
                raise InvalidTransitionError(order.status, status, ctx.role)
            if status == OrderStatus.ASSIGNED:
                raise ValidationError("Orders are assigned through the assign-courier operation")
            OrderTransitions.ensure_transition(order.status, status, ctx.role)
            previous["status"] = order.status
            return OrderTransitions.apply(order, status)

        updated = await self.store.update_order(order_id, mutate)

        self.audit.log_transition(
            order_id=order_id,
            from_status=previous["status"].value,
            to_status=status.value,
            actor_id=ctx.actor_id,
            role=ctx.role.value,
            version=updated.version,
        )

        return updated
