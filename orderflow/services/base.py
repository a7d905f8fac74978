"""Base service class with common functionality for all services."""

from orderflow.config import get_settings
from orderflow.errors import AuthorizationError, NotFoundError
from orderflow.models.actor import RequestContext, Role
from orderflow.models.courier import Courier
from orderflow.models.order import Order
from orderflow.state.store import OrderStore
from orderflow.utils.logging import OrderAuditLogger


class BaseService:
    """Shared store access, role checks and audit logging."""

    def __init__(self, component: str, store: OrderStore):
        self.component = component
        self.store = store
        self.settings = get_settings()
        self.audit = OrderAuditLogger(component)

    @staticmethod
    def require_role(ctx: RequestContext, *roles: Role) -> None:
        """Raise ``AuthorizationError`` unless the acting role is one of ``roles``."""
        if not ctx.has_role(*roles):
            allowed = ", ".join(role.value for role in roles)
            raise AuthorizationError(
                f"Role {ctx.role.value} may not perform this operation (requires {allowed})"
            )

    @staticmethod
    def is_involved(ctx: RequestContext, order: Order) -> bool:
        """Check if the actor is a party to the order (admins see everything)."""
        if ctx.role == Role.ADMIN:
            return True
        if ctx.role == Role.CUSTOMER:
            return order.customer_id == ctx.actor_id
        if ctx.role == Role.RESTAURANT:
            return order.restaurant_id == ctx.actor_id
        return order.courier_id == ctx.actor_id

    def ensure_involved(self, ctx: RequestContext, order: Order) -> None:
        if not self.is_involved(ctx, order):
            raise AuthorizationError(
                f"Actor {ctx.actor_id} ({ctx.role.value}) is not a party to order {order.id}"
            )

    async def get_order_or_404(self, order_id: int) -> Order:
        order = await self.store.get_order(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    async def get_courier_or_404(self, courier_id: int) -> Courier:
        courier = await self.store.get_courier(courier_id)
        if courier is None:
            raise NotFoundError(f"Courier {courier_id} not found")
        return courier
