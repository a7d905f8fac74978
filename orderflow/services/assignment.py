"""Courier Assignment Manager - assigns couriers and tracks their responses."""

from pydantic import BaseModel

from orderflow.errors import (
    AuthorizationError,
    CourierUnavailableError,
    OrderNotEligibleError,
    ValidationError,
)
from orderflow.models.actor import RequestContext, Role
from orderflow.models.courier import Courier, CourierResponse
from orderflow.models.order import Order, OrderStatus
from orderflow.services.base import BaseService
from orderflow.state.store import OrderStore
from orderflow.state.workflow import OrderTransitions


class AssignmentResult(BaseModel):
    """Outcome of a courier's accept/reject answer."""

    message: str
    status: OrderStatus
    order: Order


class CourierAssignmentManager(BaseService):
    """
    Assignment manager that pairs READY_FOR_PICKUP orders with couriers.

    Responsibilities:
    - Assign and unassign couriers, re-checking eligibility at write time
    - Record a courier's accept/reject answer
    - Serve courier availability and courier order queues
    """

    def __init__(self, store: OrderStore):
        super().__init__("courier_assignment", store)

    async def assign_courier(
        self,
        ctx: RequestContext,
        order_id: int,
        courier_id: int,
    ) -> Order:
        """
        Assign a courier to a READY_FOR_PICKUP order.

        The courier is re-read here rather than trusted from an earlier
        availability listing. The status check and the write happen in one
        atomic update, so of two racing assignments only one can see
        READY_FOR_PICKUP.

        Raises:
            NotFoundError: unknown order or courier
            OrderNotEligibleError: the order is not READY_FOR_PICKUP
            CourierUnavailableError: the courier is offline or unavailable
        """
        self.require_role(ctx, Role.ADMIN, Role.COURIER)
        if ctx.role == Role.COURIER and ctx.actor_id != courier_id:
            raise AuthorizationError("Couriers can only assign orders to themselves")

        courier = await self.get_courier_or_404(courier_id)

        def mutate(order: Order) -> Order:
            if order.status != OrderStatus.READY_FOR_PICKUP:
                raise OrderNotEligibleError(
                    f"Order {order.id} is {order.status.value}; "
                    "only READY_FOR_PICKUP orders can be assigned"
                )
            if not courier.is_eligible:
                raise CourierUnavailableError(
                    f"Courier {courier.id} is not available "
                    f"(online={courier.is_online}, available={courier.is_available})"
                )
            OrderTransitions.ensure_transition(order.status, OrderStatus.ASSIGNED, ctx.role)
            return OrderTransitions.apply(order, OrderStatus.ASSIGNED, courier_id=courier.id)

        updated = await self.store.update_order(order_id, mutate)

        self.audit.log_assignment(
            order_id=order_id,
            courier_id=courier_id,
            action="assign",
            actor_id=ctx.actor_id,
            version=updated.version,
        )

        return updated

    async def unassign_courier(self, ctx: RequestContext, order_id: int) -> Order:
        """
        Take the courier off an ASSIGNED order, returning it to READY_FOR_PICKUP.

        Orders already IN_TRANSIT cannot be unassigned.
        """
        self.require_role(ctx, Role.ADMIN, Role.COURIER)

        previous: dict[str, int | None] = {}

        def mutate(order: Order) -> Order:
            if order.status != OrderStatus.ASSIGNED:
                raise OrderNotEligibleError(
                    f"Order {order.id} is {order.status.value}; only ASSIGNED orders can be unassigned"
                )
            if ctx.role == Role.COURIER and order.courier_id != ctx.actor_id:
                raise AuthorizationError(f"Order {order.id} is not assigned to courier {ctx.actor_id}")
            OrderTransitions.ensure_transition(
                order.status, OrderStatus.READY_FOR_PICKUP, ctx.role
            )
            previous["courier_id"] = order.courier_id
            return OrderTransitions.apply(order, OrderStatus.READY_FOR_PICKUP)

        updated = await self.store.update_order(order_id, mutate)

        self.audit.log_assignment(
            order_id=order_id,
            courier_id=previous["courier_id"],
            action="unassign",
            actor_id=ctx.actor_id,
            version=updated.version,
        )

        return updated

    async def courier_respond(
        self,
        ctx: RequestContext,
        order_id: int,
        response: CourierResponse,
    ) -> AssignmentResult:
        """
        Record the assigned courier's answer.

        ACCEPT moves the order to IN_TRANSIT. REJECT returns it to
        READY_FOR_PICKUP without a courier so it can be assigned again.
        """
        self.require_role(ctx, Role.COURIER, Role.ADMIN)

        target = (
            OrderStatus.IN_TRANSIT
            if response == CourierResponse.ACCEPT
            else OrderStatus.READY_FOR_PICKUP
        )
        previous: dict[str, int | None] = {}

        def mutate(order: Order) -> Order:
            if order.status != OrderStatus.ASSIGNED:
                raise OrderNotEligibleError(
                    f"Order {order.id} is {order.status.value}; "
                    "only ASSIGNED orders await a courier response"
                )
            if ctx.role == Role.COURIER and order.courier_id != ctx.actor_id:
                raise AuthorizationError(f"Order {order.id} is not assigned to courier {ctx.actor_id}")
            OrderTransitions.ensure_transition(order.status, target, ctx.role)
            previous["courier_id"] = order.courier_id
            return OrderTransitions.apply(order, target)

        updated = await self.store.update_order(order_id, mutate)

        self.audit.log_assignment(
            order_id=order_id,
            courier_id=previous["courier_id"],
            action=response.value.lower(),
            actor_id=ctx.actor_id,
            version=updated.version,
        )

        if response == CourierResponse.ACCEPT:
            message = f"Order {order_id} accepted and is now in transit"
        else:
            message = f"Order {order_id} rejected and is ready for pickup again"

        return AssignmentResult(message=message, status=updated.status, order=updated)

    async def list_available_couriers(self, search: str | None = None) -> list[Courier]:
        """
        Get couriers currently online and available.

        This is a point-in-time read; ``assign_courier`` re-checks eligibility.
        """
        needle = search.strip().lower() if search else ""
        return [
            courier
            for courier in await self.store.list_couriers()
            if courier.is_eligible and (not needle or needle in courier.name.lower())
        ]

    async def get_courier_status(self, ctx: RequestContext) -> Courier:
        """Get the acting courier's own profile."""
        self.require_role(ctx, Role.COURIER)
        return await self.get_courier_or_404(ctx.actor_id)

    async def update_courier_status(
        self,
        ctx: RequestContext,
        is_online: bool | None = None,
        is_available: bool | None = None,
    ) -> Courier:
        """Toggle the acting courier's online and availability flags."""
        self.require_role(ctx, Role.COURIER)

        changes = {
            field: value
            for field, value in (("is_online", is_online), ("is_available", is_available))
            if value is not None
        }
        if not changes:
            raise ValidationError("Provide is_online and/or is_available")

        courier = await self.store.update_courier(
            ctx.actor_id,
            lambda current: current.model_copy(update=changes),
        )

        self.audit.logger.info(
            "courier_status_updated",
            courier_id=courier.id,
            is_online=courier.is_online,
            is_available=courier.is_available,
        )

        return courier

    async def list_courier_orders(self, ctx: RequestContext, accepted: bool = False) -> list[Order]:
        """
        Get the acting courier's queue.

        Idle orders (``accepted=False``) are ASSIGNED and awaiting an answer;
        accepted orders are IN_TRANSIT or DELIVERED.
        """
        self.require_role(ctx, Role.COURIER)

        orders = []
        for order in await self.store.list_orders():
            if order.courier_id != ctx.actor_id:
                continue
            if accepted:
                if order.courier_assignment_accepted and order.status in (
                    OrderStatus.IN_TRANSIT,
                    OrderStatus.DELIVERED,
                ):
                    orders.append(order)
            elif order.status == OrderStatus.ASSIGNED:
                orders.append(order)

        orders.sort(key=lambda order: order.id)
        return orders
