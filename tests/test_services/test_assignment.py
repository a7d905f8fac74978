"""Tests for courier assignment, unassignment and courier responses."""

import asyncio
from typing import Awaitable, Callable

import pytest

from orderflow.errors import (
    AuthorizationError,
    CourierUnavailableError,
    NotFoundError,
    OrderNotEligibleError,
    ValidationError,
)
from orderflow.models.actor import RequestContext
from orderflow.models.courier import CourierResponse
from orderflow.models.order import Order, OrderStatus
from orderflow.services import CourierAssignmentManager, OrderService
from orderflow.state.store import MemoryStore

OrderFactory = Callable[..., Awaitable[Order]]


@pytest.mark.asyncio
async def test_assign_ready_order(
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    admin: RequestContext,
    courier: RequestContext,
) -> None:
    order = await make_order(OrderStatus.READY_FOR_PICKUP)

    assigned = await assignments.assign_courier(admin, order.id, courier.actor_id)

    assert assigned.status == OrderStatus.ASSIGNED
    assert assigned.courier_id == courier.actor_id
    assert assigned.courier_assignment_accepted is False
    assert assigned.version == order.version + 1


@pytest.mark.asyncio
async def test_assign_does_not_flip_availability(
    store: MemoryStore,
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    admin: RequestContext,
    courier: RequestContext,
) -> None:
    order = await make_order(OrderStatus.READY_FOR_PICKUP)

    await assignments.assign_courier(admin, order.id, courier.actor_id)

    assert (await store.get_courier(courier.actor_id)).is_available is True


@pytest.mark.asyncio
async def test_courier_can_assign_itself_only(
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    courier: RequestContext,
    other_courier: RequestContext,
) -> None:
    order = await make_order(OrderStatus.READY_FOR_PICKUP)

    with pytest.raises(AuthorizationError):
        await assignments.assign_courier(courier, order.id, other_courier.actor_id)

    assigned = await assignments.assign_courier(courier, order.id, courier.actor_id)
    assert assigned.courier_id == courier.actor_id


@pytest.mark.asyncio
async def test_customers_and_restaurants_cannot_assign(
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    customer: RequestContext,
    restaurant: RequestContext,
    courier: RequestContext,
) -> None:
    order = await make_order(OrderStatus.READY_FOR_PICKUP)

    for ctx in (customer, restaurant):
        with pytest.raises(AuthorizationError):
            await assignments.assign_courier(ctx, order.id, courier.actor_id)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [OrderStatus.PLACED, OrderStatus.PREPARING, OrderStatus.ASSIGNED, OrderStatus.DELIVERED],
)
async def test_assign_requires_ready_for_pickup(
    store: MemoryStore,
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    admin: RequestContext,
    other_courier: RequestContext,
    status: OrderStatus,
) -> None:
    """Assigning an order that is not ready for pickup fails and leaves it untouched."""
    order = await make_order(status)

    with pytest.raises(OrderNotEligibleError):
        await assignments.assign_courier(admin, order.id, other_courier.actor_id)

    stored = await store.get_order(order.id)
    assert stored.status == status
    assert stored.version == order.version


@pytest.mark.asyncio
async def test_assign_unavailable_courier(
    store: MemoryStore,
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    admin: RequestContext,
    offline_courier: RequestContext,
) -> None:
    order = await make_order(OrderStatus.READY_FOR_PICKUP)

    with pytest.raises(CourierUnavailableError):
        await assignments.assign_courier(admin, order.id, offline_courier.actor_id)

    stored = await store.get_order(order.id)
    assert stored.status == OrderStatus.READY_FOR_PICKUP
    assert stored.courier_id is None


@pytest.mark.asyncio
async def test_assign_rechecks_courier_after_listing(
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    admin: RequestContext,
    courier: RequestContext,
) -> None:
    """A courier who went offline after being listed cannot be assigned."""
    order = await make_order(OrderStatus.READY_FOR_PICKUP)
    listed = await assignments.list_available_couriers()
    assert courier.actor_id in [c.id for c in listed]

    await assignments.update_courier_status(courier, is_online=False)

    with pytest.raises(CourierUnavailableError):
        await assignments.assign_courier(admin, order.id, courier.actor_id)


@pytest.mark.asyncio
async def test_wrong_status_reported_before_unavailable_courier(
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    admin: RequestContext,
    offline_courier: RequestContext,
) -> None:
    order = await make_order(OrderStatus.CONFIRMED)

    with pytest.raises(OrderNotEligibleError):
        await assignments.assign_courier(admin, order.id, offline_courier.actor_id)


@pytest.mark.asyncio
async def test_assign_unknown_order_or_courier(
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    admin: RequestContext,
    courier: RequestContext,
) -> None:
    order = await make_order(OrderStatus.READY_FOR_PICKUP)

    with pytest.raises(NotFoundError):
        await assignments.assign_courier(admin, 999, courier.actor_id)
    with pytest.raises(NotFoundError):
        await assignments.assign_courier(admin, order.id, 999)


@pytest.mark.asyncio
async def test_concurrent_assignment_has_one_winner(
    store: MemoryStore,
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    admin: RequestContext,
    courier: RequestContext,
    other_courier: RequestContext,
) -> None:
    order = await make_order(OrderStatus.READY_FOR_PICKUP)

    results = await asyncio.gather(
        assignments.assign_courier(admin, order.id, courier.actor_id),
        assignments.assign_courier(admin, order.id, other_courier.actor_id),
        return_exceptions=True,
    )

    winners = [result for result in results if isinstance(result, Order)]
    losers = [result for result in results if isinstance(result, OrderNotEligibleError)]
    assert len(winners) == 1
    assert len(losers) == 1

    stored = await store.get_order(order.id)
    assert stored.courier_id == winners[0].courier_id
    assert stored.version == order.version + 1


@pytest.mark.asyncio
async def test_courier_rejects_assignment(
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    admin: RequestContext,
    courier: RequestContext,
    other_courier: RequestContext,
) -> None:
    """A rejected order is ready for pickup again and can go to another courier."""
    order = await make_order(OrderStatus.READY_FOR_PICKUP)
    await assignments.assign_courier(admin, order.id, courier.actor_id)

    result = await assignments.courier_respond(courier, order.id, CourierResponse.REJECT)

    assert result.status == OrderStatus.READY_FOR_PICKUP
    assert result.order.courier_id is None
    assert "rejected" in result.message

    reassigned = await assignments.assign_courier(admin, order.id, other_courier.actor_id)
    assert reassigned.courier_id == other_courier.actor_id


@pytest.mark.asyncio
async def test_courier_accepts_and_delivers(
    assignments: CourierAssignmentManager,
    order_service: OrderService,
    make_order: OrderFactory,
    admin: RequestContext,
    courier: RequestContext,
) -> None:
    order = await make_order(OrderStatus.READY_FOR_PICKUP)
    await assignments.assign_courier(admin, order.id, courier.actor_id)

    result = await assignments.courier_respond(courier, order.id, CourierResponse.ACCEPT)
    assert result.status == OrderStatus.IN_TRANSIT
    assert result.order.courier_assignment_accepted is True

    delivered = await order_service.update_status(courier, order.id, OrderStatus.DELIVERED)
    assert delivered.status == OrderStatus.DELIVERED
    assert delivered.delivered_at is not None
    assert delivered.courier_id == courier.actor_id


@pytest.mark.asyncio
async def test_only_assigned_courier_responds(
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    other_courier: RequestContext,
) -> None:
    order = await make_order(OrderStatus.ASSIGNED)

    with pytest.raises(AuthorizationError):
        await assignments.courier_respond(other_courier, order.id, CourierResponse.ACCEPT)


@pytest.mark.asyncio
async def test_respond_requires_assigned(
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    courier: RequestContext,
) -> None:
    order = await make_order(OrderStatus.IN_TRANSIT)

    with pytest.raises(OrderNotEligibleError):
        await assignments.courier_respond(courier, order.id, CourierResponse.REJECT)


@pytest.mark.asyncio
async def test_unassign(
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    admin: RequestContext,
) -> None:
    order = await make_order(OrderStatus.ASSIGNED)

    unassigned = await assignments.unassign_courier(admin, order.id)

    assert unassigned.status == OrderStatus.READY_FOR_PICKUP
    assert unassigned.courier_id is None


@pytest.mark.asyncio
async def test_unassign_in_transit_is_refused(
    store: MemoryStore,
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    admin: RequestContext,
    courier: RequestContext,
) -> None:
    order = await make_order(OrderStatus.IN_TRANSIT)

    with pytest.raises(OrderNotEligibleError):
        await assignments.unassign_courier(admin, order.id)

    assert (await store.get_order(order.id)).courier_id == courier.actor_id


@pytest.mark.asyncio
async def test_list_available_couriers(
    assignments: CourierAssignmentManager,
    courier: RequestContext,
    other_courier: RequestContext,
    offline_courier: RequestContext,
) -> None:
    await assignments.update_courier_status(other_courier, is_available=False)

    available = await assignments.list_available_couriers()
    assert [c.id for c in available] == [courier.actor_id]

    assert await assignments.list_available_couriers(search="nobody") == []
    assert len(await assignments.list_available_couriers(search="mike")) == 1


@pytest.mark.asyncio
async def test_courier_status_requires_a_change(
    assignments: CourierAssignmentManager,
    courier: RequestContext,
    customer: RequestContext,
) -> None:
    with pytest.raises(ValidationError):
        await assignments.update_courier_status(courier)
    with pytest.raises(AuthorizationError):
        await assignments.update_courier_status(customer, is_online=True)

    status = await assignments.get_courier_status(courier)
    assert status.is_eligible


@pytest.mark.asyncio
async def test_list_courier_orders(
    assignments: CourierAssignmentManager,
    make_order: OrderFactory,
    courier: RequestContext,
) -> None:
    idle = await make_order(OrderStatus.ASSIGNED)
    active = await make_order(OrderStatus.IN_TRANSIT)
    done = await make_order(OrderStatus.DELIVERED)
    await make_order(OrderStatus.READY_FOR_PICKUP)

    assert [o.id for o in await assignments.list_courier_orders(courier)] == [idle.id]
    assert [o.id for o in await assignments.list_courier_orders(courier, accepted=True)] == [
        active.id,
        done.id,
    ]
