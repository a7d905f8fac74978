"""Tests for order placement, status updates and role-scoped listing."""

from decimal import Decimal
from typing import Awaitable, Callable

import pytest

from orderflow.errors import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from orderflow.models.actor import RequestContext
from orderflow.models.menu import MenuItem
from orderflow.models.order import Order, OrderLine, OrderStatus
from orderflow.services import MenuService, OrderService
from orderflow.state.store import MemoryStore

OrderFactory = Callable[..., Awaitable[Order]]


@pytest.mark.asyncio
async def test_place_order_snapshots_prices(
    order_service: OrderService,
    customer: RequestContext,
    restaurant: RequestContext,
    menu: list[MenuItem],
) -> None:
    order = await order_service.place_order(
        customer,
        restaurant.actor_id,
        [OrderLine(menu_item_id=menu[0].id, quantity=3)],
    )

    assert order.status == OrderStatus.PLACED
    assert order.customer_id == customer.actor_id
    assert order.items[0].unit_price == Decimal("12.50")
    assert order.items[0].name == "Margherita Pizza"
    assert order.total_price == Decimal("37.50")
    assert order.version == 0


@pytest.mark.asyncio
async def test_menu_changes_do_not_reprice_orders(
    order_service: OrderService,
    menu_service: MenuService,
    make_order: OrderFactory,
    customer: RequestContext,
    restaurant: RequestContext,
    menu: list[MenuItem],
) -> None:
    order = await make_order()

    await menu_service.update_item(restaurant, menu[0].id, {"price": Decimal("99.00")})

    assert (await order_service.get_order(customer, order.id)).total_price == Decimal("27.00")


@pytest.mark.asyncio
async def test_place_order_validation(
    order_service: OrderService,
    menu_service: MenuService,
    customer: RequestContext,
    restaurant: RequestContext,
    other_restaurant: RequestContext,
    menu: list[MenuItem],
) -> None:
    with pytest.raises(ValidationError):
        await order_service.place_order(customer, restaurant.actor_id, [])

    with pytest.raises(NotFoundError):
        await order_service.place_order(
            customer, 999, [OrderLine(menu_item_id=menu[0].id, quantity=1)]
        )

    # Menu item of another restaurant
    with pytest.raises(ValidationError):
        await order_service.place_order(
            customer, other_restaurant.actor_id, [OrderLine(menu_item_id=menu[0].id, quantity=1)]
        )

    await menu_service.update_item(restaurant, menu[1].id, {"is_available": False})
    with pytest.raises(ValidationError):
        await order_service.place_order(
            customer, restaurant.actor_id, [OrderLine(menu_item_id=menu[1].id, quantity=1)]
        )


@pytest.mark.asyncio
async def test_only_customers_place_orders(
    order_service: OrderService,
    restaurant: RequestContext,
    menu: list[MenuItem],
) -> None:
    with pytest.raises(AuthorizationError):
        await order_service.place_order(
            restaurant, restaurant.actor_id, [OrderLine(menu_item_id=menu[0].id, quantity=1)]
        )


@pytest.mark.asyncio
async def test_restaurant_walks_the_kitchen_path(
    order_service: OrderService,
    make_order: OrderFactory,
    restaurant: RequestContext,
) -> None:
    order = await make_order()

    for status in (OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY_FOR_PICKUP):
        order = await order_service.update_status(restaurant, order.id, status)
        assert order.status == status

    assert order.version == 3


@pytest.mark.asyncio
async def test_illegal_transition_leaves_order_unchanged(
    store: MemoryStore,
    order_service: OrderService,
    make_order: OrderFactory,
    restaurant: RequestContext,
) -> None:
    """PLACED cannot jump to DELIVERED."""
    order = await make_order()

    with pytest.raises(InvalidTransitionError) as exc_info:
        await order_service.update_status(restaurant, order.id, OrderStatus.DELIVERED)

    assert exc_info.value.current == "PLACED"
    assert exc_info.value.requested == "DELIVERED"
    stored = await store.get_order(order.id)
    assert stored.status == OrderStatus.PLACED
    assert stored.version == order.version


@pytest.mark.asyncio
async def test_terminal_orders_are_frozen(
    order_service: OrderService,
    make_order: OrderFactory,
    restaurant: RequestContext,
) -> None:
    order = await make_order(OrderStatus.CANCELLED)

    with pytest.raises(InvalidTransitionError):
        await order_service.update_status(restaurant, order.id, OrderStatus.CONFIRMED)


@pytest.mark.asyncio
async def test_status_update_authorization(
    order_service: OrderService,
    make_order: OrderFactory,
    customer: RequestContext,
    other_restaurant: RequestContext,
    courier: RequestContext,
) -> None:
    order = await make_order()

    # Customers own no edges
    with pytest.raises(AuthorizationError):
        await order_service.update_status(customer, order.id, OrderStatus.CONFIRMED)
    # Another restaurant's order
    with pytest.raises(AuthorizationError):
        await order_service.update_status(other_restaurant, order.id, OrderStatus.CONFIRMED)
    # Couriers are not parties to unassigned orders
    with pytest.raises(AuthorizationError):
        await order_service.update_status(courier, order.id, OrderStatus.CONFIRMED)


@pytest.mark.asyncio
async def test_status_update_cannot_assign(
    order_service: OrderService,
    make_order: OrderFactory,
    admin: RequestContext,
) -> None:
    order = await make_order(OrderStatus.READY_FOR_PICKUP)

    with pytest.raises(ValidationError):
        await order_service.update_status(admin, order.id, OrderStatus.ASSIGNED)


@pytest.mark.asyncio
@pytest.mark.parametrize("start", [OrderStatus.PLACED, OrderStatus.CONFIRMED])
async def test_status_update_to_assigned_off_graph(
    order_service: OrderService,
    make_order: OrderFactory,
    admin: RequestContext,
    start: OrderStatus,
) -> None:
    order = await make_order(start)

    with pytest.raises(InvalidTransitionError):
        await order_service.update_status(admin, order.id, OrderStatus.ASSIGNED)


@pytest.mark.asyncio
async def test_status_update_to_assigned_unknown_order(
    order_service: OrderService,
    admin: RequestContext,
) -> None:
    with pytest.raises(NotFoundError):
        await order_service.update_status(admin, 999, OrderStatus.ASSIGNED)


@pytest.mark.asyncio
async def test_list_orders_is_scoped(
    order_service: OrderService,
    make_order: OrderFactory,
    admin: RequestContext,
    customer: RequestContext,
    other_customer: RequestContext,
    restaurant: RequestContext,
    other_restaurant: RequestContext,
    courier: RequestContext,
) -> None:
    mine = await make_order()
    theirs = await make_order(OrderStatus.ASSIGNED, customer_ctx=other_customer)

    assert {o.id for o in await order_service.list_orders(admin)} == {mine.id, theirs.id}
    assert [o.id for o in await order_service.list_orders(customer)] == [mine.id]
    assert {o.id for o in await order_service.list_orders(restaurant)} == {mine.id, theirs.id}
    assert await order_service.list_orders(other_restaurant) == []
    assert [o.id for o in await order_service.list_orders(courier)] == [theirs.id]

    with pytest.raises(AuthorizationError):
        await order_service.get_order(customer, theirs.id)


@pytest.mark.asyncio
async def test_list_orders_filters(
    order_service: OrderService,
    make_order: OrderFactory,
    admin: RequestContext,
) -> None:
    placed = await make_order()
    ready = await make_order(OrderStatus.READY_FOR_PICKUP)

    found = await order_service.list_orders(admin, statuses=[OrderStatus.READY_FOR_PICKUP])
    assert [o.id for o in found] == [ready.id]

    assert len(await order_service.list_orders(admin, search="margherita")) == 2
    assert await order_service.list_orders(admin, search="sushi") == []
    assert placed.id in [o.id for o in await order_service.list_orders(admin, search=str(placed.id))]


@pytest.mark.asyncio
async def test_active_and_old_customer_orders(
    order_service: OrderService,
    make_order: OrderFactory,
    customer: RequestContext,
) -> None:
    active = await make_order(OrderStatus.IN_TRANSIT)
    delivered = await make_order(OrderStatus.DELIVERED)
    rejected = await make_order(OrderStatus.REJECTED)

    assert [o.id for o in await order_service.list_customer_orders(customer)] == [active.id]
    assert {o.id for o in await order_service.list_customer_orders(customer, old=True)} == {
        delivered.id,
        rejected.id,
    }


@pytest.mark.asyncio
async def test_confirmed_order_cannot_skip_to_delivered(
    order_service: OrderService,
    make_order: OrderFactory,
    restaurant: RequestContext,
) -> None:
    order = await make_order(OrderStatus.CONFIRMED)

    with pytest.raises(InvalidTransitionError):
        await order_service.update_status(restaurant, order.id, OrderStatus.DELIVERED)
