"""Pytest configuration and fixtures."""

from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from orderflow.main import create_app
from orderflow.models.actor import RequestContext, Role
from orderflow.models.common import utcnow
from orderflow.models.menu import MenuItem
from orderflow.models.order import Order, OrderLine, OrderStatus
from orderflow.services import (
    AccountService,
    CourierAssignmentManager,
    FavoritesTracker,
    MenuService,
    OrderService,
    ReviewRecorder,
)
from orderflow.state.store import MemoryStore

OrderFactory = Callable[..., Awaitable[Order]]

# Statuses at or after assignment carry a courier
_WITH_COURIER = {OrderStatus.ASSIGNED, OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED}


@pytest.fixture
def store() -> MemoryStore:
    """Create an empty in-memory store."""
    return MemoryStore()


# Services


@pytest.fixture
def accounts(store: MemoryStore) -> AccountService:
    return AccountService(store)


@pytest.fixture
def order_service(store: MemoryStore) -> OrderService:
    return OrderService(store)


@pytest.fixture
def assignments(store: MemoryStore) -> CourierAssignmentManager:
    return CourierAssignmentManager(store)


@pytest.fixture
def reviews(store: MemoryStore) -> ReviewRecorder:
    return ReviewRecorder(store)


@pytest.fixture
def favorites(store: MemoryStore, order_service: OrderService) -> FavoritesTracker:
    return FavoritesTracker(store, order_service)


@pytest.fixture
def menu_service(store: MemoryStore) -> MenuService:
    return MenuService(store)


# Actors


async def _register(accounts: AccountService, role: Role, name: str) -> RequestContext:
    actor = await accounts.register(role, name)
    return RequestContext(actor=actor)


@pytest_asyncio.fixture
async def admin(accounts: AccountService) -> RequestContext:
    return await _register(accounts, Role.ADMIN, "Admin")


@pytest_asyncio.fixture
async def restaurant(accounts: AccountService) -> RequestContext:
    return await _register(accounts, Role.RESTAURANT, "Luigi's Pizzeria")


@pytest_asyncio.fixture
async def other_restaurant(accounts: AccountService) -> RequestContext:
    return await _register(accounts, Role.RESTAURANT, "Burger Barn")


@pytest_asyncio.fixture
async def customer(accounts: AccountService) -> RequestContext:
    return await _register(accounts, Role.CUSTOMER, "John Doe")


@pytest_asyncio.fixture
async def other_customer(accounts: AccountService) -> RequestContext:
    return await _register(accounts, Role.CUSTOMER, "Jane Smith")


@pytest_asyncio.fixture
async def courier(
    accounts: AccountService, assignments: CourierAssignmentManager
) -> RequestContext:
    """A courier who is online and available."""
    ctx = await _register(accounts, Role.COURIER, "Mike Johnson")
    await assignments.update_courier_status(ctx, is_online=True, is_available=True)
    return ctx


@pytest_asyncio.fixture
async def other_courier(
    accounts: AccountService, assignments: CourierAssignmentManager
) -> RequestContext:
    ctx = await _register(accounts, Role.COURIER, "Sarah Lee")
    await assignments.update_courier_status(ctx, is_online=True, is_available=True)
    return ctx


@pytest_asyncio.fixture
async def offline_courier(accounts: AccountService) -> RequestContext:
    """A freshly registered courier, offline by default."""
    return await _register(accounts, Role.COURIER, "Carlos Rodriguez")


# Menu and orders


@pytest_asyncio.fixture
async def menu(menu_service: MenuService, restaurant: RequestContext) -> list[MenuItem]:
    """Two dishes on the restaurant's menu."""
    return [
        await menu_service.create_item(restaurant, "Margherita Pizza", Decimal("12.50")),
        await menu_service.create_item(restaurant, "Cola", Decimal("2.00")),
    ]


@pytest_asyncio.fixture
async def make_order(
    store: MemoryStore,
    order_service: OrderService,
    restaurant: RequestContext,
    customer: RequestContext,
    courier: RequestContext,
    menu: list[MenuItem],
) -> OrderFactory:
    """Factory placing an order and moving it straight to the requested status."""

    async def factory(
        status: OrderStatus = OrderStatus.PLACED,
        customer_ctx: RequestContext | None = None,
        courier_id: int | None = None,
    ) -> Order:
        order = await order_service.place_order(
            customer_ctx or customer,
            restaurant.actor_id,
            [
                OrderLine(menu_item_id=menu[0].id, quantity=2),
                OrderLine(menu_item_id=menu[1].id, quantity=1),
            ],
        )
        if status == OrderStatus.PLACED:
            return order

        update: dict = {"status": status}
        if status in _WITH_COURIER:
            update["courier_id"] = courier_id or courier.actor_id
            update["courier_assignment_accepted"] = status != OrderStatus.ASSIGNED
        if status == OrderStatus.DELIVERED:
            update["delivered_at"] = utcnow()

        return await store.update_order(order.id, lambda current: current.model_copy(update=update))

    return factory


# HTTP


@pytest_asyncio.fixture
async def tokens(
    accounts: AccountService,
    admin: RequestContext,
    restaurant: RequestContext,
    customer: RequestContext,
    other_customer: RequestContext,
    courier: RequestContext,
    other_courier: RequestContext,
) -> dict[str, str]:
    """Bearer tokens for every fixture actor, keyed by fixture name."""
    actors = {
        "admin": admin,
        "restaurant": restaurant,
        "customer": customer,
        "other_customer": other_customer,
        "courier": courier,
        "other_courier": other_courier,
    }
    return {name: await accounts.issue_token(ctx.actor_id) for name, ctx in actors.items()}


@pytest_asyncio.fixture
async def test_client(store: MemoryStore) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client against an app serving ``store``."""
    transport = ASGITransport(app=create_app(store))
    async with AsyncClient(transport=transport, base_url="http://test/api/v1") as client:
        yield client