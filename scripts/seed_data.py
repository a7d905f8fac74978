"""Seed accounts, couriers and menus for local development."""

import asyncio
from decimal import Decimal

from orderflow.config import get_settings
from orderflow.models.actor import RequestContext, Role
from orderflow.services import AccountService, CourierAssignmentManager, MenuService
from orderflow.state import build_store
from orderflow.state.store import OrderStore

MENUS = {
    "Luigi's Pizzeria": [
        ("Pepperoni Pizza", "15.99", "Tomato, mozzarella, pepperoni"),
        ("Margherita Pizza", "13.99", "Tomato, mozzarella, basil"),
        ("Caesar Salad", "8.99", None),
    ],
    "Burger Barn": [
        ("Cheeseburger", "11.49", "Beef patty, cheddar, lettuce"),
        ("Chicken Burger", "10.99", None),
        ("Fries", "3.99", None),
    ],
}

COURIERS = [
    ("Mike Johnson", "+1555000101", True),
    ("Sarah Lee", "+1555000102", True),
    ("Carlos Rodriguez", "+1555000103", False),
]

CUSTOMERS = [
    ("John Doe", "john.doe@example.com"),
    ("Jane Smith", "jane.smith@example.com"),
]


async def seed_admin(store: OrderStore) -> str:
    """Create the admin account and return its token."""
    print("Seeding admin...")

    accounts = AccountService(store)
    admin = await accounts.register(Role.ADMIN, "Admin", email="admin@example.com")
    token = await accounts.issue_token(admin.id)

    print(f"  ✓ Added admin #{admin.id}")
    return token


async def seed_restaurants(store: OrderStore) -> dict[str, str]:
    """Seed restaurants with their menus."""
    print("Seeding restaurants and menus...")

    accounts = AccountService(store)
    menu = MenuService(store)
    tokens = {}

    for name, dishes in MENUS.items():
        restaurant = await accounts.register(Role.RESTAURANT, name)
        ctx = RequestContext(actor=restaurant)
        for dish, price, description in dishes:
            await menu.create_item(ctx, dish, Decimal(price), description=description)
        tokens[name] = await accounts.issue_token(restaurant.id)
        print(f"  ✓ Added {name} #{restaurant.id} ({len(dishes)} dishes)")

    return tokens


async def seed_couriers(store: OrderStore) -> dict[str, str]:
    """Seed couriers, some of them online and available."""
    print("Seeding couriers...")

    accounts = AccountService(store)
    assignments = CourierAssignmentManager(store)
    tokens = {}

    for name, phone, online in COURIERS:
        courier = await accounts.register(Role.COURIER, name, phone_number=phone)
        if online:
            await assignments.update_courier_status(
                RequestContext(actor=courier), is_online=True, is_available=True
            )
        tokens[name] = await accounts.issue_token(courier.id)
        print(f"  ✓ Added {name} #{courier.id} (online: {online})")

    return tokens


async def seed_customers(store: OrderStore) -> dict[str, str]:
    print("Seeding customers...")

    accounts = AccountService(store)
    tokens = {}

    for name, email in CUSTOMERS:
        customer = await accounts.register(Role.CUSTOMER, name, email=email)
        tokens[name] = await accounts.issue_token(customer.id)
        print(f"  ✓ Added {name} #{customer.id}")

    return tokens


async def main() -> None:
    """Run all seed functions."""
    print("\n" + "=" * 50)
    print("  Seeding Orderflow Data")
    print("=" * 50 + "\n")

    if get_settings().store_backend != "redis":
        print("⚠️  STORE_BACKEND is not 'redis'; seeded data will vanish with this process.\n")

    store = build_store()
    await store.connect()

    try:
        admin_token = await seed_admin(store)
        tokens = {
            **await seed_restaurants(store),
            **await seed_couriers(store),
            **await seed_customers(store),
        }
    finally:
        await store.disconnect()

    print("\n" + "=" * 50)
    print("  ✓ All data seeded successfully!")
    print("=" * 50)
    print(f"\nAdmin token: {admin_token}")
    for name, token in tokens.items():
        print(f"  {name}: {token}")
    print()


if __name__ == "__main__":
    asyncio.run(main())
