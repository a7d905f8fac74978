"""Reset all stored state (useful for testing)."""

import asyncio

from orderflow.config import get_settings
from orderflow.state import build_store


async def reset_all_state() -> None:
    """Clear every order, courier, account, token, menu item and favorite."""
    backend = get_settings().store_backend
    print(f"\n⚠️  WARNING: This will delete ALL data from the {backend} store!")
    response = input("Are you sure? (yes/no): ")

    if response.lower() != "yes":
        print("Cancelled.")
        return

    print("\nResetting state...")

    store = build_store()
    await store.connect()
    try:
        await store.clear()
    finally:
        await store.disconnect()

    print(f"✓ All state cleared from the {backend} store\n")


if __name__ == "__main__":
    asyncio.run(reset_all_state())
