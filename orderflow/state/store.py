"""Record store interface and the in-process implementation.

All order mutations go through :meth:`OrderStore.update_order`, a read-modify-write
that runs ``mutate`` against the current record and persists its result
atomically per order. ``mutate`` aborts the write by raising.
"""

import asyncio
import time
import weakref
from abc import ABC, abstractmethod
from typing import Callable, TypeVar

from orderflow.errors import NotFoundError
from orderflow.models.actor import Actor
from orderflow.models.common import utcnow
from orderflow.models.courier import Courier
from orderflow.models.menu import MenuItem
from orderflow.models.order import Order
from orderflow.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
Mutator = Callable[[T], T]


def stamp_revision(current: Order, updated: Order) -> Order:
    """Bump version and modification time of a rewritten order."""
    return updated.model_copy(
        update={"version": current.version + 1, "updated_at": utcnow()}
    )


class OrderStore(ABC):
    """Persistence for orders, couriers, actors, tokens, menus and favorites."""

    async def connect(self) -> None:
        """Open backing connections, if any."""

    async def disconnect(self) -> None:
        """Close backing connections, if any."""

    @abstractmethod
    async def next_id(self, sequence: str) -> int:
        """Return the next integer id of a named sequence."""

    @abstractmethod
    async def clear(self) -> None:
        """Drop every record (used by resets and tests)."""

    # Orders

    @abstractmethod
    async def insert_order(self, order: Order) -> Order: ...

    @abstractmethod
    async def get_order(self, order_id: int) -> Order | None: ...

    @abstractmethod
    async def list_orders(self) -> list[Order]: ...

    @abstractmethod
    async def update_order(self, order_id: int, mutate: Mutator[Order]) -> Order:
        """Atomically replace an order with ``mutate(current)``.

        Raises:
            NotFoundError: no such order.
            ConflictError: concurrent writers kept winning (optimistic stores only).
        """

    # Couriers

    @abstractmethod
    async def save_courier(self, courier: Courier) -> Courier: ...

    @abstractmethod
    async def get_courier(self, courier_id: int) -> Courier | None: ...

    @abstractmethod
    async def list_couriers(self) -> list[Courier]: ...

    @abstractmethod
    async def update_courier(self, courier_id: int, mutate: Mutator[Courier]) -> Courier: ...

    # Actors and tokens

    @abstractmethod
    async def save_actor(self, actor: Actor) -> Actor: ...

    @abstractmethod
    async def get_actor(self, actor_id: int) -> Actor | None: ...

    @abstractmethod
    async def list_actors(self) -> list[Actor]: ...

    @abstractmethod
    async def update_actor(self, actor_id: int, mutate: Mutator[Actor]) -> Actor: ...

    @abstractmethod
    async def save_token(self, token: str, actor_id: int, ttl: int) -> None: ...

    @abstractmethod
    async def resolve_token(self, token: str) -> int | None:
        """Return the actor id behind an unexpired token."""

    # Menu

    @abstractmethod
    async def save_menu_item(self, item: MenuItem) -> MenuItem: ...

    @abstractmethod
    async def get_menu_item(self, item_id: int) -> MenuItem | None: ...

    @abstractmethod
    async def list_menu_items(self, restaurant_id: int) -> list[MenuItem]: ...

    @abstractmethod
    async def delete_menu_item(self, item_id: int) -> bool: ...

    # Favorites

    @abstractmethod
    async def add_favorite(self, customer_id: int, order_id: int) -> bool:
        """Add to the customer's favorites; False if it was already there."""

    @abstractmethod
    async def remove_favorite(self, customer_id: int, order_id: int) -> bool:
        """Remove from the customer's favorites; False if it was not there."""

    @abstractmethod
    async def list_favorites(self, customer_id: int) -> list[int]: ...


class MemoryStore(OrderStore):
    """Process-local store serializing writes with one ``asyncio.Lock`` per record."""

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self._orders: dict[int, Order] = {}
        self._couriers: dict[int, Courier] = {}
        self._actors: dict[int, Actor] = {}
        self._menu: dict[int, MenuItem] = {}
        self._tokens: dict[str, tuple[int, float]] = {}
        self._favorites: dict[int, set[int]] = {}
        self._sequences: dict[str, int] = {}
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock(self, key: str) -> asyncio.Lock:
        """Lock for one record key; dropped once no holder or waiter references it."""
        return self._locks.setdefault(key, asyncio.Lock())

    async def next_id(self, sequence: str) -> int:
        async with self._lock(f"seq:{sequence}"):
            value = self._sequences.get(sequence, 0) + 1
            self._sequences[sequence] = value
            return value

    async def clear(self) -> None:
        self._reset()
        logger.info("store_cleared", backend="memory")

    # Orders

    async def insert_order(self, order: Order) -> Order:
        self._orders[order.id] = order.model_copy(deep=True)
        return order

    async def get_order(self, order_id: int) -> Order | None:
        order = self._orders.get(order_id)
        return order.model_copy(deep=True) if order else None

    async def list_orders(self) -> list[Order]:
        return [self._orders[key].model_copy(deep=True) for key in sorted(self._orders)]

    async def update_order(self, order_id: int, mutate: Mutator[Order]) -> Order:
        async with self._lock(f"order:{order_id}"):
            current = self._orders.get(order_id)
            if current is None:
                raise NotFoundError(f"Order {order_id} not found")
            updated = stamp_revision(current, mutate(current.model_copy(deep=True)))
            self._orders[order_id] = updated
            return updated.model_copy(deep=True)

    # Couriers

    async def save_courier(self, courier: Courier) -> Courier:
        self._couriers[courier.id] = courier.model_copy(deep=True)
        return courier

    async def get_courier(self, courier_id: int) -> Courier | None:
        courier = self._couriers.get(courier_id)
        return courier.model_copy(deep=True) if courier else None

    async def list_couriers(self) -> list[Courier]:
        return [self._couriers[key].model_copy(deep=True) for key in sorted(self._couriers)]

    async def update_courier(self, courier_id: int, mutate: Mutator[Courier]) -> Courier:
        async with self._lock(f"courier:{courier_id}"):
            current = self._couriers.get(courier_id)
            if current is None:
                raise NotFoundError(f"Courier {courier_id} not found")
            updated = mutate(current.model_copy(deep=True))
            self._couriers[courier_id] = updated
            return updated.model_copy(deep=True)

    # Actors and tokens

    async def save_actor(self, actor: Actor) -> Actor:
        self._actors[actor.id] = actor.model_copy(deep=True)
        return actor

    async def get_actor(self, actor_id: int) -> Actor | None:
        actor = self._actors.get(actor_id)
        return actor.model_copy(deep=True) if actor else None

    async def list_actors(self) -> list[Actor]:
        return [self._actors[key].model_copy(deep=True) for key in sorted(self._actors)]

    async def update_actor(self, actor_id: int, mutate: Mutator[Actor]) -> Actor:
        async with self._lock(f"actor:{actor_id}"):
            current = self._actors.get(actor_id)
            if current is None:
                raise NotFoundError(f"Actor {actor_id} not found")
            updated = mutate(current.model_copy(deep=True))
            self._actors[actor_id] = updated
            return updated.model_copy(deep=True)

    async def save_token(self, token: str, actor_id: int, ttl: int) -> None:
        self._tokens[token] = (actor_id, time.monotonic() + ttl)

    async def resolve_token(self, token: str) -> int | None:
        entry = self._tokens.get(token)
        if entry is None:
            return None
        actor_id, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._tokens[token]
            return None
        return actor_id

    # Menu

    async def save_menu_item(self, item: MenuItem) -> MenuItem:
        self._menu[item.id] = item.model_copy(deep=True)
        return item

    async def get_menu_item(self, item_id: int) -> MenuItem | None:
        item = self._menu.get(item_id)
        return item.model_copy(deep=True) if item else None

    async def list_menu_items(self, restaurant_id: int) -> list[MenuItem]:
        return [
            self._menu[key].model_copy(deep=True)
            for key in sorted(self._menu)
            if self._menu[key].restaurant_id == restaurant_id
        ]

    async def delete_menu_item(self, item_id: int) -> bool:
        return self._menu.pop(item_id, None) is not None

    # Favorites

    async def add_favorite(self, customer_id: int, order_id: int) -> bool:
        favorites = self._favorites.setdefault(customer_id, set())
        if order_id in favorites:
            return False
        favorites.add(order_id)
        return True

    async def remove_favorite(self, customer_id: int, order_id: int) -> bool:
        favorites = self._favorites.get(customer_id, set())
        if order_id not in favorites:
            return False
        favorites.discard(order_id)
        return True

    async def list_favorites(self, customer_id: int) -> list[int]:
        return sorted(self._favorites.get(customer_id, set()))
