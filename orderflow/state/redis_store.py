"""Redis-backed record store shared by every API worker."""

from typing import TypeVar

import redis.asyncio as redis
from pydantic import BaseModel
from redis.exceptions import WatchError

from orderflow.config import get_settings
from orderflow.errors import ConflictError, NotFoundError
from orderflow.models.actor import Actor
from orderflow.models.courier import Courier
from orderflow.models.menu import MenuItem
from orderflow.models.order import Order
from orderflow.state.store import Mutator, OrderStore, stamp_revision
from orderflow.utils.logging import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class RedisStore(OrderStore):
    """Centralized record store using Redis.

    Records are JSON strings under ``<kind>:<id>`` with a sorted-set index per
    kind. Read-modify-write updates use ``WATCH``/``MULTI``: if another writer
    touches the key between the read and ``EXEC`` the update is re-run against
    the fresh record, up to ``store_max_retries`` times.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        max_retries: int | None = None,
        client: redis.Redis | None = None,
    ) -> None:
        settings = get_settings()
        self.redis_client: redis.Redis | None = client
        self.redis_url = redis_url or settings.redis_url
        self.max_retries = max_retries or settings.store_max_retries

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self.redis_client is None:
            self.redis_client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("redis_connected", url=self.redis_url)

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
            self.redis_client = None
            logger.info("redis_disconnected")

    async def _client(self) -> redis.Redis:
        if not self.redis_client:
            await self.connect()
        return self.redis_client

    async def ping(self) -> bool:
        client = await self._client()
        return bool(await client.ping())

    async def next_id(self, sequence: str) -> int:
        client = await self._client()
        return int(await client.incr(f"seq:{sequence}"))

    async def clear(self) -> None:
        client = await self._client()
        await client.flushdb()
        logger.info("store_cleared", backend="redis")

    # Generic record helpers

    async def _put(self, kind: str, record_id: int, model: BaseModel) -> None:
        client = await self._client()
        async with client.pipeline(transaction=True) as pipe:
            pipe.set(f"{kind}:{record_id}", model.model_dump_json())
            pipe.zadd(f"{kind}s", {str(record_id): record_id})
            await pipe.execute()
        logger.debug("record_saved", kind=kind, record_id=record_id)

    async def _get(self, kind: str, record_id: int, model_cls: type[M]) -> M | None:
        client = await self._client()
        raw = await client.get(f"{kind}:{record_id}")
        return model_cls.model_validate_json(raw) if raw else None

    async def _list(self, kind: str, model_cls: type[M]) -> list[M]:
        client = await self._client()
        ids = await client.zrange(f"{kind}s", 0, -1)
        if not ids:
            return []
        raws = await client.mget([f"{kind}:{record_id}" for record_id in ids])
        return [model_cls.model_validate_json(raw) for raw in raws if raw]

    async def _update(
        self,
        kind: str,
        record_id: int,
        model_cls: type[M],
        mutate: Mutator[M],
        versioned: bool = False,
    ) -> M:
        client = await self._client()
        key = f"{kind}:{record_id}"

        for attempt in range(1, self.max_retries + 1):
            async with client.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    if raw is None:
                        raise NotFoundError(f"{kind.capitalize()} {record_id} not found")

                    current = model_cls.model_validate_json(raw)
                    updated = mutate(current.model_copy(deep=True))
                    if versioned:
                        updated = stamp_revision(current, updated)

                    pipe.multi()
                    pipe.set(key, updated.model_dump_json())
                    await pipe.execute()
                    return updated
                except WatchError:
                    logger.info(
                        "optimistic_write_retry",
                        key=key,
                        attempt=attempt,
                        max_retries=self.max_retries,
                    )

        raise ConflictError(f"{kind.capitalize()} {record_id} was modified concurrently")

    # Orders

    async def insert_order(self, order: Order) -> Order:
        await self._put("order", order.id, order)
        return order

    async def get_order(self, order_id: int) -> Order | None:
        return await self._get("order", order_id, Order)

    async def list_orders(self) -> list[Order]:
        return await self._list("order", Order)

    async def update_order(self, order_id: int, mutate: Mutator[Order]) -> Order:
        return await self._update("order", order_id, Order, mutate, versioned=True)

    # Couriers

    async def save_courier(self, courier: Courier) -> Courier:
        await self._put("courier", courier.id, courier)
        return courier

    async def get_courier(self, courier_id: int) -> Courier | None:
        return await self._get("courier", courier_id, Courier)

    async def list_couriers(self) -> list[Courier]:
        return await self._list("courier", Courier)

    async def update_courier(self, courier_id: int, mutate: Mutator[Courier]) -> Courier:
        return await self._update("courier", courier_id, Courier, mutate)

    # Actors and tokens

    async def save_actor(self, actor: Actor) -> Actor:
        await self._put("actor", actor.id, actor)
        return actor

    async def get_actor(self, actor_id: int) -> Actor | None:
        return await self._get("actor", actor_id, Actor)

    async def list_actors(self) -> list[Actor]:
        return await self._list("actor", Actor)

    async def update_actor(self, actor_id: int, mutate: Mutator[Actor]) -> Actor:
        return await self._update("actor", actor_id, Actor, mutate)

    async def save_token(self, token: str, actor_id: int, ttl: int) -> None:
        client = await self._client()
        await client.set(f"token:{token}", actor_id, ex=ttl)

    async def resolve_token(self, token: str) -> int | None:
        client = await self._client()
        value = await client.get(f"token:{token}")
        return int(value) if value is not None else None

    # Menu

    async def save_menu_item(self, item: MenuItem) -> MenuItem:
        client = await self._client()
        async with client.pipeline(transaction=True) as pipe:
            pipe.set(f"menu:{item.id}", item.model_dump_json())
            pipe.zadd(f"menu:restaurant:{item.restaurant_id}", {str(item.id): item.id})
            await pipe.execute()
        return item

    async def get_menu_item(self, item_id: int) -> MenuItem | None:
        return await self._get("menu", item_id, MenuItem)

    async def list_menu_items(self, restaurant_id: int) -> list[MenuItem]:
        client = await self._client()
        ids = await client.zrange(f"menu:restaurant:{restaurant_id}", 0, -1)
        if not ids:
            return []
        raws = await client.mget([f"menu:{item_id}" for item_id in ids])
        return [MenuItem.model_validate_json(raw) for raw in raws if raw]

    async def delete_menu_item(self, item_id: int) -> bool:
        item = await self.get_menu_item(item_id)
        if item is None:
            return False
        client = await self._client()
        async with client.pipeline(transaction=True) as pipe:
            pipe.delete(f"menu:{item_id}")
            pipe.zrem(f"menu:restaurant:{item.restaurant_id}", str(item_id))
            await pipe.execute()
        return True

    # Favorites

    async def add_favorite(self, customer_id: int, order_id: int) -> bool:
        client = await self._client()
        return bool(await client.sadd(f"favorites:{customer_id}", order_id))

    async def remove_favorite(self, customer_id: int, order_id: int) -> bool:
        client = await self._client()
        return bool(await client.srem(f"favorites:{customer_id}", order_id))

    async def list_favorites(self, customer_id: int) -> list[int]:
        client = await self._client()
        members = await client.smembers(f"favorites:{customer_id}")
        return sorted(int(member) for member in members)
