"""Restaurant menu management."""

from decimal import Decimal
from typing import Any

import pydantic

from orderflow.errors import AuthorizationError, NotFoundError, ValidationError
from orderflow.models.actor import RequestContext, Role
from orderflow.models.menu import MenuItem
from orderflow.services.base import BaseService
from orderflow.state.store import OrderStore

_EDITABLE_FIELDS = {"name", "description", "price", "is_available"}


def _build_item(data: dict[str, Any]) -> MenuItem:
    try:
        return MenuItem.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid menu item: {e.errors()[0]['msg']}") from e


class MenuService(BaseService):
    """Menu CRUD for restaurants. Placed orders keep their own price snapshots."""

    def __init__(self, store: OrderStore):
        super().__init__("menu_service", store)

    async def _own_item(self, ctx: RequestContext, item_id: int) -> MenuItem:
        self.require_role(ctx, Role.RESTAURANT)
        item = await self.store.get_menu_item(item_id)
        if item is None:
            raise NotFoundError(f"Menu item {item_id} not found")
        if item.restaurant_id != ctx.actor_id:
            raise AuthorizationError(f"Menu item {item_id} belongs to another restaurant")
        return item

    async def create_item(
        self,
        ctx: RequestContext,
        name: str,
        price: Decimal,
        description: str | None = None,
        is_available: bool = True,
    ) -> MenuItem:
        """Add a dish to the acting restaurant's menu."""
        self.require_role(ctx, Role.RESTAURANT)

        item = _build_item(
            {
                "id": await self.store.next_id("menu"),
                "restaurant_id": ctx.actor_id,
                "name": name,
                "description": description,
                "price": price,
                "is_available": is_available,
            }
        )
        await self.store.save_menu_item(item)

        self.audit.logger.info(
            "menu_item_created", item_id=item.id, restaurant_id=item.restaurant_id, price=str(item.price)
        )
        return item

    async def update_item(self, ctx: RequestContext, item_id: int, changes: dict[str, Any]) -> MenuItem:
        """Change name, description, price or availability of a dish."""
        current = await self._own_item(ctx, item_id)

        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        item = _build_item({**current.model_dump(), **changes})
        await self.store.save_menu_item(item)

        self.audit.logger.info("menu_item_updated", item_id=item.id, fields=sorted(changes))
        return item

    async def delete_item(self, ctx: RequestContext, item_id: int) -> None:
        await self._own_item(ctx, item_id)
        await self.store.delete_menu_item(item_id)
        self.audit.logger.info("menu_item_deleted", item_id=item_id, restaurant_id=ctx.actor_id)

    async def list_menu(self, restaurant_id: int, include_unavailable: bool = False) -> list[MenuItem]:
        restaurant = await self.store.get_actor(restaurant_id)
        if restaurant is None or restaurant.role != Role.RESTAURANT:
            raise NotFoundError(f"Restaurant {restaurant_id} not found")
        items = await self.store.list_menu_items(restaurant_id)
        if include_unavailable:
            return items
        return [item for item in items if item.is_available]
