"""Async HTTP client for the Orderflow API."""

from decimal import Decimal
from types import TracebackType
from typing import Any

import httpx

from orderflow.config import get_settings
from orderflow.errors import InternalError, NotFoundError, error_for_kind
from orderflow.models.actor import Actor, Role
from orderflow.models.courier import Courier, CourierResponse
from orderflow.models.menu import MenuItem
from orderflow.models.order import Order, OrderLine, OrderStatus
from orderflow.models.review import CourierReview, OrderReview
from orderflow.utils.logging import get_logger

logger = get_logger(__name__)


class OrderflowClient:
    """
    Client for the REST API under ``/api/v1``.

    Idempotent reads (GET) are retried on transport failures, up to
    ``client_read_retries`` extra attempts. Mutations are sent exactly once:
    a transport failure there surfaces to the caller, who re-reads the
    order to learn whether the write landed. Error envelopes are raised as
    the matching ``OrderflowError`` subclass.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        read_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.client_base_url).rstrip("/")
        self.read_retries = settings.client_read_retries if read_retries is None else read_retries

        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout or settings.client_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "OrderflowClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send one API call and unwrap the envelope's ``data``."""
        attempts = 1 + self.read_retries if method == "GET" else 1
        if params:
            params = {key: value for key, value in params.items() if value is not None}

        for attempt in range(1, attempts + 1):
            try:
                response = await self._http.request(method, path, params=params, json=json)
                break
            except httpx.TransportError as e:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "client_retry",
                    method=method,
                    path=path,
                    attempt=attempt,
                    error=str(e),
                )

        try:
            payload = response.json()
        except ValueError as e:
            raise InternalError(
                f"Unexpected {response.status_code} response from {method} {path}"
            ) from e

        if response.is_error:
            raise error_for_kind(
                payload.get("kind", ""),
                payload.get("message", response.reason_phrase),
            )

        return payload.get("data")

    # Orders

    async def place_order(self, restaurant_id: int, items: list[OrderLine]) -> Order:
        data = await self._request(
            "POST",
            "/orders",
            json={
                "restaurant_id": restaurant_id,
                "items": [line.model_dump() for line in items],
            },
        )
        return Order.model_validate(data)

    async def list_orders(
        self,
        statuses: list[OrderStatus] | None = None,
        search: str | None = None,
    ) -> list[Order]:
        params = {
            "status": [status.value for status in statuses] if statuses else None,
            "search": search,
        }
        data = await self._request("GET", "/orders", params=params)
        return [Order.model_validate(item) for item in data]

    async def get_order(self, order_id: int) -> Order:
        return Order.model_validate(await self._request("GET", f"/orders/{order_id}"))

    async def update_status(self, order_id: int, status: OrderStatus) -> Order:
        data = await self._request(
            "PUT", f"/orders/{order_id}/status", json={"status": status.value}
        )
        return Order.model_validate(data)

    async def assign_courier(self, order_id: int, courier_id: int) -> Order:
        data = await self._request("POST", f"/orders/{order_id}/assign-courier/{courier_id}")
        return Order.model_validate(data)

    async def unassign_courier(self, order_id: int) -> Order:
        data = await self._request("POST", f"/orders/{order_id}/unassign-courier")
        return Order.model_validate(data)

    async def reorder(self, order_id: int) -> Order:
        return Order.model_validate(await self._request("POST", f"/order/re-order/{order_id}"))

    # Couriers

    async def list_available_couriers(self, search: str | None = None) -> list[Courier]:
        data = await self._request("GET", "/couriers/available", params={"search": search})
        return [Courier.model_validate(item) for item in data]

    async def get_courier_status(self) -> Courier:
        return Courier.model_validate(await self._request("GET", "/couriers/status"))

    async def update_courier_status(
        self,
        is_online: bool | None = None,
        is_available: bool | None = None,
    ) -> Courier:
        body = {
            key: value
            for key, value in (("is_online", is_online), ("is_available", is_available))
            if value is not None
        }
        return Courier.model_validate(await self._request("PATCH", "/couriers/status", json=body))

    async def list_courier_orders(self, accepted: bool = False) -> list[Order]:
        data = await self._request(
            "GET", "/couriers/orders", params={"accepted": str(accepted).lower()}
        )
        return [Order.model_validate(item) for item in data]

    async def courier_respond(self, order_id: int, response: CourierResponse) -> Order:
        data = await self._request(
            "POST",
            f"/couriers/orders/{order_id}/respond",
            params={"status": response.value},
        )
        return Order.model_validate(data)

    # Reviews

    async def rate_order(
        self, order_id: int, rating: int, review_text: str | None = None
    ) -> Order:
        data = await self._request(
            "POST",
            f"/order/rate-order/{order_id}",
            params={"rating": rating},
            json={"reviewText": review_text},
        )
        return Order.model_validate(data)

    async def rate_courier(
        self,
        order_id: int,
        rating: int,
        review_text: str | None = None,
        courier_id: int | None = None,
    ) -> CourierReview:
        data = await self._request(
            "POST",
            "/couriers/rate",
            params={"orderPk": order_id, "rating": rating, "courierPk": courier_id},
            json={"reviewText": review_text},
        )
        return CourierReview.model_validate(data)

    async def check_courier_review(self, order_id: int, courier_id: int) -> CourierReview | None:
        try:
            data = await self._request(
                "GET",
                "/couriers/check-review",
                params={"orderPk": order_id, "courierPk": courier_id},
            )
        except NotFoundError:
            return None
        return CourierReview.model_validate(data)

    async def list_order_reviews(self, restaurant_id: int | None = None) -> list[OrderReview]:
        data = await self._request(
            "GET", "/order/get-reviews", params={"restaurant_id": restaurant_id}
        )
        return [OrderReview.model_validate(item) for item in data]

    async def list_courier_reviews(self, courier_id: int) -> list[CourierReview]:
        data = await self._request("GET", f"/couriers/{courier_id}/reviews")
        return [CourierReview.model_validate(item) for item in data]

    # Favorites

    async def add_favorite(self, order_id: int) -> bool:
        return await self._request("POST", f"/customer/add-to-favorite-orders/{order_id}")

    async def remove_favorite(self, order_id: int) -> bool:
        return await self._request("POST", f"/customer/remove-from-favorite-orders/{order_id}")

    async def list_favorites(self) -> list[Order]:
        data = await self._request("GET", "/customer/get-favorite-orders")
        return [Order.model_validate(item) for item in data]

    async def list_customer_orders(self, old: bool = False) -> list[Order]:
        data = await self._request(
            "GET", "/customer/get-active-orders", params={"old": str(old).lower()}
        )
        return [Order.model_validate(item) for item in data]

    # Menu

    async def list_menu(self, restaurant_id: int) -> list[MenuItem]:
        data = await self._request("GET", f"/restaurants/{restaurant_id}/menu")
        return [MenuItem.model_validate(item) for item in data]

    async def create_menu_item(
        self,
        name: str,
        price: Decimal | str,
        description: str | None = None,
        is_available: bool = True,
    ) -> MenuItem:
        data = await self._request(
            "POST",
            "/menu",
            json={
                "name": name,
                "price": str(price),
                "description": description,
                "is_available": is_available,
            },
        )
        return MenuItem.model_validate(data)

    # Admin

    async def create_actor(self, role: Role, name: str, **fields: Any) -> Actor:
        data = await self._request(
            "POST", "/admin/actors", json={"role": role.value, "name": name, **fields}
        )
        return Actor.model_validate(data)

    async def issue_token(self, actor_id: int) -> str:
        data = await self._request("POST", f"/admin/actors/{actor_id}/tokens")
        return data["token"]

    async def set_banned(self, actor_id: int, banned: bool = True) -> Actor:
        data = await self._request("PUT", f"/admin/ban/{actor_id}", json={"banned": banned})
        return Actor.model_validate(data)
