"""Request bodies, views and response envelopes for the REST API."""

from decimal import Decimal
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from orderflow.models.actor import Role
from orderflow.models.order import Order, OrderLine, OrderStatus

T = TypeVar("T")


# Envelopes


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope wrapping every payload."""

    status: int = 200
    message: str = "ok"
    data: T | None = None
    count: int | None = None


class ErrorResponse(BaseModel):
    """Error envelope; ``kind`` is the domain error class name."""

    status: int
    kind: str
    message: str


def envelope(data: Any = None, message: str = "ok", status: int = 200) -> dict[str, Any]:
    """Wrap a payload, counting list payloads."""
    return {
        "status": status,
        "message": message,
        "data": data,
        "count": len(data) if isinstance(data, list) else None,
    }


# Views


class OrderView(Order):
    """Order as shown to an actor, with per-actor hints."""

    is_favorite: bool | None = None
    allowed_transitions: list[OrderStatus] = Field(default_factory=list)

    @classmethod
    def build(
        cls,
        order: Order,
        is_favorite: bool | None = None,
        allowed_transitions: list[OrderStatus] | None = None,
    ) -> "OrderView":
        return cls.model_validate(
            {
                **order.model_dump(),
                "is_favorite": is_favorite,
                "allowed_transitions": allowed_transitions or [],
            }
        )


# Requests


class PlaceOrderRequest(BaseModel):
    """Request to place a new order."""

    restaurant_id: int
    items: list[OrderLine]


class StatusUpdateRequest(BaseModel):
    """Request to move an order to another status."""

    status: OrderStatus


class ReviewRequest(BaseModel):
    """Optional free text attached to a rating."""

    model_config = ConfigDict(populate_by_name=True)

    review_text: str | None = Field(default=None, alias="reviewText", max_length=2000)


class CourierStatusUpdate(BaseModel):
    is_online: bool | None = None
    is_available: bool | None = None


class MenuItemCreate(BaseModel):
    name: str
    price: Decimal
    description: str | None = None
    is_available: bool = True


class MenuItemUpdate(BaseModel):
    """Partial menu item update; only the fields sent are changed."""

    name: str | None = None
    price: Decimal | None = None
    description: str | None = None
    is_available: bool | None = None


class CreateActorRequest(BaseModel):
    """Admin request to create an account."""

    role: Role
    name: str
    email: EmailStr | None = None
    phone_number: str | None = None
    profile_picture_url: str | None = None


class BanRequest(BaseModel):
    banned: bool = True
