"""Restaurant menu models."""

from decimal import Decimal

from pydantic import BaseModel, Field


class MenuItem(BaseModel):
    """A dish offered by a restaurant at its current price."""

    id: int
    restaurant_id: int
    name: str = Field(min_length=1)
    description: str | None = None
    price: Decimal = Field(ge=0)
    is_available: bool = True
