"""Review projections read off delivered orders."""

from datetime import datetime

from pydantic import BaseModel, Field


class CourierReview(BaseModel):
    """A customer's rating of the courier who delivered an order."""

    order_id: int
    courier_id: int
    rating: int = Field(ge=1, le=5)
    review_text: str | None = None
    rated_at: datetime | None = None


class OrderReview(BaseModel):
    """A customer's rating of an order (the restaurant experience)."""

    order_id: int
    restaurant_id: int
    customer_id: int
    rating: int = Field(ge=1, le=5)
    review_text: str | None = None
    rated_at: datetime | None = None
