"""Order-related data models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from orderflow.models.common import utcnow


class OrderStatus(str, Enum):
    """Order status progression."""

    PLACED = "PLACED"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY_FOR_PICKUP = "READY_FOR_PICKUP"
    ASSIGNED = "ASSIGNED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REJECTED}
)


class OrderItem(BaseModel):
    """Individual item in an order, priced at placement time."""

    model_config = ConfigDict(frozen=True)

    menu_item_id: int
    name: str
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def subtotal(self) -> Decimal:
        """Price of this line."""
        return self.unit_price * Decimal(self.quantity)


class OrderLine(BaseModel):
    """Requested menu item and quantity when placing an order."""

    menu_item_id: int
    quantity: int = Field(ge=1)


class Order(BaseModel):
    """Complete order record.

    ``items`` and the owning parties never change after placement, and
    ``total_price`` is always derived from the item snapshots. Status,
    courier and ratings only change through the services, which write them
    with an atomic store update.
    """

    id: int
    restaurant_id: int
    customer_id: int
    status: OrderStatus = OrderStatus.PLACED

    # Items
    items: list[OrderItem] = Field(min_length=1)

    # Assignment
    courier_id: int | None = None
    courier_assignment_accepted: bool = False

    # Timing
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    delivered_at: datetime | None = None

    # Reviews
    customer_rating: int | None = Field(default=None, ge=1, le=5)
    customer_review_text: str | None = None
    customer_rated_at: datetime | None = None
    courier_rating: int | None = Field(default=None, ge=1, le=5)
    courier_review_text: str | None = None
    courier_rated_at: datetime | None = None

    # Metadata
    version: int = 0
    source_order_id: int | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_price(self) -> Decimal:
        """Sum of quantity x unit price snapshot over all items."""
        return sum((item.subtotal for item in self.items), Decimal("0"))

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_active(self) -> bool:
        return not self.status.is_terminal

    def search_text(self) -> str:
        """Lower-cased text the order list search matches against."""
        names = " ".join(item.name for item in self.items)
        return f"{self.id} {names}".lower()
