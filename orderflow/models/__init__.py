"""Data models for the order lifecycle service."""

from orderflow.models.actor import Actor, RequestContext, Role
from orderflow.models.courier import Courier, CourierResponse
from orderflow.models.menu import MenuItem
from orderflow.models.order import (
    TERMINAL_STATUSES,
    Order,
    OrderItem,
    OrderLine,
    OrderStatus,
)
from orderflow.models.review import CourierReview, OrderReview

__all__ = [
    # Actor
    "Actor",
    "RequestContext",
    "Role",
    # Courier
    "Courier",
    "CourierResponse",
    # Menu
    "MenuItem",
    # Order
    "Order",
    "OrderItem",
    "OrderLine",
    "OrderStatus",
    "TERMINAL_STATUSES",
    # Review
    "CourierReview",
    "OrderReview",
]
