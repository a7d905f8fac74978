"""Domain services for the order lifecycle."""

from orderflow.services.accounts import AccountService
from orderflow.services.assignment import AssignmentResult, CourierAssignmentManager
from orderflow.services.base import BaseService
from orderflow.services.favorites import FavoritesTracker
from orderflow.services.menu import MenuService
from orderflow.services.orders import OrderService
from orderflow.services.reviews import ReviewRecorder

__all__ = [
    "BaseService",
    "AccountService",
    "AssignmentResult",
    "CourierAssignmentManager",
    "FavoritesTracker",
    "MenuService",
    "OrderService",
    "ReviewRecorder",
]
