"""FastAPI dependencies: store, request context and services."""

from fastapi import Depends, Header, Request

from orderflow.models.actor import RequestContext
from orderflow.services import (
    AccountService,
    CourierAssignmentManager,
    FavoritesTracker,
    MenuService,
    OrderService,
    ReviewRecorder,
)
from orderflow.state.store import OrderStore


def get_store(request: Request) -> OrderStore:
    """Get the store the application was created with."""
    return request.app.state.store


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def get_context(
    request: Request,
    authorization: str | None = Header(default=None),
    store: OrderStore = Depends(get_store),
) -> RequestContext:
    """Resolve the bearer token into the request's credential context."""
    return await AccountService(store).authenticate(
        _bearer_token(authorization),
        request_id=getattr(request.state, "request_id", None),
    )


def get_order_service(store: OrderStore = Depends(get_store)) -> OrderService:
    return OrderService(store)


def get_assignment_manager(store: OrderStore = Depends(get_store)) -> CourierAssignmentManager:
    return CourierAssignmentManager(store)


def get_review_recorder(store: OrderStore = Depends(get_store)) -> ReviewRecorder:
    return ReviewRecorder(store)


def get_favorites_tracker(
    store: OrderStore = Depends(get_store),
    orders: OrderService = Depends(get_order_service),
) -> FavoritesTracker:
    return FavoritesTracker(store, orders)


def get_menu_service(store: OrderStore = Depends(get_store)) -> MenuService:
    return MenuService(store)


def get_account_service(store: OrderStore = Depends(get_store)) -> AccountService:
    return AccountService(store)
