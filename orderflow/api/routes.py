"""API routes for the order lifecycle service."""

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from orderflow.api.deps import (
    get_account_service,
    get_assignment_manager,
    get_context,
    get_favorites_tracker,
    get_menu_service,
    get_order_service,
    get_review_recorder,
)
from orderflow.api.schemas import (
    ApiResponse,
    BanRequest,
    CourierStatusUpdate,
    CreateActorRequest,
    MenuItemCreate,
    MenuItemUpdate,
    OrderView,
    PlaceOrderRequest,
    ReviewRequest,
    StatusUpdateRequest,
    envelope,
)
from orderflow.errors import NotFoundError
from orderflow.models.actor import Actor, RequestContext, Role
from orderflow.models.courier import Courier, CourierResponse
from orderflow.models.menu import MenuItem
from orderflow.models.order import Order, OrderStatus
from orderflow.models.review import CourierReview, OrderReview
from orderflow.services import (
    AccountService,
    CourierAssignmentManager,
    FavoritesTracker,
    MenuService,
    OrderService,
    ReviewRecorder,
)
from orderflow.state.workflow import status_update_targets

router = APIRouter()


async def _view(
    ctx: RequestContext,
    order: Order,
    favorites: FavoritesTracker | None = None,
) -> OrderView:
    """Decorate an order with the acting actor's favorite flag and next statuses."""
    is_favorite = None
    if favorites is not None and ctx.role == Role.CUSTOMER:
        is_favorite = await favorites.is_favorite(ctx, order.id)
    return OrderView.build(
        order,
        is_favorite=is_favorite,
        allowed_transitions=status_update_targets(order.status, ctx.role),
    )


# Orders


@router.post(
    "/orders",
    response_model=ApiResponse[OrderView],
    status_code=status.HTTP_201_CREATED,
    tags=["orders"],
)
async def place_order(
    request: PlaceOrderRequest,
    ctx: RequestContext = Depends(get_context),
    orders: OrderService = Depends(get_order_service),
) -> dict[str, Any]:
    """
    Place a new order.

    Prices are snapshotted from the restaurant's current menu.
    """
    order = await orders.place_order(ctx, request.restaurant_id, request.items)
    return envelope(
        await _view(ctx, order),
        message="Order placed",
        status=status.HTTP_201_CREATED,
    )


@router.get("/orders", response_model=ApiResponse[list[OrderView]], tags=["orders"])
async def list_orders(
    status_filter: list[OrderStatus] | None = Query(default=None, alias="status"),
    search: str | None = None,
    ctx: RequestContext = Depends(get_context),
    orders: OrderService = Depends(get_order_service),
    favorites: FavoritesTracker = Depends(get_favorites_tracker),
) -> dict[str, Any]:
    """List the orders visible to the caller, optionally filtered by status and search text."""
    found = await orders.list_orders(ctx, statuses=status_filter, search=search)
    return envelope([await _view(ctx, order, favorites) for order in found])


@router.get("/orders/{order_id}", response_model=ApiResponse[OrderView], tags=["orders"])
async def get_order(
    order_id: int,
    ctx: RequestContext = Depends(get_context),
    orders: OrderService = Depends(get_order_service),
    favorites: FavoritesTracker = Depends(get_favorites_tracker),
) -> dict[str, Any]:
    order = await orders.get_order(ctx, order_id)
    return envelope(await _view(ctx, order, favorites))


@router.api_route(
    "/orders/{order_id}/status",
    methods=["PUT", "POST"],
    response_model=ApiResponse[OrderView],
    tags=["orders"],
)
async def update_order_status(
    order_id: int,
    request: StatusUpdateRequest,
    ctx: RequestContext = Depends(get_context),
    orders: OrderService = Depends(get_order_service),
) -> dict[str, Any]:
    """
    Move an order along one lifecycle edge.

    Illegal edges answer 409 with kind ``InvalidTransitionError``; a role
    that may not take the edge answers 403.
    """
    order = await orders.update_status(ctx, order_id, request.status)
    return envelope(
        await _view(ctx, order),
        message=f"Order {order_id} is now {order.status.value}",
    )


@router.post(
    "/orders/{order_id}/assign-courier/{courier_id}",
    response_model=ApiResponse[OrderView],
    tags=["orders"],
)
async def assign_courier(
    order_id: int,
    courier_id: int,
    ctx: RequestContext = Depends(get_context),
    assignments: CourierAssignmentManager = Depends(get_assignment_manager),
) -> dict[str, Any]:
    order = await assignments.assign_courier(ctx, order_id, courier_id)
    return envelope(
        await _view(ctx, order),
        message=f"Courier {courier_id} assigned to order {order_id}",
    )


@router.post(
    "/orders/{order_id}/unassign-courier",
    response_model=ApiResponse[OrderView],
    tags=["orders"],
)
async def unassign_courier(
    order_id: int,
    ctx: RequestContext = Depends(get_context),
    assignments: CourierAssignmentManager = Depends(get_assignment_manager),
) -> dict[str, Any]:
    order = await assignments.unassign_courier(ctx, order_id)
    return envelope(
        await _view(ctx, order),
        message=f"Order {order_id} is ready for pickup again",
    )


# Couriers


@router.get("/couriers/available", response_model=ApiResponse[list[Courier]], tags=["couriers"])
async def list_available_couriers(
    search: str | None = None,
    ctx: RequestContext = Depends(get_context),
    assignments: CourierAssignmentManager = Depends(get_assignment_manager),
) -> dict[str, Any]:
    """Couriers online and available right now. Assignment re-checks this."""
    return envelope(await assignments.list_available_couriers(search))


@router.get("/couriers/status", response_model=ApiResponse[Courier], tags=["couriers"])
async def get_courier_status(
    ctx: RequestContext = Depends(get_context),
    assignments: CourierAssignmentManager = Depends(get_assignment_manager),
) -> dict[str, Any]:
    return envelope(await assignments.get_courier_status(ctx))


@router.patch("/couriers/status", response_model=ApiResponse[Courier], tags=["couriers"])
async def update_courier_status(
    request: CourierStatusUpdate,
    ctx: RequestContext = Depends(get_context),
    assignments: CourierAssignmentManager = Depends(get_assignment_manager),
) -> dict[str, Any]:
    courier = await assignments.update_courier_status(
        ctx, is_online=request.is_online, is_available=request.is_available
    )
    return envelope(courier, message="Courier status updated")


@router.get("/couriers/orders", response_model=ApiResponse[list[OrderView]], tags=["couriers"])
async def list_courier_orders(
    accepted: bool = False,
    ctx: RequestContext = Depends(get_context),
    assignments: CourierAssignmentManager = Depends(get_assignment_manager),
) -> dict[str, Any]:
    """The courier's idle (awaiting answer) or accepted orders."""
    found = await assignments.list_courier_orders(ctx, accepted=accepted)
    return envelope([await _view(ctx, order) for order in found])


@router.post(
    "/couriers/orders/{order_id}/respond",
    response_model=ApiResponse[OrderView],
    tags=["couriers"],
)
async def courier_respond(
    order_id: int,
    answer: CourierResponse = Query(alias="status"),
    ctx: RequestContext = Depends(get_context),
    assignments: CourierAssignmentManager = Depends(get_assignment_manager),
) -> dict[str, Any]:
    result = await assignments.courier_respond(ctx, order_id, answer)
    return envelope(await _view(ctx, result.order), message=result.message)


@router.post(
    "/couriers/rate",
    response_model=ApiResponse[CourierReview],
    status_code=status.HTTP_201_CREATED,
    tags=["couriers"],
)
async def rate_courier(
    order_id: int = Query(alias="orderPk"),
    rating: int = Query(),
    courier_id: int | None = Query(default=None, alias="courierPk"),
    request: ReviewRequest | None = None,
    ctx: RequestContext = Depends(get_context),
    reviews: ReviewRecorder = Depends(get_review_recorder),
) -> dict[str, Any]:
    """Rate the courier who delivered an order. Write-once."""
    review = await reviews.rate_courier(
        ctx,
        order_id,
        rating,
        review_text=request.review_text if request else None,
        courier_id=courier_id,
    )
    return envelope(review, message="Courier rated", status=status.HTTP_201_CREATED)


@router.get(
    "/couriers/check-review",
    response_model=ApiResponse[CourierReview],
    tags=["couriers"],
)
async def check_courier_review(
    order_id: int = Query(alias="orderPk"),
    courier_id: int = Query(alias="courierPk"),
    ctx: RequestContext = Depends(get_context),
    reviews: ReviewRecorder = Depends(get_review_recorder),
) -> dict[str, Any]:
    """The courier review left on the order, or 404 when it has not been rated yet."""
    review = await reviews.check_courier_review(order_id, courier_id)
    if review is None:
        raise NotFoundError(f"Courier {courier_id} has not been rated for order {order_id}")
    return envelope(review, message="Reviewed")


@router.get(
    "/couriers/{courier_id}/reviews",
    response_model=ApiResponse[list[CourierReview]],
    tags=["couriers"],
)
async def list_courier_reviews(
    courier_id: int,
    ctx: RequestContext = Depends(get_context),
    reviews: ReviewRecorder = Depends(get_review_recorder),
) -> dict[str, Any]:
    return envelope(await reviews.list_courier_reviews(courier_id))


# Order reviews and re-ordering


@router.post(
    "/order/rate-order/{order_id}",
    response_model=ApiResponse[OrderView],
    status_code=status.HTTP_201_CREATED,
    tags=["reviews"],
)
async def rate_order(
    order_id: int,
    rating: int = Query(),
    request: ReviewRequest | None = None,
    ctx: RequestContext = Depends(get_context),
    reviews: ReviewRecorder = Depends(get_review_recorder),
) -> dict[str, Any]:
    """Rate a delivered order. Write-once."""
    order = await reviews.rate_order(
        ctx, order_id, rating, review_text=request.review_text if request else None
    )
    return envelope(await _view(ctx, order), message="Order rated", status=status.HTTP_201_CREATED)


@router.get("/order/get-reviews", response_model=ApiResponse[list[OrderReview]], tags=["reviews"])
async def list_order_reviews(
    restaurant_id: int | None = None,
    ctx: RequestContext = Depends(get_context),
    reviews: ReviewRecorder = Depends(get_review_recorder),
) -> dict[str, Any]:
    return envelope(await reviews.list_order_reviews(restaurant_id))


@router.post(
    "/order/re-order/{order_id}",
    response_model=ApiResponse[OrderView],
    status_code=status.HTTP_201_CREATED,
    tags=["orders"],
)
async def reorder(
    order_id: int,
    ctx: RequestContext = Depends(get_context),
    favorites: FavoritesTracker = Depends(get_favorites_tracker),
) -> dict[str, Any]:
    """Place a new order repeating a previous one at current menu prices."""
    order = await favorites.reorder(ctx, order_id)
    return envelope(
        await _view(ctx, order, favorites),
        message=f"Order {order_id} re-ordered as {order.id}",
        status=status.HTTP_201_CREATED,
    )


# Customer favorites and order history


@router.post(
    "/customer/add-to-favorite-orders/{order_id}",
    response_model=ApiResponse[bool],
    tags=["customer"],
)
async def add_favorite_order(
    order_id: int,
    ctx: RequestContext = Depends(get_context),
    favorites: FavoritesTracker = Depends(get_favorites_tracker),
) -> dict[str, Any]:
    """Favorite an order. Repeating the call is a no-op; ``data`` says whether anything changed."""
    changed = await favorites.add_favorite(ctx, order_id)
    message = "Order added to favorites" if changed else "Order is already a favorite"
    return envelope(changed, message=message)


@router.post(
    "/customer/remove-from-favorite-orders/{order_id}",
    response_model=ApiResponse[bool],
    tags=["customer"],
)
async def remove_favorite_order(
    order_id: int,
    ctx: RequestContext = Depends(get_context),
    favorites: FavoritesTracker = Depends(get_favorites_tracker),
) -> dict[str, Any]:
    changed = await favorites.remove_favorite(ctx, order_id)
    message = "Order removed from favorites" if changed else "Order was not a favorite"
    return envelope(changed, message=message)


@router.get(
    "/customer/get-favorite-orders",
    response_model=ApiResponse[list[OrderView]],
    tags=["customer"],
)
async def list_favorite_orders(
    ctx: RequestContext = Depends(get_context),
    favorites: FavoritesTracker = Depends(get_favorites_tracker),
) -> dict[str, Any]:
    found = await favorites.list_favorites(ctx)
    return envelope([await _view(ctx, order, favorites) for order in found])


@router.get(
    "/customer/get-active-orders",
    response_model=ApiResponse[list[OrderView]],
    tags=["customer"],
)
async def list_active_orders(
    old: bool = False,
    ctx: RequestContext = Depends(get_context),
    orders: OrderService = Depends(get_order_service),
    favorites: FavoritesTracker = Depends(get_favorites_tracker),
) -> dict[str, Any]:
    """Active orders, or delivered/cancelled/rejected ones when ``old`` is set."""
    found = await orders.list_customer_orders(ctx, old=old)
    return envelope([await _view(ctx, order, favorites) for order in found])


# Menu


@router.get(
    "/restaurants/{restaurant_id}/menu",
    response_model=ApiResponse[list[MenuItem]],
    tags=["menu"],
)
async def list_menu(
    restaurant_id: int,
    include_unavailable: bool = False,
    ctx: RequestContext = Depends(get_context),
    menu: MenuService = Depends(get_menu_service),
) -> dict[str, Any]:
    return envelope(await menu.list_menu(restaurant_id, include_unavailable=include_unavailable))


@router.post(
    "/menu",
    response_model=ApiResponse[MenuItem],
    status_code=status.HTTP_201_CREATED,
    tags=["menu"],
)
async def create_menu_item(
    request: MenuItemCreate,
    ctx: RequestContext = Depends(get_context),
    menu: MenuService = Depends(get_menu_service),
) -> dict[str, Any]:
    item = await menu.create_item(
        ctx,
        name=request.name,
        price=request.price,
        description=request.description,
        is_available=request.is_available,
    )
    return envelope(item, message="Menu item created", status=status.HTTP_201_CREATED)


@router.put("/menu/{item_id}", response_model=ApiResponse[MenuItem], tags=["menu"])
async def update_menu_item(
    item_id: int,
    request: MenuItemUpdate,
    ctx: RequestContext = Depends(get_context),
    menu: MenuService = Depends(get_menu_service),
) -> dict[str, Any]:
    item = await menu.update_item(ctx, item_id, request.model_dump(exclude_unset=True))
    return envelope(item, message="Menu item updated")


@router.delete("/menu/{item_id}", response_model=ApiResponse[None], tags=["menu"])
async def delete_menu_item(
    item_id: int,
    ctx: RequestContext = Depends(get_context),
    menu: MenuService = Depends(get_menu_service),
) -> dict[str, Any]:
    await menu.delete_item(ctx, item_id)
    return envelope(message=f"Menu item {item_id} deleted")


# Admin


@router.post(
    "/admin/actors",
    response_model=ApiResponse[Actor],
    status_code=status.HTTP_201_CREATED,
    tags=["admin"],
)
async def create_actor(
    request: CreateActorRequest,
    ctx: RequestContext = Depends(get_context),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    actor = await accounts.create_actor(
        ctx,
        role=request.role,
        name=request.name,
        email=request.email,
        phone_number=request.phone_number,
        profile_picture_url=request.profile_picture_url,
    )
    return envelope(actor, message="Actor created", status=status.HTTP_201_CREATED)


@router.get("/admin/actors", response_model=ApiResponse[list[Actor]], tags=["admin"])
async def list_actors(
    role: Role | None = None,
    ctx: RequestContext = Depends(get_context),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    return envelope(await accounts.list_actors(ctx, role=role))


@router.post(
    "/admin/actors/{actor_id}/tokens",
    response_model=ApiResponse[dict[str, str]],
    status_code=status.HTTP_201_CREATED,
    tags=["admin"],
)
async def issue_token(
    actor_id: int,
    ctx: RequestContext = Depends(get_context),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    token = await accounts.issue_token_for(ctx, actor_id)
    return envelope({"token": token}, message="Token issued", status=status.HTTP_201_CREATED)


@router.put("/admin/ban/{actor_id}", response_model=ApiResponse[Actor], tags=["admin"])
async def ban_actor(
    actor_id: int,
    request: BanRequest = BanRequest(),
    ctx: RequestContext = Depends(get_context),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    actor = await accounts.set_banned(ctx, actor_id, request.banned)
    message = f"Actor {actor_id} banned" if actor.is_banned else f"Actor {actor_id} unbanned"
    return envelope(actor, message=message)


@router.get("/admin/getban/{actor_id}", response_model=ApiResponse[bool], tags=["admin"])
async def get_ban(
    actor_id: int,
    ctx: RequestContext = Depends(get_context),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    return envelope(await accounts.is_banned(ctx, actor_id))
