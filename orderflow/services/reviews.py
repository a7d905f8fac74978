"""Rating/Review Recorder - write-once ratings for orders and couriers."""

from orderflow.errors import (
    AlreadyRatedError,
    AuthorizationError,
    NotFoundError,
    OrderNotEligibleError,
    ValidationError,
)
from orderflow.models.actor import RequestContext, Role
from orderflow.models.common import utcnow
from orderflow.models.order import Order, OrderStatus
from orderflow.models.review import CourierReview, OrderReview
from orderflow.services.base import BaseService
from orderflow.state.store import OrderStore

MIN_RATING = 1
MAX_RATING = 5


def _validate_rating(rating: int) -> None:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}")


class ReviewRecorder(BaseService):
    """
    Review recorder for delivered orders.

    Each rating is checked and written inside one atomic order update, so
    two concurrent attempts cannot both see the rating unset.
    """

    def __init__(self, store: OrderStore):
        super().__init__("review_recorder", store)

    def _ensure_rateable(self, ctx: RequestContext, order: Order) -> None:
        if order.customer_id != ctx.actor_id:
            raise AuthorizationError(f"Only the customer of order {order.id} can rate it")
        if order.status != OrderStatus.DELIVERED:
            raise OrderNotEligibleError(
                f"Order {order.id} is {order.status.value}; only DELIVERED orders can be rated"
            )

    async def rate_order(
        self,
        ctx: RequestContext,
        order_id: int,
        rating: int,
        review_text: str | None = None,
    ) -> Order:
        """
        Record the customer's one-time rating of an order.

        Raises:
            OrderNotEligibleError: the order is not DELIVERED (checked before the rating value)
            ValidationError: rating outside 1..5
            AlreadyRatedError: the order already carries a rating
        """
        self.require_role(ctx, Role.CUSTOMER)

        def mutate(order: Order) -> Order:
            self._ensure_rateable(ctx, order)
            _validate_rating(rating)
            if order.customer_rating is not None:
                raise AlreadyRatedError(f"Order {order.id} has already been rated")
            return order.model_copy(
                update={
                    "customer_rating": rating,
                    "customer_review_text": review_text,
                    "customer_rated_at": utcnow(),
                }
            )

        updated = await self.store.update_order(order_id, mutate)

        self.audit.log_rating(
            order_id=order_id,
            target="order",
            rating=rating,
            actor_id=ctx.actor_id,
            restaurant_id=updated.restaurant_id,
        )

        return updated

    async def rate_courier(
        self,
        ctx: RequestContext,
        order_id: int,
        rating: int,
        review_text: str | None = None,
        courier_id: int | None = None,
    ) -> CourierReview:
        """
        Record the customer's one-time rating of the courier who delivered an order.

        ``courier_id`` defaults to the order's courier; when given it must match.
        """
        self.require_role(ctx, Role.CUSTOMER)

        def mutate(order: Order) -> Order:
            self._ensure_rateable(ctx, order)
            if order.courier_id is None:
                raise OrderNotEligibleError(f"Order {order.id} was delivered without a courier")
            if courier_id is not None and courier_id != order.courier_id:
                raise OrderNotEligibleError(
                    f"Courier {courier_id} did not deliver order {order.id}"
                )
            _validate_rating(rating)
            if order.courier_rating is not None:
                raise AlreadyRatedError(
                    f"Courier {order.courier_id} has already been rated for order {order.id}"
                )
            return order.model_copy(
                update={
                    "courier_rating": rating,
                    "courier_review_text": review_text,
                    "courier_rated_at": utcnow(),
                }
            )

        updated = await self.store.update_order(order_id, mutate)
        rated_courier = updated.courier_id

        try:
            await self.store.update_courier(
                rated_courier,
                lambda courier: courier.model_copy(
                    update={
                        "rating_count": courier.rating_count + 1,
                        "rating_total": courier.rating_total + rating,
                    }
                ),
            )
        except NotFoundError:
            self.audit.logger.warning(
                "courier_profile_missing", courier_id=rated_courier, order_id=order_id
            )

        self.audit.log_rating(
            order_id=order_id,
            target="courier",
            rating=rating,
            actor_id=ctx.actor_id,
            courier_id=rated_courier,
        )

        return self._courier_review(updated)

    async def check_courier_review(self, order_id: int, courier_id: int) -> CourierReview | None:
        """Return the courier rating recorded for the order, if any. Never writes."""
        order = await self.get_order_or_404(order_id)
        if order.courier_id != courier_id or order.courier_rating is None:
            return None
        return self._courier_review(order)

    async def list_order_reviews(self, restaurant_id: int | None = None) -> list[OrderReview]:
        """Rated orders, newest rating first, optionally for one restaurant."""
        reviews = [
            OrderReview(
                order_id=order.id,
                restaurant_id=order.restaurant_id,
                customer_id=order.customer_id,
                rating=order.customer_rating,
                review_text=order.customer_review_text,
                rated_at=order.customer_rated_at,
            )
            for order in await self.store.list_orders()
            if order.customer_rating is not None
            and (restaurant_id is None or order.restaurant_id == restaurant_id)
        ]
        reviews.sort(key=lambda review: (review.rated_at is not None, review.rated_at), reverse=True)
        return reviews

    async def list_courier_reviews(self, courier_id: int) -> list[CourierReview]:
        """All ratings a courier has received."""
        await self.get_courier_or_404(courier_id)
        return [
            self._courier_review(order)
            for order in await self.store.list_orders()
            if order.courier_id == courier_id and order.courier_rating is not None
        ]

    @staticmethod
    def _courier_review(order: Order) -> CourierReview:
        return CourierReview(
            order_id=order.id,
            courier_id=order.courier_id,
            rating=order.courier_rating,
            review_text=order.courier_review_text,
            rated_at=order.courier_rated_at,
        )
