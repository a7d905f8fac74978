"""Order lifecycle state machine: legal edges and the roles that own them."""

from orderflow.errors import AuthorizationError, InvalidTransitionError
from orderflow.models.actor import Role
from orderflow.models.common import utcnow
from orderflow.models.order import Order, OrderStatus

_RESTAURANT = frozenset({Role.RESTAURANT})
_DISPATCH = frozenset({Role.ADMIN, Role.COURIER})


class OrderTransitions:
    """Valid order status transitions, keyed by edge, valued by authorized roles."""

    TRANSITIONS: dict[tuple[OrderStatus, OrderStatus], frozenset[Role]] = {
        (OrderStatus.PLACED, OrderStatus.CONFIRMED): _RESTAURANT,
        (OrderStatus.PLACED, OrderStatus.REJECTED): _RESTAURANT,
        (OrderStatus.CONFIRMED, OrderStatus.PREPARING): _RESTAURANT,
        (OrderStatus.CONFIRMED, OrderStatus.CANCELLED): _RESTAURANT,
        (OrderStatus.PREPARING, OrderStatus.READY_FOR_PICKUP): _RESTAURANT,
        (OrderStatus.PREPARING, OrderStatus.CANCELLED): _RESTAURANT,
        (OrderStatus.READY_FOR_PICKUP, OrderStatus.CANCELLED): _RESTAURANT,
        (OrderStatus.READY_FOR_PICKUP, OrderStatus.ASSIGNED): _DISPATCH,
        (OrderStatus.ASSIGNED, OrderStatus.IN_TRANSIT): _DISPATCH,
        # Courier rejects the assignment, or dispatch unassigns it
        (OrderStatus.ASSIGNED, OrderStatus.READY_FOR_PICKUP): _DISPATCH,
        (OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED): _DISPATCH,
    }

    @classmethod
    def is_edge(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        """Check if the pair is an edge of the lifecycle graph, ignoring roles."""
        return (from_status, to_status) in cls.TRANSITIONS

    @classmethod
    def can_transition(
        cls,
        from_status: OrderStatus,
        to_status: OrderStatus,
        role: Role,
    ) -> bool:
        """Check if ``role`` may move an order along the edge."""
        if from_status == to_status:
            return False
        return role in cls.TRANSITIONS.get((from_status, to_status), frozenset())

    @classmethod
    def ensure_transition(
        cls,
        from_status: OrderStatus,
        to_status: OrderStatus,
        role: Role,
    ) -> None:
        """Raise unless ``role`` may move an order along the edge.

        Raises:
            InvalidTransitionError: the edge does not exist.
            AuthorizationError: the edge exists but belongs to other roles.
        """
        if not cls.is_edge(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status, role)
        if not cls.can_transition(from_status, to_status, role):
            raise AuthorizationError(
                f"Role {role.value} may not move an order from "
                f"{from_status.value} to {to_status.value}"
            )

    @classmethod
    def allowed_targets(cls, from_status: OrderStatus, role: Role) -> list[OrderStatus]:
        """Statuses ``role`` may move an order to from ``from_status``."""
        return [
            to_status
            for (source, to_status), roles in cls.TRANSITIONS.items()
            if source == from_status and role in roles
        ]

    @classmethod
    def status_update_targets(cls, from_status: OrderStatus, role: Role) -> list[OrderStatus]:
        """Like :meth:`allowed_targets`, minus ASSIGNED, which needs a courier id."""
        return [
            to_status
            for to_status in cls.allowed_targets(from_status, role)
            if to_status != OrderStatus.ASSIGNED
        ]

    @classmethod
    def apply(
        cls,
        order: Order,
        to_status: OrderStatus,
        courier_id: int | None = None,
    ) -> Order:
        """Return ``order`` moved to ``to_status`` with the edge's side effects.

        Does not validate; callers run :meth:`ensure_transition` first.
        """
        update: dict = {"status": to_status}

        if to_status == OrderStatus.ASSIGNED:
            update["courier_id"] = courier_id
            update["courier_assignment_accepted"] = False
        elif to_status == OrderStatus.READY_FOR_PICKUP and order.status == OrderStatus.ASSIGNED:
            update["courier_id"] = None
            update["courier_assignment_accepted"] = False
        elif to_status == OrderStatus.IN_TRANSIT:
            update["courier_assignment_accepted"] = True
        elif to_status == OrderStatus.DELIVERED:
            update["delivered_at"] = utcnow()

        return order.model_copy(update=update)


can_transition = OrderTransitions.can_transition
ensure_transition = OrderTransitions.ensure_transition
allowed_targets = OrderTransitions.allowed_targets
status_update_targets = OrderTransitions.status_update_targets
