"""
Order status state machine.

The transition table is the single source of truth for which status an order
may move to next. Role checks are keyed by the target status: whoever may
request a status may request it from any state that leads there.
"""
from typing import Dict, FrozenSet, Optional

from marketplace.models.order import OrderStatus
from marketplace.models.user import UserRole


class InvalidTransitionError(ValueError):
    """Requested status is not reachable from the current one"""

    def __init__(self, current: OrderStatus, requested: OrderStatus):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Invalid status transition from '{current.value}' to '{requested.value}'"
        )


class TransitionNotPermittedError(PermissionError):
    """Actor role may not request the target status"""

    def __init__(self, role: UserRole, requested: OrderStatus):
        self.role = role
        self.requested = requested
        super().__init__(
            f"Role '{role.value}' may not move an order to '{requested.value}'"
        )


ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.CREATED: frozenset({OrderStatus.PENDING_VERIFICATION}),
    OrderStatus.PENDING_VERIFICATION: frozenset({
        OrderStatus.SELLER_CONTACTED,
        OrderStatus.REJECTED,
    }),
    OrderStatus.SELLER_CONTACTED: frozenset({
        OrderStatus.SELLER_ACCEPTED,
        OrderStatus.SELLER_REJECTED,
        OrderStatus.REJECTED,
    }),
    OrderStatus.SELLER_ACCEPTED: frozenset({
        OrderStatus.BUYER_CONTACTED,
        OrderStatus.REJECTED,
    }),
    OrderStatus.SELLER_REJECTED: frozenset({OrderStatus.REJECTED}),
    OrderStatus.BUYER_CONTACTED: frozenset({
        OrderStatus.BUYER_CONFIRMED,
        OrderStatus.BUYER_REJECTED,
        OrderStatus.REJECTED,
    }),
    OrderStatus.BUYER_CONFIRMED: frozenset({
        OrderStatus.CONFIRMED,
        OrderStatus.REJECTED,
    }),
    OrderStatus.BUYER_REJECTED: frozenset({OrderStatus.REJECTED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.OUT_FOR_DELIVERY}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.REJECTED: frozenset(),
}

_ADMIN_ONLY = frozenset({UserRole.ADMIN})

TRANSITION_ROLES: Dict[OrderStatus, FrozenSet[UserRole]] = {
    OrderStatus.PENDING_VERIFICATION: frozenset({UserRole.CUSTOMER, UserRole.ADMIN}),
    OrderStatus.SELLER_CONTACTED: _ADMIN_ONLY,
    OrderStatus.SELLER_ACCEPTED: _ADMIN_ONLY,
    OrderStatus.SELLER_REJECTED: _ADMIN_ONLY,
    OrderStatus.BUYER_CONTACTED: _ADMIN_ONLY,
    OrderStatus.BUYER_CONFIRMED: _ADMIN_ONLY,
    OrderStatus.BUYER_REJECTED: _ADMIN_ONLY,
    OrderStatus.CONFIRMED: _ADMIN_ONLY,
    OrderStatus.REJECTED: _ADMIN_ONLY,
    OrderStatus.OUT_FOR_DELIVERY: frozenset({UserRole.SELLER, UserRole.ADMIN}),
    OrderStatus.DELIVERED: frozenset({UserRole.SELLER, UserRole.ADMIN}),
    OrderStatus.COMPLETED: frozenset({UserRole.CUSTOMER, UserRole.SELLER, UserRole.ADMIN}),
}

# Default admin work queue
IN_REVIEW_STATUSES = (
    OrderStatus.PENDING_VERIFICATION,
    OrderStatus.SELLER_CONTACTED,
    OrderStatus.SELLER_ACCEPTED,
    OrderStatus.BUYER_CONTACTED,
)

INITIAL_STATUS = OrderStatus.PENDING_VERIFICATION


def allowed_next(status: OrderStatus) -> FrozenSet[OrderStatus]:
    """Statuses reachable in one step from status"""
    return ALLOWED_TRANSITIONS.get(status, frozenset())


def is_terminal(status: OrderStatus) -> bool:
    """Return True if no transition leaves status"""
    return not allowed_next(status)


def is_valid_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    """Return True if current -> requested is an edge of the graph"""
    return requested in allowed_next(current)


def validate_transition(current: OrderStatus, requested: OrderStatus, role: UserRole) -> None:
    """
    Check a requested status change before anything is written.

    Raises:
        InvalidTransitionError: requested is not reachable from current
        TransitionNotPermittedError: role may not request this status
    """
    if not is_valid_transition(current, requested):
        raise InvalidTransitionError(current, requested)
    if role not in TRANSITION_ROLES.get(requested, frozenset()):
        raise TransitionNotPermittedError(role, requested)


def derive_note(
    note: Optional[str] = None,
    reject_reason: Optional[str] = None,
    seller_response: Optional[str] = None,
    buyer_response: Optional[str] = None,
) -> Optional[str]:
    """Pick the history note: explicit note, then reject reason, seller answer, buyer answer"""
    for candidate in (note, reject_reason, seller_response, buyer_response):
        if candidate:
            return candidate
    return None
