"""
FastAPI routes for orders, order history and payments
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from marketplace.db.database import get_db
from marketplace.api.deps import get_current_actor, require_role
from marketplace.services.auth import Actor
from marketplace.services.order_service import (
    OrderService,
    OrderNotFoundError,
    OrderAccessDeniedError
)
from marketplace.services.order_state import InvalidTransitionError, TransitionNotPermittedError
from marketplace.models.order import OrderStatus
from marketplace.models.user import UserRole
from marketplace.models.schemas import (
    OrderCreate,
    OrderUpdate,
    OrderResponse,
    OrderListResponse,
    OrderHistoryResponse,
    PaymentCreate,
    PaymentResponse
)
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["orders"])


def _to_http_error(exc: Exception) -> HTTPException:
    """Translate order service errors to HTTP errors"""
    if isinstance(exc, OrderNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (OrderAccessDeniedError, TransitionNotPermittedError)):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _parse_statuses(raw: Optional[str]) -> Optional[List[OrderStatus]]:
    if not raw:
        return None
    try:
        return [OrderStatus(value.strip()) for value in raw.split(",") if value.strip()]
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/orders", response_model=OrderListResponse)
def list_orders(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Max items to return"),
    status_filter: Optional[str] = Query(
        None,
        alias="status",
        description="Comma-separated statuses; admins default to the in-review queue"
    ),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    List orders visible to the caller

    - **customer**: own orders
    - **seller**: orders placed with the caller's shop
    - **admin**: orders in the requested statuses
    """
    statuses = _parse_statuses(status_filter)
    logger.info(f"Listing orders for {actor.role.value} {actor.user_id}: skip={skip}, limit={limit}")

    try:
        orders, total = OrderService.list_orders(db, actor, statuses=statuses, skip=skip, limit=limit)
    except OrderAccessDeniedError as e:
        raise _to_http_error(e)

    return OrderListResponse(
        total=total,
        orders=orders,
        page=skip // limit + 1,
        page_size=limit
    )


@router.post(
    "/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED
)
def create_order(
    order: OrderCreate,
    actor: Actor = Depends(require_role(UserRole.CUSTOMER)),
    db: Session = Depends(get_db)
):
    """
    Place an order with a single seller

    Prices, titles and units are captured from the catalog; subtotal, total
    and the cash-on-delivery prepayment are computed server-side.
    """
    logger.info(f"Creating order for customer {actor.user_id}")

    try:
        return OrderService.create_order(db, actor, order)
    except (ValueError, OrderAccessDeniedError) as e:
        logger.warning(f"Order rejected for customer {actor.user_id}: {e}")
        raise _to_http_error(e)


@router.post(
    "/orders/checkout",
    response_model=List[OrderResponse],
    status_code=status.HTTP_201_CREATED
)
def checkout(
    order: OrderCreate,
    actor: Actor = Depends(require_role(UserRole.CUSTOMER)),
    db: Session = Depends(get_db)
):
    """Place a mixed cart: one order per seller"""
    try:
        return OrderService.checkout(db, actor, order)
    except (ValueError, OrderAccessDeniedError) as e:
        logger.warning(f"Checkout rejected for customer {actor.user_id}: {e}")
        raise _to_http_error(e)


@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Get a specific order by ID"""
    try:
        return OrderService.get_order(db, actor, order_id)
    except (OrderNotFoundError, OrderAccessDeniedError) as e:
        raise _to_http_error(e)


@router.patch("/orders/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: str,
    changes: OrderUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Partially update an order

    A `status` different from the stored one must be a legal transition for
    the caller's role and is recorded in the order history.
    """
    logger.info(f"Updating order {order_id} by {actor.role.value} {actor.user_id}")

    try:
        return OrderService.update_order(db, actor, order_id, changes)
    except (
        OrderNotFoundError,
        OrderAccessDeniedError,
        InvalidTransitionError,
        TransitionNotPermittedError
    ) as e:
        logger.warning(f"Update of order {order_id} refused: {e}")
        raise _to_http_error(e)


@router.get("/orders/{order_id}/history", response_model=List[OrderHistoryResponse])
def get_order_history(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Status history of an order, most recent first"""
    try:
        return OrderService.get_order_history(db, actor, order_id)
    except (OrderNotFoundError, OrderAccessDeniedError) as e:
        raise _to_http_error(e)


@router.get("/orders/{order_id}/payments", response_model=List[PaymentResponse])
def list_payments(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Payments recorded against an order"""
    try:
        return OrderService.list_payments(db, actor, order_id)
    except (OrderNotFoundError, OrderAccessDeniedError) as e:
        raise _to_http_error(e)


@router.post(
    "/orders/{order_id}/payments",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED
)
def record_payment(
    order_id: str,
    payment: PaymentCreate,
    actor: Actor = Depends(require_role(UserRole.ADMIN)),
    db: Session = Depends(get_db)
):
    """Record a payment-provider transaction (admin only)"""
    try:
        return OrderService.record_payment(db, actor, order_id, payment)
    except (OrderNotFoundError, OrderAccessDeniedError) as e:
        raise _to_http_error(e)
