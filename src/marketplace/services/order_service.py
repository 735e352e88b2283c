"""
Order business logic: creation, role-scoped reads and audited status changes
"""
from collections import OrderedDict
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy import select
from sqlalchemy.orm import Session
from marketplace.config import settings
from marketplace.models.order import (
    Order, OrderStateHistory, OrderStatus, Payment, PaymentMethod, PaymentStatus
)
from marketplace.models.schemas import OrderCreate, OrderItemCreate, OrderUpdate, PaymentCreate
from marketplace.models.user import UserRole
from marketplace.services.auth import Actor
from marketplace.services.order_state import (
    IN_REVIEW_STATUSES, INITIAL_STATUS, derive_note, validate_transition
)
from marketplace.services.product_service import ProductService
from typing import List, Optional, Sequence, Tuple
from opentelemetry import trace
import logging

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CENTS = Decimal("0.01")

# Order fields only an admin may set through a partial update
ADMIN_FIELDS = frozenset({
    "payment_status",
    "seller_response",
    "buyer_response",
    "reject_reason",
    "contact_attempts",
})


class OrderNotFoundError(LookupError):
    """Order does not exist"""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order with id {order_id} not found")


class OrderAccessDeniedError(PermissionError):
    """Actor may not read or modify the order"""


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def lock_order_statement(order_id: str):
    """SELECT ... FOR UPDATE on one order row; concurrent updates of the order queue behind it"""
    return select(Order).where(Order.id == order_id).with_for_update()


def compute_totals(
    items: Sequence[dict],
    payment_method: PaymentMethod,
    delivery_charges: Decimal,
    prepayment_rate: Decimal
) -> Tuple[Decimal, Decimal, Decimal, Optional[Decimal]]:
    """
    Price an item snapshot

    Returns:
        (subtotal, delivery_charges, total, prepayment_amount); the
        prepayment is None unless the order is cash on delivery
    """
    subtotal = _money(sum(
        (Decimal(str(item["price"])) * item["quantity"] for item in items),
        Decimal("0")
    ))
    delivery = _money(delivery_charges)
    total = subtotal + delivery
    prepayment = None
    if payment_method == PaymentMethod.COD:
        prepayment = _money(total * Decimal(str(prepayment_rate)))
    return subtotal, delivery, total, prepayment


class OrderService:
    """Order lifecycle manager"""

    @staticmethod
    def _snapshot_items(db: Session, items: List[OrderItemCreate]) -> "OrderedDict[str, List[dict]]":
        """
        Capture catalog data for requested items, grouped by seller

        Repeated product ids are merged before stock checks.

        Raises:
            ValueError: unknown or inactive product, quantity outside min_qty/stock
        """
        quantities: "OrderedDict[str, int]" = OrderedDict()
        for item in items:
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

        products = {p.id: p for p in ProductService.get_products_by_ids(db, quantities.keys())}

        groups: "OrderedDict[str, List[dict]]" = OrderedDict()
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if product is None:
                raise ValueError(f"Product {product_id} not found")
            if not product.is_active:
                raise ValueError(f"Product {product.title} is not active")
            if quantity < product.min_qty:
                raise ValueError(
                    f"Minimum order quantity for {product.title} is {product.min_qty}"
                )
            if quantity > product.stock:
                raise ValueError(f"Insufficient stock for {product.title}")

            groups.setdefault(product.seller_id, []).append({
                "product_id": product.id,
                "title": product.title,
                "quantity": quantity,
                "price": str(_money(product.price)),
                "unit": product.unit,
            })
        return groups

    @staticmethod
    def _new_order(
        db: Session,
        actor: Actor,
        seller_id: str,
        items: List[dict],
        order_data: OrderCreate
    ) -> Order:
        """Stage an order and its initial history row in the session"""
        subtotal, delivery, total, prepayment = compute_totals(
            items,
            order_data.payment_method,
            settings.delivery_charges,
            settings.prepayment_rate
        )
        order = Order(
            customer_id=actor.user_id,
            seller_id=seller_id,
            items=items,
            subtotal=subtotal,
            delivery_charges=delivery,
            total=total,
            payment_method=order_data.payment_method,
            payment_status=PaymentStatus.PENDING,
            prepayment_amount=prepayment,
            status=INITIAL_STATUS,
            delivery_address=order_data.delivery_address.model_dump(),
            contact_attempts=0
        )
        order.history.append(OrderStateHistory(
            status=INITIAL_STATUS,
            changed_by=actor.user_id,
            created_at=_utcnow()
        ))
        db.add(order)
        return order

    @staticmethod
    def _place(db: Session, actor: Actor, order_data: OrderCreate, single_seller: bool) -> List[Order]:
        if actor.role != UserRole.CUSTOMER:
            raise OrderAccessDeniedError("Only customers can place orders")

        groups = OrderService._snapshot_items(db, order_data.items)
        if single_seller and len(groups) > 1:
            raise ValueError(
                "All items in an order must come from the same seller; use checkout for mixed carts"
            )

        try:
            orders = [
                OrderService._new_order(db, actor, seller_id, items, order_data)
                for seller_id, items in groups.items()
            ]
            db.commit()
        except Exception:
            db.rollback()
            raise

        for order in orders:
            db.refresh(order)
            logger.info(
                f"Order {order.id} created by customer {actor.user_id} "
                f"for seller {order.seller_id}: total={order.total}"
            )
        return orders

    @staticmethod
    def create_order(db: Session, actor: Actor, order_data: OrderCreate) -> Order:
        """
        Create one order for a single seller

        The order row and its first history row are committed together.

        Raises:
            OrderAccessDeniedError: actor is not a customer
            ValueError: invalid items, or items from more than one seller
        """
        with tracer.start_as_current_span("order_service.create_order") as span:
            span.set_attribute("user.id", actor.user_id)
            span.set_attribute("items.count", len(order_data.items))

            order = OrderService._place(db, actor, order_data, single_seller=True)[0]
            span.set_attribute("order.id", order.id)
            return order

    @staticmethod
    def checkout(db: Session, actor: Actor, order_data: OrderCreate) -> List[Order]:
        """Split a cart by seller and create one order per seller in one transaction"""
        with tracer.start_as_current_span("order_service.checkout") as span:
            span.set_attribute("user.id", actor.user_id)
            span.set_attribute("items.count", len(order_data.items))

            orders = OrderService._place(db, actor, order_data, single_seller=False)
            span.set_attribute("orders.count", len(orders))
            return orders

    @staticmethod
    def _ensure_visible(order: Order, actor: Actor) -> None:
        if actor.is_admin:
            return
        if actor.role == UserRole.CUSTOMER and order.customer_id == actor.user_id:
            return
        if actor.role == UserRole.SELLER and actor.seller_id and order.seller_id == actor.seller_id:
            return
        raise OrderAccessDeniedError(f"Not allowed to access order {order.id}")

    @staticmethod
    def get_order(db: Session, actor: Actor, order_id: str) -> Order:
        """
        Get an order visible to actor

        Raises:
            OrderNotFoundError, OrderAccessDeniedError
        """
        with tracer.start_as_current_span("order_service.get_order") as span:
            span.set_attribute("order.id", order_id)
            order = db.query(Order).filter(Order.id == order_id).first()
            if order is None:
                raise OrderNotFoundError(order_id)
            OrderService._ensure_visible(order, actor)
            return order

    @staticmethod
    def list_orders(
        db: Session,
        actor: Actor,
        statuses: Optional[Sequence[OrderStatus]] = None,
        skip: int = 0,
        limit: int = 100
    ) -> Tuple[List[Order], int]:
        """
        List orders visible to actor, newest first

        Customers see their own orders, sellers the orders placed with their
        shop. Admins see every order in the requested statuses, defaulting
        to the in-review queue.
        """
        with tracer.start_as_current_span("order_service.list_orders") as span:
            span.set_attribute("user.role", actor.role.value)
            query = db.query(Order)

            if actor.role == UserRole.CUSTOMER:
                query = query.filter(Order.customer_id == actor.user_id)
            elif actor.role == UserRole.SELLER:
                if not actor.seller_id:
                    raise OrderAccessDeniedError("Not a seller")
                query = query.filter(Order.seller_id == actor.seller_id)
            elif not statuses:
                statuses = IN_REVIEW_STATUSES

            if statuses:
                query = query.filter(Order.status.in_(list(statuses)))
                span.set_attribute("filter.status", ",".join(s.value for s in statuses))

            total = query.count()
            orders = query.order_by(Order.created_at.desc()).offset(skip).limit(limit).all()

            span.set_attribute("orders.total", total)
            return orders, total

    @staticmethod
    def update_order(db: Session, actor: Actor, order_id: str, changes: OrderUpdate) -> Order:
        """
        Apply a partial update, auditing any status change

        The order row is locked for the duration of the transaction. When the
        requested status differs from the stored one the transition is
        validated and exactly one history row is written alongside the
        update; an equal status writes nothing to history. Any failure rolls
        back both.

        Raises:
            OrderNotFoundError: order does not exist
            OrderAccessDeniedError: actor cannot see the order or set a field
            InvalidTransitionError: status not reachable from the current one
            TransitionNotPermittedError: actor role may not request the status
        """
        with tracer.start_as_current_span("order_service.update_order") as span:
            span.set_attribute("order.id", order_id)
            span.set_attribute("user.id", actor.user_id)

            data = changes.model_dump(exclude_unset=True)
            note = data.pop("note", None)
            new_status = data.pop("status", None)
            for field in ("payment_status", "contact_attempts"):
                if field in data and data[field] is None:
                    data.pop(field)

            try:
                order = db.execute(lock_order_statement(order_id)).scalars().first()
                if order is None:
                    raise OrderNotFoundError(order_id)
                OrderService._ensure_visible(order, actor)

                restricted = sorted(set(data) & ADMIN_FIELDS)
                if restricted and not actor.is_admin:
                    raise OrderAccessDeniedError(
                        f"Role '{actor.role.value}' may not update: {', '.join(restricted)}"
                    )

                old_status = order.status
                status_changed = new_status is not None and new_status != old_status
                if status_changed:
                    validate_transition(old_status, new_status, actor.role)

                for field, value in data.items():
                    setattr(order, field, value)

                if status_changed:
                    order.status = new_status
                    if (
                        actor.is_admin
                        and old_status == OrderStatus.PENDING_VERIFICATION
                        and order.verified_by_admin_id is None
                    ):
                        order.verified_by_admin_id = actor.user_id
                    db.add(OrderStateHistory(
                        order_id=order.id,
                        status=new_status,
                        changed_by=actor.user_id,
                        # Stamped after the row lock so history order follows lock order
                        created_at=_utcnow(),
                        note=derive_note(
                            note,
                            data.get("reject_reason"),
                            data.get("seller_response"),
                            data.get("buyer_response")
                        )
                    ))

                db.commit()
            except Exception:
                db.rollback()
                raise

            db.refresh(order)

            if status_changed:
                span.set_attribute("status.old", old_status.value)
                span.set_attribute("status.new", new_status.value)
                logger.info(
                    f"Order {order_id} status updated: {old_status.value} -> "
                    f"{new_status.value} by {actor.role.value} {actor.user_id}"
                )
            else:
                logger.info(f"Order {order_id} updated by {actor.role.value} {actor.user_id}")

            return order

    @staticmethod
    def transition_order(
        db: Session,
        actor: Actor,
        order_id: str,
        new_status: OrderStatus,
        note: Optional[str] = None,
        **responses
    ) -> Order:
        """Move an order to new_status; responses may carry reject_reason/seller_response/buyer_response"""
        return OrderService.update_order(
            db, actor, order_id, OrderUpdate(status=new_status, note=note, **responses)
        )

    @staticmethod
    def get_order_history(db: Session, actor: Actor, order_id: str) -> List[OrderStateHistory]:
        """History rows for an order, most recent first"""
        with tracer.start_as_current_span("order_service.get_order_history") as span:
            span.set_attribute("order.id", order_id)
            OrderService.get_order(db, actor, order_id)

            return (
                db.query(OrderStateHistory)
                .filter(OrderStateHistory.order_id == order_id)
                .order_by(OrderStateHistory.created_at.desc(), OrderStateHistory.id.desc())
                .limit(settings.history_limit)
                .all()
            )

    @staticmethod
    def list_payments(db: Session, actor: Actor, order_id: str) -> List[Payment]:
        """Payments recorded against an order"""
        OrderService.get_order(db, actor, order_id)
        return (
            db.query(Payment)
            .filter(Payment.order_id == order_id)
            .order_by(Payment.created_at)
            .all()
        )

    @staticmethod
    def record_payment(db: Session, actor: Actor, order_id: str, payment_data: PaymentCreate) -> Payment:
        """Record a payment-provider transaction (admin only)"""
        with tracer.start_as_current_span("order_service.record_payment") as span:
            span.set_attribute("order.id", order_id)
            if not actor.is_admin:
                raise OrderAccessDeniedError("Only admins can record payments")
            OrderService.get_order(db, actor, order_id)

            data = payment_data.model_dump()
            data["amount"] = _money(data["amount"])
            payment = Payment(order_id=order_id, **data)
            db.add(payment)
            db.commit()
            db.refresh(payment)

            logger.info(f"Recorded {payment.type} payment {payment.id} for order {order_id}")
            return payment
