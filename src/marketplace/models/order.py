"""
Order database models
"""
from sqlalchemy import (
    Column, Integer, String, Text, Numeric, DateTime, ForeignKey, JSON, Enum as SQLEnum
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from marketplace.db.database import Base
import enum
import uuid


def _values(enum_cls):
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    """Order status enum"""
    CREATED = "created"
    PENDING_VERIFICATION = "pending_verification"
    SELLER_CONTACTED = "seller_contacted"
    SELLER_ACCEPTED = "seller_accepted"
    SELLER_REJECTED = "seller_rejected"
    BUYER_CONTACTED = "buyer_contacted"
    BUYER_CONFIRMED = "buyer_confirmed"
    BUYER_REJECTED = "buyer_rejected"
    CONFIRMED = "confirmed"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    REJECTED = "rejected"


class PaymentStatus(str, enum.Enum):
    """Payment status enum"""
    PENDING = "pending"
    PARTIAL_PENDING = "partial_pending"
    PARTIAL_PAID = "partial_paid"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    """Payment method enum"""
    ONLINE = "online"
    COD = "cod"


# Shared by orders.status and order_state_history.status
order_status_type = SQLEnum(OrderStatus, name="order_status", values_callable=_values)


class Order(Base):
    """Order model, one per customer/seller checkout"""
    __tablename__ = "orders"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    customer_id = Column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    seller_id = Column(
        String(36),
        ForeignKey("sellers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    
    # Snapshot taken at creation, never recomputed from the catalog
    items = Column(JSON, nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    delivery_charges = Column(Numeric(10, 2), default=0, nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(
        SQLEnum(PaymentMethod, name="payment_method", values_callable=_values),
        nullable=False
    )
    delivery_address = Column(JSON, nullable=False)
    
    payment_status = Column(
        SQLEnum(PaymentStatus, name="payment_status", values_callable=_values),
        default=PaymentStatus.PENDING,
        nullable=False
    )
    prepayment_amount = Column(Numeric(10, 2), nullable=True)
    status = Column(order_status_type, default=OrderStatus.CREATED, nullable=False, index=True)
    verified_by_admin_id = Column(
        String(36),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True
    )
    seller_response = Column(Text, nullable=True)
    buyer_response = Column(Text, nullable=True)
    reject_reason = Column(Text, nullable=True)
    contact_attempts = Column(Integer, default=0, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    history = relationship(
        "OrderStateHistory",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    payments = relationship(
        "Payment",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    
    def __repr__(self):
        return f"<Order(id={self.id}, status={self.status}, total={self.total})>"


class OrderStateHistory(Base):
    """Append-only record of one observed order status"""
    __tablename__ = "order_state_history"
    
    # Integer key keeps insertion order as a tie-breaker for equal timestamps
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    status = Column(order_status_type, nullable=False)
    changed_by = Column(
        String(36),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True
    )
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    order = relationship("Order", back_populates="history")
    
    def __repr__(self):
        return f"<OrderStateHistory(order_id={self.order_id}, status={self.status})>"


class Payment(Base):
    """Payment-provider transaction attached to an order"""
    __tablename__ = "payments"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    provider_id = Column(String(255), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(32), default="pending", nullable=False)
    type = Column(String(32), nullable=False)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    order = relationship("Order", back_populates="payments")
    
    def __repr__(self):
        return f"<Payment(id={self.id}, order_id={self.order_id}, amount={self.amount})>"
