"""
Pydantic schemas for the marketplace API
"""
from pydantic import BaseModel, Field, EmailStr, ConfigDict
from typing import Any, Dict, List, Optional
from datetime import datetime
from marketplace.models.order import OrderStatus, PaymentStatus, PaymentMethod
from marketplace.models.user import UserRole


# Accounts

class SignupRequest(BaseModel):
    """Schema for account sign-up"""
    phone: str = Field(..., min_length=5, max_length=32)
    password: str = Field(..., min_length=6, max_length=72)
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    role: UserRole = UserRole.CUSTOMER
    shop_name: Optional[str] = Field(None, min_length=1, max_length=255)


class SigninRequest(BaseModel):
    """Schema for sign-in"""
    phone: str
    password: str


class ProfileResponse(BaseModel):
    """Profile without credentials"""
    id: str
    role: UserRole
    phone: str
    name: str
    email: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """Schema for sign-up/sign-in response"""
    access_token: str
    token_type: str = "bearer"
    user: ProfileResponse


class SellerResponse(BaseModel):
    """Schema for seller response"""
    id: str
    user_id: str
    shop_name: str
    status: str
    delivery_radius_km: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Catalog

class ProductCreate(BaseModel):
    """Schema for creating a product"""
    title: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    price: float = Field(..., gt=0, description="Unit price (must be positive)")
    unit: str = Field("piece", min_length=1, max_length=32)
    stock: int = Field(0, ge=0)
    min_qty: int = Field(1, ge=1)
    description: Optional[str] = None
    delivery_estimate: Optional[str] = Field("2-3 days", max_length=64)
    is_active: bool = True


class ProductResponse(BaseModel):
    """Schema for product response"""
    id: str
    seller_id: str
    title: str
    category: str
    price: float
    unit: str
    stock: int
    min_qty: int
    description: Optional[str] = None
    delivery_estimate: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductListResponse(BaseModel):
    """Schema for list of products"""
    total: int
    products: List[ProductResponse]
    page: int
    page_size: int


# Orders

class OrderItemCreate(BaseModel):
    """Schema for one requested line item"""
    product_id: str = Field(..., min_length=1, description="Catalog product ID")
    quantity: int = Field(..., gt=0, description="Quantity")


class DeliveryAddress(BaseModel):
    """Delivery address captured into the order"""
    address_line1: str = Field(..., min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pin_code: str = Field(..., min_length=1, max_length=16)


class OrderCreate(BaseModel):
    """Schema for creating an order"""
    items: List[OrderItemCreate] = Field(..., min_length=1, description="At least one item required")
    delivery_address: DeliveryAddress
    payment_method: PaymentMethod


class OrderUpdate(BaseModel):
    """Schema for a partial order update"""
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    seller_response: Optional[str] = None
    buyer_response: Optional[str] = None
    reject_reason: Optional[str] = None
    contact_attempts: Optional[int] = Field(None, ge=0)
    note: Optional[str] = Field(None, description="Recorded on the history row when status changes")


class OrderItemSnapshot(BaseModel):
    """Line item as captured at order time"""
    product_id: str
    title: str
    quantity: int
    price: float
    unit: str


class OrderResponse(BaseModel):
    """Schema for order response"""
    id: str
    customer_id: str
    seller_id: str
    items: List[OrderItemSnapshot]
    subtotal: float
    delivery_charges: float
    total: float
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    prepayment_amount: Optional[float] = None
    status: OrderStatus
    delivery_address: Dict[str, Any]
    verified_by_admin_id: Optional[str] = None
    seller_response: Optional[str] = None
    buyer_response: Optional[str] = None
    reject_reason: Optional[str] = None
    contact_attempts: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class OrderListResponse(BaseModel):
    """Schema for list of orders"""
    total: int
    orders: List[OrderResponse]
    page: int
    page_size: int


class OrderHistoryResponse(BaseModel):
    """Schema for one history row"""
    id: int
    order_id: str
    status: OrderStatus
    changed_by: Optional[str] = None
    note: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentCreate(BaseModel):
    """Schema for recording a payment-provider transaction"""
    amount: float = Field(..., gt=0)
    type: str = Field(..., min_length=1, max_length=32, description="full, prepayment or refund")
    status: str = Field("pending", min_length=1, max_length=32)
    provider_id: Optional[str] = Field(None, max_length=255)
    details: Optional[Dict[str, Any]] = None


class PaymentResponse(BaseModel):
    """Schema for payment response"""
    id: str
    order_id: str
    provider_id: Optional[str] = None
    amount: float
    status: str
    type: str
    details: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    version: str
    timestamp: datetime
