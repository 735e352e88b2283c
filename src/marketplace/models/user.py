"""
Account database models
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from marketplace.db.database import Base
import enum
import uuid


def _values(enum_cls):
    return [member.value for member in enum_cls]


class UserRole(str, enum.Enum):
    """Role of an authenticated actor"""
    CUSTOMER = "customer"
    SELLER = "seller"
    ADMIN = "admin"


class Profile(Base):
    """Profile model, one per account"""
    __tablename__ = "profiles"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    role = Column(
        SQLEnum(UserRole, name="app_role", values_callable=_values),
        default=UserRole.CUSTOMER,
        nullable=False
    )
    phone = Column(String(32), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    password_hash = Column(Text, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    seller = relationship(
        "Seller",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    
    def __repr__(self):
        return f"<Profile(id={self.id}, role={self.role}, phone={self.phone})>"


class Seller(Base):
    """Seller model, attached to a profile with the seller role"""
    __tablename__ = "sellers"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    shop_name = Column(String(255), nullable=False)
    status = Column(String(32), default="active", nullable=False)
    delivery_radius_km = Column(Integer, default=10)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    user = relationship("Profile", back_populates="seller")
    
    def __repr__(self):
        return f"<Seller(id={self.id}, shop_name={self.shop_name})>"
