"""
Catalog database models
"""
from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from marketplace.db.database import Base
import uuid


class Product(Base):
    """Product model"""
    __tablename__ = "products"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    seller_id = Column(
        String(36),
        ForeignKey("sellers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    title = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    unit = Column(String(32), default="piece", nullable=False)
    stock = Column(Integer, default=0, nullable=False)
    min_qty = Column(Integer, default=1, nullable=False)
    description = Column(Text, nullable=True)
    delivery_estimate = Column(String(64), default="2-3 days")
    is_active = Column(Boolean, default=True, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Product(id={self.id}, title={self.title}, price={self.price})>"
