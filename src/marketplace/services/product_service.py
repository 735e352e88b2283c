"""Catalog business logic"""
from decimal import Decimal
from sqlalchemy.orm import Session
from marketplace.models.product import Product
from marketplace.models.schemas import ProductCreate
from typing import Iterable, List, Optional, Tuple
from opentelemetry import trace
import logging

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ProductService:
    """Product service for catalog reads and seller listings"""
    
    @staticmethod
    def get_product(db: Session, product_id: str) -> Optional[Product]:
        """Get product by ID"""
        with tracer.start_as_current_span("product_service.get_product") as span:
            span.set_attribute("product.id", product_id)
            return db.query(Product).filter(Product.id == product_id).first()
    
    @staticmethod
    def get_products_by_ids(db: Session, product_ids: Iterable[str]) -> List[Product]:
        """Fetch several products in one query"""
        ids = list(set(product_ids))
        if not ids:
            return []
        return db.query(Product).filter(Product.id.in_(ids)).all()
    
    @staticmethod
    def get_products(
        db: Session,
        skip: int = 0,
        limit: int = 100,
        category: Optional[str] = None,
        seller_id: Optional[str] = None
    ) -> Tuple[List[Product], int]:
        """Get active products with pagination, newest first"""
        query = db.query(Product).filter(Product.is_active.is_(True))
        
        if category:
            query = query.filter(Product.category == category)
        if seller_id:
            query = query.filter(Product.seller_id == seller_id)
        
        total = query.count()
        products = query.order_by(Product.created_at.desc()).offset(skip).limit(limit).all()
        
        return products, total
    
    @staticmethod
    def create_product(db: Session, seller_id: str, product_data: ProductCreate) -> Product:
        """Create a product listed by seller_id"""
        data = product_data.model_dump()
        data["price"] = Decimal(str(data["price"])).quantize(Decimal("0.01"))
        
        product = Product(seller_id=seller_id, **data)
        db.add(product)
        db.commit()
        db.refresh(product)
        
        logger.info(f"Seller {seller_id} created product {product.id}")
        return product
