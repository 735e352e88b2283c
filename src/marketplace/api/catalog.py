"""FastAPI routes for the product catalog"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from marketplace.db.database import get_db
from marketplace.api.deps import require_role
from marketplace.services.auth import Actor
from marketplace.services.product_service import ProductService
from marketplace.models.user import UserRole
from marketplace.models.schemas import ProductCreate, ProductResponse, ProductListResponse
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["products"])


@router.get("/products", response_model=ProductListResponse)
def list_products(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    category: Optional[str] = Query(None),
    seller_id: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """List active products with pagination"""
    logger.info(f"Listing products: skip={skip}, limit={limit}")
    
    products, total = ProductService.get_products(
        db=db, skip=skip, limit=limit, category=category, seller_id=seller_id
    )
    
    return ProductListResponse(
        total=total,
        products=products,
        page=skip // limit + 1,
        page_size=limit
    )


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(product_id: str, db: Session = Depends(get_db)):
    """Get a specific product by ID"""
    product = ProductService.get_product(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product: ProductCreate,
    actor: Actor = Depends(require_role(UserRole.SELLER)),
    db: Session = Depends(get_db)
):
    """List a new product under the caller's shop"""
    if not actor.seller_id:
        raise HTTPException(status_code=403, detail="Not a seller")
    return ProductService.create_product(db, actor.seller_id, product)
