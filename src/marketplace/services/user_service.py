"""Account business logic"""
from sqlalchemy.orm import Session
from marketplace.models.user import Profile, Seller, UserRole
from marketplace.models.schemas import SignupRequest
from marketplace.services.auth import hash_password, verify_password
from typing import List, Optional
from opentelemetry import trace
import logging

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class UserService:
    """Profile and seller lookups, sign-up and sign-in"""
    
    @staticmethod
    def get_profile(db: Session, profile_id: str) -> Optional[Profile]:
        """Get profile by ID"""
        with tracer.start_as_current_span("user_service.get_profile") as span:
            span.set_attribute("user.id", profile_id)
            return db.query(Profile).filter(Profile.id == profile_id).first()
    
    @staticmethod
    def get_profile_by_phone(db: Session, phone: str) -> Optional[Profile]:
        """Get profile by phone number"""
        return db.query(Profile).filter(Profile.phone == phone).first()
    
    @staticmethod
    def get_seller_by_user_id(db: Session, user_id: str) -> Optional[Seller]:
        """Get the seller record owned by a profile"""
        return db.query(Seller).filter(Seller.user_id == user_id).first()
    
    @staticmethod
    def get_active_sellers(db: Session) -> List[Seller]:
        """List sellers open for business"""
        return db.query(Seller).filter(Seller.status == "active").order_by(Seller.shop_name).all()
    
    @staticmethod
    def create_profile(db: Session, data: SignupRequest) -> Profile:
        """
        Create a profile, and its seller record for sellers
        
        Raises:
            ValueError: phone already registered, or seller without a shop name
        """
        with tracer.start_as_current_span("user_service.create_profile") as span:
            span.set_attribute("user.role", data.role.value)
            
            if UserService.get_profile_by_phone(db, data.phone):
                raise ValueError("User already exists with this phone number")
            
            if data.role == UserRole.SELLER and not data.shop_name:
                raise ValueError("shop_name is required for seller accounts")
            
            profile = Profile(
                phone=data.phone,
                name=data.name,
                email=data.email,
                role=data.role,
                password_hash=hash_password(data.password)
            )
            db.add(profile)
            db.flush()
            
            if data.role == UserRole.SELLER:
                db.add(Seller(user_id=profile.id, shop_name=data.shop_name, status="active"))
            
            db.commit()
            db.refresh(profile)
            
            span.set_attribute("user.id", profile.id)
            logger.info(f"Created {profile.role.value} profile {profile.id}")
            
            return profile
    
    @staticmethod
    def authenticate(db: Session, phone: str, password: str) -> Optional[Profile]:
        """Return the profile if the credentials match"""
        with tracer.start_as_current_span("user_service.authenticate"):
            profile = UserService.get_profile_by_phone(db, phone)
            if not profile:
                logger.warning("Sign-in for unknown phone number")
                return None
            
            if not verify_password(password, profile.password_hash):
                logger.warning(f"Invalid password for profile {profile.id}")
                return None
            
            logger.info(f"Profile {profile.id} authenticated successfully")
            return profile
