"""FastAPI routes for authentication and sellers"""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from marketplace.config import settings
from marketplace.db.database import get_db
from marketplace.api.deps import get_current_actor
from marketplace.services.auth import Actor, create_access_token
from marketplace.services.user_service import UserService
from marketplace.models.user import Profile, UserRole
from marketplace.models.schemas import (
    SignupRequest, SigninRequest, AuthResponse, ProfileResponse, SellerResponse
)
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["accounts"])


def _issue_token(profile: Profile, response: Response) -> AuthResponse:
    access_token = create_access_token(data={"sub": profile.id, "role": profile.role.value})
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=access_token,
        httponly=True,
        secure=settings.environment == "production",
        max_age=settings.access_token_expire_minutes * 60
    )
    return AuthResponse(access_token=access_token, user=profile)


@router.post("/auth/signup", response_model=AuthResponse, status_code=201)
def signup(data: SignupRequest, response: Response, db: Session = Depends(get_db)):
    """Register a customer, seller or (when enabled) admin account"""
    if data.role == UserRole.ADMIN and not settings.allow_admin_signup:
        raise HTTPException(status_code=403, detail="Admin sign-up is disabled")
    
    try:
        profile = UserService.create_profile(db, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    
    return _issue_token(profile, response)


@router.post("/auth/signin", response_model=AuthResponse)
def signin(credentials: SigninRequest, response: Response, db: Session = Depends(get_db)):
    """Sign in and return a JWT token"""
    profile = UserService.authenticate(db, credentials.phone, credentials.password)
    
    if not profile:
        raise HTTPException(
            status_code=401,
            detail="Invalid credentials"
        )
    
    return _issue_token(profile, response)


@router.post("/auth/signout")
def signout(response: Response):
    """Clear the auth cookie"""
    response.delete_cookie(settings.auth_cookie_name)
    return {"message": "Signed out successfully"}


@router.get("/auth/session", response_model=ProfileResponse)
def session(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    """Profile of the authenticated caller"""
    return UserService.get_profile(db, actor.user_id)


@router.get("/sellers", response_model=List[SellerResponse])
def list_sellers(db: Session = Depends(get_db)):
    """List active sellers"""
    return UserService.get_active_sellers(db)


@router.get("/sellers/me", response_model=SellerResponse)
def my_seller(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    """Seller record of the authenticated caller"""
    seller = UserService.get_seller_by_user_id(db, actor.user_id)
    if not seller:
        raise HTTPException(status_code=404, detail="Seller not found")
    return seller
