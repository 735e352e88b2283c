"""Request dependencies: the authenticated actor and role guards"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from marketplace.config import settings
from marketplace.db.database import get_db
from marketplace.models.user import UserRole
from marketplace.services.auth import Actor, decode_access_token
from marketplace.services.user_service import UserService
import logging

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> Actor:
    """Resolve the bearer token (or auth cookie) to an Actor"""
    token = credentials.credentials if credentials else request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    
    claims = decode_access_token(token)
    if not claims or not claims.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    
    profile = UserService.get_profile(db, claims["sub"])
    if not profile:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Profile not found")
    
    seller_id = None
    if profile.role == UserRole.SELLER:
        seller = UserService.get_seller_by_user_id(db, profile.id)
        seller_id = seller.id if seller else None
    
    return Actor(user_id=profile.id, role=profile.role, seller_id=seller_id)


def require_role(*roles: UserRole):
    """Dependency factory rejecting actors outside roles"""
    def guard(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            logger.warning(f"{actor.role.value} {actor.user_id} denied, requires {[r.value for r in roles]}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return actor
    return guard
