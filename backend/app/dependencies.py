"""
FastAPI dependencies: the calling store owner and the resources they own.
"""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from .database import get_db
from .services.auth_service import get_token_verifier
from .models.user import User
from .models.store import Store
from .models.campaign import Campaign

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the store owner from the Authorization bearer token.

    Raises:
        HTTPException 401: Missing or invalid token, or unknown user
        HTTPException 403: Deactivated account
    """
    user = None
    if credentials is not None:
        user = get_token_verifier().resolve_user(db, credentials.credentials)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is deactivated")
    return user


def get_owned_store(db: Session, store_id: str, user: User) -> Store:
    """Load a store owned by the user, or 404."""
    store = db.query(Store).filter(Store.id == store_id, Store.user_id == user.id).first()
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")
    return store


def get_owned_campaign(db: Session, campaign_id: str, user: User) -> Campaign:
    """Load a campaign whose store is owned by the user, or 404."""
    campaign = (
        db.query(Campaign)
        .join(Store, Campaign.store_id == Store.id)
        .filter(Campaign.id == campaign_id, Store.user_id == user.id)
        .first()
    )
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign
