"""
Bearer token verification for API callers.

The dashboard signs short-lived JWTs with the shared secret; this service
checks them and resolves the store owner they were issued for.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from ..config import get_settings
from ..models.user import User

logger = logging.getLogger(__name__)

settings = get_settings()

TOKEN_TYPE = "access"


class TokenVerifier:
    """Signs and verifies owner access tokens."""

    def __init__(self, secret_key: Optional[str] = None, algorithm: Optional[str] = None):
        self.secret_key = secret_key or settings.jwt_secret_key
        self.algorithm = algorithm or settings.jwt_algorithm

    def issue(self, user: User, expires_minutes: Optional[int] = None) -> str:
        """Sign a token for `user` (the dashboard does the same with the shared secret)."""
        lifetime = timedelta(minutes=expires_minutes or settings.access_token_expire_minutes)
        claims = {
            "sub": user.id,
            "email": user.email,
            "type": TOKEN_TYPE,
            "exp": datetime.now(timezone.utc) + lifetime,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def claims(self, token: str) -> Optional[Dict[str, Any]]:
        """Verified claims of an access token, or None."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            logger.info("Rejected expired access token")
            return None
        except JWTError as e:
            logger.warning(f"Rejected access token: {e}")
            return None

        if payload.get("type") != TOKEN_TYPE or not payload.get("sub"):
            return None
        return payload

    def resolve_user(self, db: Session, token: str) -> Optional[User]:
        """Owner the token was issued for, if the token is valid and the user exists."""
        payload = self.claims(token)
        if payload is None:
            return None
        return db.query(User).filter(User.id == payload["sub"]).first()


_token_verifier = None


def get_token_verifier() -> TokenVerifier:
    """Get the singleton token verifier."""
    global _token_verifier
    if _token_verifier is None:
        _token_verifier = TokenVerifier()
    return _token_verifier
