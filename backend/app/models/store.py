"""
Store model - the e-commerce shop (tenant) that owns campaigns, products and articles.
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base


class Store(Base):
    """Connected Shopify store."""

    __tablename__ = "stores"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Owner
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user = relationship("User", back_populates="stores")

    name = Column(String(255), nullable=False)
    shop_domain = Column(String(255), nullable=False)  # my-shop.myshopify.com
    storefront_url = Column(String(500), nullable=True)  # public base URL used in product links

    # Admin API access (Fernet-encrypted)
    access_token_encrypted = Column(Text, nullable=True)
    blog_id = Column(String(50), nullable=True)  # target blog for published articles

    # Relationships
    campaigns = relationship("Campaign", back_populates="store", cascade="all, delete-orphan")
    products = relationship("Product", back_populates="store", lazy="dynamic")

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def base_url(self) -> str:
        """Base URL for building product links (no trailing slash)."""
        url = self.storefront_url or f"https://{self.shop_domain}"
        return url.rstrip("/")

    def __repr__(self):
        return f"<Store {self.shop_domain}>"
