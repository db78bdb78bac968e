"""
Product model - read-only mirror of the store catalog (imported and enriched elsewhere).
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Float, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base


class Product(Base):
    """Catalog product with optional AI-enriched attributes."""

    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    store_id = Column(String(36), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    store = relationship("Store", back_populates="products")

    shopify_id = Column(String(50), nullable=True)
    title = Column(String(500), nullable=False)
    handle = Column(String(255), nullable=True)
    status = Column(String(20), default="active")
    category = Column(String(255), nullable=True)
    sub_category = Column(String(255), nullable=True)
    seo_title = Column(String(255), nullable=True)
    price = Column(Float, nullable=True)
    image_url = Column(String(1000), nullable=True)

    # Physical attributes
    smart_length = Column(Float, nullable=True)
    smart_length_unit = Column(String(10), nullable=True)
    smart_width = Column(Float, nullable=True)
    smart_width_unit = Column(String(10), nullable=True)
    smart_height = Column(Float, nullable=True)
    smart_height_unit = Column(String(10), nullable=True)
    smart_weight = Column(Float, nullable=True)
    smart_weight_unit = Column(String(10), nullable=True)
    ai_material = Column(String(255), nullable=True)

    # Visual attributes
    ai_color = Column(String(255), nullable=True)
    ai_vision_analysis = Column(Text, nullable=True)

    # Functional attributes
    functionality = Column(String(255), nullable=True)
    characteristics = Column(Text, nullable=True)

    # Taxonomy
    google_brand = Column(String(255), nullable=True)
    google_product_category = Column(String(500), nullable=True)

    # Catalog order
    position = Column(Integer, default=0)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Product {self.title}>"
