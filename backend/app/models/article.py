"""
Article model - a generated (or manually created) blog article.
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Integer, JSON
from sqlalchemy.orm import relationship

from ..database import Base


class ArticleStatus(str, Enum):
    """Publication status of an article."""
    DRAFT = "draft"
    NEEDS_REVIEW = "needs_review"  # failed structural validation
    PUBLISHED = "published"


class Article(Base):
    """Blog article produced by a campaign run."""

    __tablename__ = "blog_articles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    store_id = Column(String(36), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)

    # Nullable for manually created articles
    campaign_id = Column(String(36), ForeignKey("blog_campaigns.id", ondelete="SET NULL"), nullable=True, index=True)
    campaign = relationship("Campaign", back_populates="articles")

    # Content
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    meta_description = Column(String(500), nullable=True)
    focus_keyword = Column(String(255), nullable=True)
    keywords = Column(JSON, default=list)
    category = Column(String(255), nullable=True)
    subcategory = Column(String(255), nullable=True)
    language = Column(String(10), default="en")
    word_count = Column(Integer, default=0)  # always computed from content
    status = Column(String(20), default=ArticleStatus.DRAFT.value, index=True)

    # [{product_id, title, handle, image_url, price, category}]
    product_links = Column(JSON, default=list)

    # Validation / enrichment outcome
    validation_score = Column(Integer, nullable=True)
    validation_issues = Column(JSON, default=list)
    products_enriched = Column(Integer, default=0)
    products_not_enriched = Column(Integer, default=0)

    # Publishing
    shopify_article_id = Column(String(50), nullable=True)
    published_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Article {self.title[:40] if self.title else self.id} ({self.status})>"
