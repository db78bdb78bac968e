"""
Campaign model - a recurring configuration that periodically generates blog articles.
"""
import uuid
from datetime import datetime, time, timedelta
from enum import Enum
from sqlalchemy import Column, String, DateTime, Date, Time, Text, ForeignKey, Integer, Boolean, JSON
from sqlalchemy.orm import relationship

from ..config import get_settings
from ..database import Base


class CampaignStatus(str, Enum):
    """Lifecycle status of a campaign."""
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    STOPPED = "stopped"      # terminal
    COMPLETED = "completed"  # terminal


class Frequency(str, Enum):
    """How often a campaign runs."""
    DAILY = "daily"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"


class Campaign(Base):
    """Blog campaign - generates articles for one store on a schedule."""

    __tablename__ = "blog_campaigns"

    # Primary key
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Owning store
    store_id = Column(String(36), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    store = relationship("Store", back_populates="campaigns")

    # Campaign info
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    topic_niche = Column(String(255), nullable=True)
    target_audience = Column(Text, nullable=True)
    status = Column(String(20), default=CampaignStatus.DRAFT.value, index=True)

    # Scheduling
    frequency = Column(String(20), default=Frequency.WEEKLY.value)
    schedule_time = Column(Time, default=time(9, 0))
    schedule_day = Column(Integer, nullable=True)  # weekday 0=Sunday..6 (weekly) or day 1-28 (monthly)
    timezone = Column(String(50), default="UTC")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    max_articles = Column(Integer, nullable=True)  # optional run cap

    # Content configuration
    word_count_min = Column(Integer, default=700)
    word_count_max = Column(Integer, default=900)
    writing_style = Column(String(30), default="professional")
    tone = Column(String(30), default="formal")
    keywords = Column(JSON, default=list)
    content_structure = Column(Text, nullable=True)
    language = Column(String(10), default="en")

    # Feature toggles
    internal_linking_enabled = Column(Boolean, default=True)
    max_internal_links = Column(Integer, default=5)
    image_integration_enabled = Column(Boolean, default=True)
    product_links_enabled = Column(Boolean, default=True)
    product_enrichment_enabled = Column(Boolean, default=True)
    seo_optimization_enabled = Column(Boolean, default=True)
    auto_publish = Column(Boolean, default=False)

    # Counters
    articles_generated = Column(Integer, default=0)
    articles_published = Column(Integer, default=0)
    last_execution = Column(DateTime, nullable=True)  # naive UTC
    next_execution = Column(DateTime, nullable=True, index=True)  # naive UTC

    # Generation lock (at most one in-flight generation per campaign)
    generation_lock_token = Column(String(36), nullable=True)
    generation_locked_at = Column(DateTime, nullable=True)

    # Relationships
    articles = relationship("Article", back_populates="campaign", lazy="dynamic")
    executions = relationship(
        "CampaignExecutionLog",
        back_populates="campaign",
        lazy="dynamic",
        cascade="all, delete-orphan"
    )

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in (CampaignStatus.STOPPED.value, CampaignStatus.COMPLETED.value)

    @property
    def is_generating(self) -> bool:
        """A lock older than the TTL is abandoned and no longer counts."""
        if self.generation_lock_token is None or self.generation_locked_at is None:
            return False
        ttl = timedelta(minutes=get_settings().generation_lock_ttl_minutes)
        return self.generation_locked_at >= datetime.utcnow() - ttl

    def __repr__(self):
        return f"<Campaign {self.name} ({self.status})>"
