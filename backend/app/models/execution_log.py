"""
Append-only log of campaign executions.
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base


class ExecutionStatus(str, Enum):
    """Outcome of one orchestration cycle."""
    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"  # article produced but failed validation


class ExecutionTrigger(str, Enum):
    SCHEDULED = "scheduled"
    MANUAL = "manual"


class CampaignExecutionLog(Base):
    """One entry per orchestration cycle attempt, success or failure."""

    __tablename__ = "campaign_execution_log"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    campaign_id = Column(String(36), ForeignKey("blog_campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign = relationship("Campaign", back_populates="executions")

    execution_time = Column(DateTime, default=datetime.utcnow, index=True)
    status = Column(String(20), nullable=False)
    trigger = Column(String(20), default=ExecutionTrigger.SCHEDULED.value)
    articles_generated = Column(Integer, default=0)
    article_id = Column(String(36), nullable=True)
    error_message = Column(Text, nullable=True)
    duration_ms = Column(Integer, nullable=True)

    def __repr__(self):
        return f"<CampaignExecutionLog {self.campaign_id} {self.status}>"
