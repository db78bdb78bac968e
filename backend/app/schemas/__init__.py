"""
Pydantic schemas for request/response validation.
"""
from .campaign import (
    CampaignBase, CampaignCreate, CampaignUpdate, CampaignResponse, CampaignEventRequest,
    CycleResultResponse, ExecutionLogResponse, SchedulePreviewResponse,
)
from .article import ArticleSummary, ArticleResponse, ValidationReport

__all__ = [
    "CampaignBase", "CampaignCreate", "CampaignUpdate", "CampaignResponse", "CampaignEventRequest",
    "CycleResultResponse", "ExecutionLogResponse", "SchedulePreviewResponse",
    "ArticleSummary", "ArticleResponse", "ValidationReport",
]
