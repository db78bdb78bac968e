"""
Campaign schemas for API validation.
"""
from datetime import date, datetime, time
from typing import List, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator

from ..config import get_settings
from ..errors import CampaignConfigError
from ..services.campaign_schedule import MONTHLY_MAX_DAY, sunday_weekday, validate_schedule_day

FrequencyValue = Literal["daily", "weekly", "bi-weekly", "monthly"]
EventValue = Literal["activate", "pause", "resume", "stop", "complete"]


def _clean_keywords(values: List[str]) -> List[str]:
    cleaned = []
    for value in values:
        value = (value or "").strip()
        if value and value.lower() not in [k.lower() for k in cleaned]:
            cleaned.append(value)
    return cleaned


class CampaignBase(BaseModel):
    """Base schema for Campaign."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    topic_niche: Optional[str] = Field(None, max_length=255)
    target_audience: Optional[str] = None

    # Scheduling
    frequency: FrequencyValue = "weekly"
    schedule_time: time = time(9, 0)
    schedule_day: Optional[int] = None  # weekday 0=Sunday..6, or day of month 1-28
    timezone: str = Field(default_factory=lambda: get_settings().default_timezone)
    start_date: date
    end_date: Optional[date] = None
    max_articles: Optional[int] = Field(None, ge=1)

    # Content
    word_count_min: int = Field(700, ge=100, le=10000)
    word_count_max: int = Field(900, ge=100, le=20000)
    writing_style: str = "professional"
    tone: str = "formal"
    keywords: List[str] = Field(..., min_length=1)
    content_structure: Optional[str] = None
    language: str = Field("en", pattern="^[a-z]{2}$")

    # Toggles
    internal_linking_enabled: bool = True
    max_internal_links: int = Field(5, ge=0, le=20)
    image_integration_enabled: bool = True
    product_links_enabled: bool = True
    product_enrichment_enabled: bool = True
    seo_optimization_enabled: bool = True
    auto_publish: bool = False

    @field_validator("keywords")
    @classmethod
    def keywords_not_empty(cls, values: List[str]) -> List[str]:
        cleaned = _clean_keywords(values)
        if not cleaned:
            raise ValueError("at least one keyword is required")
        return cleaned

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        if value.upper() == "UTC":
            return "UTC"
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone '{value}'") from None
        return value

    @model_validator(mode="after")
    def check_schedule(self):
        if self.word_count_max < self.word_count_min:
            raise ValueError("word_count_max must be greater than or equal to word_count_min")
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")

        if self.schedule_day is None:
            if self.frequency in ("weekly", "bi-weekly"):
                self.schedule_day = sunday_weekday(self.start_date)
            elif self.frequency == "monthly":
                self.schedule_day = min(self.start_date.day, MONTHLY_MAX_DAY)
        elif self.frequency == "daily":
            self.schedule_day = None

        try:
            validate_schedule_day(self.frequency, self.schedule_day)
        except CampaignConfigError as e:
            raise ValueError(str(e)) from None
        return self


class CampaignCreate(CampaignBase):
    """Schema for creating a new Campaign."""
    store_id: str
    status: Literal["draft", "active"] = "draft"


class CampaignUpdate(BaseModel):
    """Schema for updating a Campaign; status changes go through events."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    topic_niche: Optional[str] = Field(None, max_length=255)
    target_audience: Optional[str] = None
    frequency: Optional[FrequencyValue] = None
    schedule_time: Optional[time] = None
    schedule_day: Optional[int] = None
    timezone: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    max_articles: Optional[int] = Field(None, ge=1)
    word_count_min: Optional[int] = Field(None, ge=100, le=10000)
    word_count_max: Optional[int] = Field(None, ge=100, le=20000)
    writing_style: Optional[str] = None
    tone: Optional[str] = None
    keywords: Optional[List[str]] = None
    content_structure: Optional[str] = None
    language: Optional[str] = Field(None, pattern="^[a-z]{2}$")
    internal_linking_enabled: Optional[bool] = None
    max_internal_links: Optional[int] = Field(None, ge=0, le=20)
    image_integration_enabled: Optional[bool] = None
    product_links_enabled: Optional[bool] = None
    product_enrichment_enabled: Optional[bool] = None
    seo_optimization_enabled: Optional[bool] = None
    auto_publish: Optional[bool] = None


class CampaignEventRequest(BaseModel):
    event: EventValue


class CampaignResponse(CampaignBase):
    """Schema for Campaign API response."""
    id: str
    store_id: str
    status: str
    articles_generated: int = 0
    articles_published: int = 0
    last_execution: Optional[datetime] = None
    next_execution: Optional[datetime] = None
    is_generating: bool = False
    allowed_events: List[str] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CycleResultResponse(BaseModel):
    campaign_id: str
    trigger: str
    skipped: bool = False
    reason: Optional[str] = None
    status: Optional[str] = None
    article_id: Optional[str] = None
    validation_score: Optional[int] = None
    published: bool = False
    error: Optional[str] = None
    next_execution: Optional[datetime] = None
    campaign_status: Optional[str] = None


class ExecutionLogResponse(BaseModel):
    id: str
    campaign_id: str
    execution_time: datetime
    status: str
    trigger: str
    articles_generated: int = 0
    article_id: Optional[str] = None
    error_message: Optional[str] = None
    duration_ms: Optional[int] = None

    class Config:
        from_attributes = True


class SchedulePreviewResponse(BaseModel):
    campaign_id: str
    timezone: str
    runs: List[datetime]  # naive UTC
