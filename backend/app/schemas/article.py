"""
Article schemas for API responses.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ProductLink(BaseModel):
    product_id: str
    title: str
    handle: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None


class ArticleSummary(BaseModel):
    """Article list item (no body)."""
    id: str
    store_id: str
    campaign_id: Optional[str] = None
    title: str
    status: str
    language: Optional[str] = None
    word_count: int = 0
    validation_score: Optional[int] = None
    published_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ArticleResponse(ArticleSummary):
    content: str
    meta_description: Optional[str] = None
    focus_keyword: Optional[str] = None
    keywords: List[str] = []
    category: Optional[str] = None
    subcategory: Optional[str] = None
    product_links: List[ProductLink] = []
    validation_issues: List[str] = []
    products_enriched: int = 0
    products_not_enriched: int = 0
    shopify_article_id: Optional[str] = None
    updated_at: datetime


class HeadingReport(BaseModel):
    score: int
    h1_count: int
    h2_count: int
    errors: List[str] = []
    warnings: List[str] = []
    structure: str


class ValidationReport(BaseModel):
    """Result of re-validating a stored article."""
    article_id: str
    passed: bool
    score: int
    issues: List[str] = []
    hard_issues: List[str] = []
    soft_issues: List[str] = []
    length_issues: List[str] = []
    word_count: int
    placeholders: List[str] = []
    headings: HeadingReport
    status: str


def heading_report(analysis) -> Dict[str, Any]:
    return {
        "score": analysis.score,
        "h1_count": analysis.h1_count,
        "h2_count": analysis.h2_count,
        "errors": analysis.errors,
        "warnings": analysis.warnings,
        "structure": analysis.structure,
    }
