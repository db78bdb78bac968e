"""
Articles router: generated articles and on-demand re-validation.
"""
import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy import desc

from ..config import get_settings
from ..database import get_db
from ..dependencies import get_current_user
from ..models import Article, Store, User
from ..models.article import ArticleStatus
from ..schemas.article import ArticleResponse, ArticleSummary, ValidationReport, heading_report
from ..services.content_validator import validate

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/articles", tags=["articles"])

DEFAULT_WORD_COUNT_MIN = 700
DEFAULT_WORD_COUNT_MAX = 900


def _get_owned_article(db: Session, article_id: str, user: User) -> Article:
    article = (
        db.query(Article)
        .join(Store, Article.store_id == Store.id)
        .filter(Article.id == article_id, Store.user_id == user.id)
        .first()
    )
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


@router.get("/", response_model=List[ArticleSummary])
def list_articles(
    store_id: Optional[str] = None,
    campaign_id: Optional[str] = None,
    status: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List articles of the current user's stores, newest first."""
    query = (
        db.query(Article)
        .join(Store, Article.store_id == Store.id)
        .filter(Store.user_id == current_user.id)
    )
    if store_id:
        query = query.filter(Article.store_id == store_id)
    if campaign_id:
        query = query.filter(Article.campaign_id == campaign_id)
    if status:
        query = query.filter(Article.status == status)

    return query.order_by(desc(Article.created_at)).offset(skip).limit(limit).all()


@router.get("/{article_id}", response_model=ArticleResponse)
def get_article(
    article_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a single article with its body and product links."""
    return _get_owned_article(db, article_id, current_user)


@router.post("/{article_id}/validate", response_model=ValidationReport)
def validate_article(
    article_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Re-run structural validation on the stored article body.

    Updates the stored score, issues and word count; unpublished articles
    move between `draft` and `needs_review` according to the verdict.
    """
    article = _get_owned_article(db, article_id, current_user)
    campaign = article.campaign

    target_min = campaign.word_count_min if campaign else DEFAULT_WORD_COUNT_MIN
    target_max = campaign.word_count_max if campaign else DEFAULT_WORD_COUNT_MAX
    result = validate(
        article.content,
        target_min,
        target_max,
        words_per_section=settings.words_per_section,
    )

    article.word_count = result.word_count
    article.validation_score = result.score
    article.validation_issues = result.issues
    if article.status != ArticleStatus.PUBLISHED.value:
        article.status = (ArticleStatus.DRAFT if result.passed else ArticleStatus.NEEDS_REVIEW).value

    db.commit()
    logger.info(f"Re-validated article {article.id}: score={result.score} passed={result.passed}")

    return {
        "article_id": article.id,
        "passed": result.passed,
        "score": result.score,
        "issues": result.issues,
        "hard_issues": result.hard_issues,
        "soft_issues": result.soft_issues,
        "length_issues": result.length_issues,
        "word_count": result.word_count,
        "placeholders": result.placeholders,
        "headings": heading_report(result.headings),
        "status": article.status,
    }
