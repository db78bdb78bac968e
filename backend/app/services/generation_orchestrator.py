"""
Runs one generation cycle for a campaign.

A cycle acquires the campaign's persisted generation lock, selects products,
generates the article, resolves tokens, merges product attributes, validates
the result and persists it, optionally publishes it, then always advances the
schedule, appends an execution log entry and releases the lock.
"""
import logging
import time
import uuid
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..config import get_settings
from ..errors import CampaignBusyError, CampaignNotActiveError, GenerationError, SelectionError
from ..models.article import Article, ArticleStatus
from ..models.campaign import Campaign, CampaignStatus
from ..models.execution_log import CampaignExecutionLog, ExecutionStatus, ExecutionTrigger
from . import campaign_schedule
from .catalog_service import get_catalog
from .claude_service import ClaudeService, build_article_request
from .content_tokens import extract_product_links, resolve_image_tokens, resolve_product_tokens
from .content_validator import validate
from .html_enricher import merge, tag_product_cards
from .product_scorer import ProductSelection, select_products
from .shopify_service import ShopifyService

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class CycleResult:
    campaign_id: str
    trigger: str
    skipped: bool = False
    reason: Optional[str] = None
    status: Optional[str] = None  # execution log status, None when skipped
    article_id: Optional[str] = None
    validation_score: Optional[int] = None
    published: bool = False
    error: Optional[str] = None
    next_execution: Optional[datetime] = None
    campaign_status: Optional[str] = None

    def discard_article(self) -> None:
        """Forget a rolled-back article."""
        self.article_id = None
        self.validation_score = None
        self.published = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class GenerationOrchestrator:
    """Generation pipeline for one campaign cycle, bound to a database session."""

    def __init__(
        self,
        db: Session,
        generator=None,
        publisher_factory: Optional[Callable[[Any], Any]] = None,
    ):
        self.db = db
        self._generator = generator
        self.publisher_factory = publisher_factory or ShopifyService

    @property
    def generator(self):
        if self._generator is None:
            self._generator = ClaudeService()
        return self._generator

    # ── Lock ──────────────────────────────────────────────────────────

    def acquire_lock(self, campaign_id: str, trigger: str, now: datetime) -> Optional[str]:
        """
        Take the campaign's generation lock with a conditional UPDATE.

        Only an active campaign without a live lock can be locked; a lock older
        than the TTL is considered abandoned. Scheduled runs additionally
        require the campaign to be due, so two pollers cannot both run it.

        Returns:
            The lock token, or None if another caller holds the lock
        """
        token = str(uuid.uuid4())
        stale_before = now - timedelta(minutes=settings.generation_lock_ttl_minutes)

        query = self.db.query(Campaign).filter(
            Campaign.id == campaign_id,
            Campaign.status == CampaignStatus.ACTIVE.value,
            or_(
                Campaign.generation_lock_token.is_(None),
                Campaign.generation_locked_at.is_(None),
                Campaign.generation_locked_at < stale_before,
            ),
        )
        if trigger == ExecutionTrigger.SCHEDULED.value:
            query = query.filter(Campaign.next_execution <= now)

        updated = query.update(
            {Campaign.generation_lock_token: token, Campaign.generation_locked_at: now},
            synchronize_session=False,
        )
        self.db.commit()
        return token if updated == 1 else None

    def release_lock(self, campaign_id: str, token: str) -> None:
        """Clear the lock if this caller still owns it (caller commits)."""
        self.db.query(Campaign).filter(
            Campaign.id == campaign_id,
            Campaign.generation_lock_token == token,
        ).update(
            {Campaign.generation_lock_token: None, Campaign.generation_locked_at: None},
            synchronize_session=False,
        )

    # ── Cycle ─────────────────────────────────────────────────────────

    async def run_campaign_cycle(
        self,
        campaign_id: str,
        trigger: str = ExecutionTrigger.SCHEDULED.value,
        now: Optional[datetime] = None,
    ) -> CycleResult:
        """
        Run one generation cycle.

        Scheduled runs of non-active, locked or not-yet-due campaigns are
        skipped without a log entry.

        Raises:
            CampaignNotActiveError: Manual run of a campaign that is not active
            CampaignBusyError: Manual run while a generation is in flight
        """
        now = now or datetime.utcnow()
        trigger = ExecutionTrigger(trigger).value
        result = CycleResult(campaign_id=campaign_id, trigger=trigger)

        campaign = self.db.query(Campaign).filter(Campaign.id == campaign_id).first()
        if campaign is None or campaign.status != CampaignStatus.ACTIVE.value:
            if trigger == ExecutionTrigger.MANUAL.value:
                raise CampaignNotActiveError(f"Campaign {campaign_id} is not active")
            result.skipped = True
            result.reason = "not active"
            logger.info(f"[Orchestrator] Skipping campaign {campaign_id}: not active")
            return result

        token = self.acquire_lock(campaign_id, trigger, now)
        if token is None:
            if trigger == ExecutionTrigger.MANUAL.value:
                raise CampaignBusyError(f"Campaign {campaign_id} already has a generation in flight")
            result.skipped = True
            result.reason = "locked or not due"
            logger.info(f"[Orchestrator] Skipping campaign {campaign_id}: locked or not due")
            return result

        logger.info(f"[Orchestrator] Starting {trigger} cycle for campaign {campaign_id}")
        started = time.monotonic()

        try:
            await self._generate(campaign, now, result)
        except (SelectionError, GenerationError) as e:
            self.db.rollback()
            result.discard_article()
            logger.warning(f"[Orchestrator] Campaign {campaign_id} cycle failed: {e}")
            result.status = ExecutionStatus.FAILED.value
            result.error = str(e)
        except Exception as e:
            self.db.rollback()
            result.discard_article()
            logger.exception(f"[Orchestrator] Unexpected error in campaign {campaign_id} cycle: {e}")
            result.status = ExecutionStatus.FAILED.value
            result.error = f"Unexpected error: {e}"

        duration_ms = int((time.monotonic() - started) * 1000)
        self._finish(campaign, token, now, result, duration_ms)
        return result

    async def _generate(self, campaign: Campaign, now: datetime, result: CycleResult) -> None:
        store = campaign.store

        selection = ProductSelection()
        if campaign.product_links_enabled:
            catalog = get_catalog(self.db, campaign.store_id)
            if not catalog:
                raise SelectionError(f"Store {campaign.store_id} has no active products to link")
            limit = settings.default_product_limit
            if campaign.internal_linking_enabled and campaign.max_internal_links:
                limit = campaign.max_internal_links
            selection = select_products(campaign, catalog, limit)

        products = selection.products
        request = build_article_request(campaign, products, store.base_url)
        generated = await self.generator.generate_article(request)

        content = resolve_product_tokens(generated.content, products, store.base_url)
        content = resolve_image_tokens(content, products, enabled=campaign.image_integration_enabled)
        content = tag_product_cards(content, products)

        enriched_count, not_enriched_count = 0, 0
        if campaign.product_enrichment_enabled and products:
            enrichment = merge(content, products, language=campaign.language)
            content = enrichment.html
            enriched_count = enrichment.enriched_count
            not_enriched_count = enrichment.not_enriched_count

        validation = validate(
            content,
            campaign.word_count_min,
            campaign.word_count_max,
            selection_fallback=selection.fallback,
            words_per_section=settings.words_per_section,
        )

        article = Article(
            store_id=campaign.store_id,
            campaign_id=campaign.id,
            title=generated.title,
            content=content,
            meta_description=generated.meta_description,
            focus_keyword=generated.focus_keyword,
            keywords=generated.keywords or list(campaign.keywords or []),
            category=generated.category,
            subcategory=generated.subcategory,
            language=campaign.language,
            word_count=validation.word_count,
            status=(ArticleStatus.DRAFT if validation.passed else ArticleStatus.NEEDS_REVIEW).value,
            product_links=extract_product_links(content, products),
            validation_score=validation.score,
            validation_issues=validation.issues,
            products_enriched=enriched_count,
            products_not_enriched=not_enriched_count,
        )
        self.db.add(article)
        campaign.articles_generated = (campaign.articles_generated or 0) + 1
        self.db.flush()

        result.article_id = article.id
        result.validation_score = validation.score
        result.status = (ExecutionStatus.SUCCESS if validation.passed else ExecutionStatus.PARTIAL).value
        if not validation.passed:
            result.error = "Validation failed: " + "; ".join(validation.issues)

        logger.info(
            f"[Orchestrator] Campaign {campaign.id} article {article.id}: "
            f"score={validation.score} passed={validation.passed} "
            f"enriched={enriched_count} not_enriched={not_enriched_count}"
        )

        if validation.passed and campaign.auto_publish:
            await self._publish(campaign, article, now, result)

    async def _publish(self, campaign: Campaign, article: Article, now: datetime, result: CycleResult) -> None:
        try:
            publisher = self.publisher_factory(campaign.store)
            outcome = await publisher.publish_article(article)
        except Exception as e:
            # The validated article is kept whatever the publisher does
            logger.exception(f"[Orchestrator] Publisher raised for article {article.id}: {e}")
            outcome = {"success": False, "error": f"Unexpected error: {e}"}

        if outcome.get("success"):
            article.status = ArticleStatus.PUBLISHED.value
            article.shopify_article_id = outcome.get("article_id")
            article.published_at = now
            campaign.articles_published = (campaign.articles_published or 0) + 1
            result.published = True
        else:
            # The article stays as a draft for a later manual publish
            result.status = ExecutionStatus.PARTIAL.value
            result.error = f"Publish failed: {outcome.get('error')}"
            logger.warning(f"[Orchestrator] Publish failed for article {article.id}: {outcome.get('error')}")

    def _finish(self, campaign: Campaign, token: str, now: datetime, result: CycleResult, duration_ms: int) -> None:
        """Advance the schedule, append the log entry and release the lock in one commit."""
        try:
            campaign_schedule.record_execution(campaign, now)
            self.db.add(CampaignExecutionLog(
                campaign_id=campaign.id,
                execution_time=now,
                status=result.status,
                trigger=result.trigger,
                articles_generated=1 if result.article_id else 0,
                article_id=result.article_id,
                error_message=result.error,
                duration_ms=duration_ms,
            ))
            self.db.flush()
            self.release_lock(campaign.id, token)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.release_lock(campaign.id, token)
            self.db.commit()
            raise

        result.next_execution = campaign.next_execution
        result.campaign_status = campaign.status
        logger.info(
            f"[Orchestrator] Campaign {campaign.id} cycle {result.status}, "
            f"next run {result.next_execution}"
        )
