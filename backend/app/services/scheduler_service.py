"""
Background scheduler for campaign article generation.

Polls for active campaigns whose next execution is due and runs each one as
an independent task with its own database session. Concurrency is bounded by
`scheduler_max_concurrent`; a failure in one campaign's cycle never affects
the others.
"""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import SessionLocal
from ..models.campaign import Campaign, CampaignStatus
from ..models.execution_log import ExecutionTrigger
from .generation_orchestrator import GenerationOrchestrator

logger = logging.getLogger(__name__)
settings = get_settings()

# Global flag to control the scheduler
_scheduler_running = False
_scheduler_task: Optional[asyncio.Task] = None


def find_due_campaign_ids(db: Session, now: datetime, limit: Optional[int] = None) -> List[str]:
    """Ids of active campaigns due at `now`, oldest due first."""
    query = (
        db.query(Campaign.id)
        .filter(
            Campaign.status == CampaignStatus.ACTIVE.value,
            Campaign.next_execution.isnot(None),
            Campaign.next_execution <= now,
        )
        .order_by(Campaign.next_execution.asc())
    )
    if limit:
        query = query.limit(limit)
    return [row[0] for row in query.all()]


async def run_campaign(campaign_id: str, semaphore: asyncio.Semaphore, session_factory=SessionLocal,
                       generator=None) -> Optional[dict]:
    """Run one scheduled cycle in its own session; errors are logged, never raised."""
    async with semaphore:
        db = session_factory()
        try:
            orchestrator = GenerationOrchestrator(db, generator=generator)
            result = await orchestrator.run_campaign_cycle(
                campaign_id, trigger=ExecutionTrigger.SCHEDULED.value
            )
            if not result.skipped:
                logger.info(f"[Scheduler] Campaign {campaign_id}: {result.status}")
            return result.to_dict()
        except Exception as e:
            logger.error(f"[Scheduler] Error running campaign {campaign_id}: {e}", exc_info=True)
            return None
        finally:
            db.close()


async def run_due_campaigns(session_factory=SessionLocal, generator=None, now: Optional[datetime] = None) -> int:
    """
    Run every due campaign once.

    Returns:
        Number of campaigns picked up in this tick
    """
    now = now or datetime.utcnow()
    db = session_factory()
    try:
        campaign_ids = find_due_campaign_ids(db, now, limit=settings.scheduler_batch_size)
    finally:
        db.close()

    if not campaign_ids:
        return 0

    logger.info(f"[Scheduler] {len(campaign_ids)} campaign(s) due")
    semaphore = asyncio.Semaphore(settings.scheduler_max_concurrent)
    await asyncio.gather(*[
        run_campaign(campaign_id, semaphore, session_factory=session_factory, generator=generator)
        for campaign_id in campaign_ids
    ])
    return len(campaign_ids)


async def scheduler_loop():
    """
    Main scheduler loop that runs in the background.
    Checks for due campaigns every `scheduler_poll_seconds`.
    """
    global _scheduler_running

    logger.info(f"[Scheduler] Starting campaign scheduler (poll every {settings.scheduler_poll_seconds}s)")

    while _scheduler_running:
        try:
            await run_due_campaigns()
        except Exception as e:
            logger.error(f"[Scheduler] Error in scheduler loop: {e}")

        await asyncio.sleep(settings.scheduler_poll_seconds)

    logger.info("[Scheduler] Scheduler stopped")


def start_scheduler():
    """Start the background scheduler."""
    global _scheduler_running, _scheduler_task

    if _scheduler_running:
        logger.warning("[Scheduler] Scheduler already running")
        return

    _scheduler_running = True
    _scheduler_task = asyncio.create_task(scheduler_loop())
    logger.info("[Scheduler] Scheduler started")


def stop_scheduler():
    """Stop the background scheduler."""
    global _scheduler_running, _scheduler_task

    _scheduler_running = False
    if _scheduler_task:
        _scheduler_task.cancel()
        _scheduler_task = None
    logger.info("[Scheduler] Scheduler stop requested")


def is_scheduler_running() -> bool:
    """Check if the scheduler is running."""
    return _scheduler_running
