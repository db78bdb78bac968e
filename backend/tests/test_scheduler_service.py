"""Tests for the campaign scheduler."""

import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from app.models import CampaignExecutionLog
from app.services import scheduler_service
from app.services.generation_orchestrator import GenerationOrchestrator

from conftest import FakeGenerator

PAST = datetime(2025, 1, 6, 9, 0)


class PickyGenerator(FakeGenerator):
    """Fails for one campaign, succeeds for the rest."""

    def __init__(self, failing_campaign_id):
        super().__init__()
        self.failing_campaign_id = failing_campaign_id

    async def generate_article(self, request):
        if request.campaign_id == self.failing_campaign_id:
            self.requests.append(request)
            raise RuntimeError("model exploded")
        return await super().generate_article(request)


def test_find_due_campaign_ids(db, make_campaign):
    now = datetime(2025, 1, 10, 12, 0)
    later = make_campaign(name="later", next_execution=now - timedelta(hours=1))
    earlier = make_campaign(name="earlier", next_execution=now - timedelta(days=2))
    make_campaign(name="future", next_execution=now + timedelta(hours=1))
    make_campaign(name="paused", status="paused", next_execution=now - timedelta(days=1))
    make_campaign(name="unscheduled", next_execution=None)

    assert scheduler_service.find_due_campaign_ids(db, now) == [earlier.id, later.id]
    assert scheduler_service.find_due_campaign_ids(db, now, limit=1) == [earlier.id]


@pytest.mark.asyncio
async def test_run_due_campaigns_runs_each_once(db, session_factory, make_campaign, make_product):
    make_product("Velvet sofa", ai_color="Emerald")
    first = make_campaign(name="first", next_execution=PAST)
    second = make_campaign(name="second", next_execution=PAST)
    generator = FakeGenerator()

    count = await scheduler_service.run_due_campaigns(session_factory=session_factory, generator=generator)

    assert count == 2
    assert sorted(r.campaign_id for r in generator.requests) == sorted([first.id, second.id])

    # Both schedules advanced past now, so a second tick finds nothing
    assert await scheduler_service.run_due_campaigns(session_factory=session_factory, generator=generator) == 0


@pytest.mark.asyncio
async def test_one_failing_campaign_does_not_affect_others(db, session_factory, make_campaign, make_product):
    make_product("Velvet sofa", ai_color="Emerald")
    healthy = make_campaign(name="healthy", next_execution=PAST)
    broken = make_campaign(name="broken", next_execution=PAST)
    generator = PickyGenerator(broken.id)

    await scheduler_service.run_due_campaigns(session_factory=session_factory, generator=generator)

    db.expire_all()
    statuses = {
        log.campaign_id: log.status
        for log in db.query(CampaignExecutionLog).all()
    }
    assert statuses == {healthy.id: "success", broken.id: "failed"}


@pytest.mark.asyncio
async def test_run_campaign_logs_and_swallows_errors(session_factory):
    with patch.object(
        GenerationOrchestrator, "run_campaign_cycle", new=AsyncMock(side_effect=RuntimeError("db gone"))
    ):
        result = await scheduler_service.run_campaign(
            "missing", asyncio.Semaphore(1), session_factory=session_factory
        )
    assert result is None


@pytest.mark.asyncio
async def test_start_and_stop_scheduler():
    with patch.object(scheduler_service, "run_due_campaigns", new=AsyncMock(return_value=0)) as tick:
        scheduler_service.start_scheduler()
        assert scheduler_service.is_scheduler_running()
        await asyncio.sleep(0)
        scheduler_service.stop_scheduler()
        await asyncio.sleep(0)

    assert not scheduler_service.is_scheduler_running()
    assert tick.await_count == 1
